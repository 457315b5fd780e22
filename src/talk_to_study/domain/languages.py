"""Supported output languages and their speech locale tags."""

from enum import StrEnum


class Language(StrEnum):
    """Languages the assistant can explain and speak in."""

    ENGLISH = "English"
    HINDI = "Hindi"
    SPANISH = "Spanish"
    FRENCH = "French"
    GERMAN = "German"
    CHINESE = "Chinese"
    JAPANESE = "Japanese"
    ARABIC = "Arabic"
    PORTUGUESE = "Portuguese"
    RUSSIAN = "Russian"


LOCALE_TAGS: dict[Language, str] = {
    Language.ENGLISH: "en-US",
    Language.HINDI: "hi-IN",
    Language.SPANISH: "es-ES",
    Language.FRENCH: "fr-FR",
    Language.GERMAN: "de-DE",
    Language.CHINESE: "zh-CN",
    Language.JAPANESE: "ja-JP",
    Language.ARABIC: "ar-SA",
    Language.PORTUGUESE: "pt-BR",
    Language.RUSSIAN: "ru-RU",
}


def locale_tag(language: Language) -> str:
    """Return the speech and recognition locale tag for a language."""
    return LOCALE_TAGS[language]
