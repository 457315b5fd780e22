"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from talk_to_study.adapters.openai_analysis_client import OpenAIAnalysisClient
from talk_to_study.adapters.openai_chat_client import OpenAIChatClient
from talk_to_study.adapters.pyttsx3_synthesizer import Pyttsx3Synthesizer
from talk_to_study.adapters.speech_recognition_recognizer import (
    SpeechRecognitionRecognizer,
)
from talk_to_study.config import Settings
from talk_to_study.services.analysis import ContentAnalyzer
from talk_to_study.services.conversation import ConversationResponder
from talk_to_study.services.narration import SpeechNarrator
from talk_to_study.services.sessions import LearningSession
from talk_to_study.services.voice_capture import VoiceCapture


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session: LearningSession
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    analysis_client = OpenAIAnalysisClient.create(resolved_settings.openai_api_key)
    chat_client = OpenAIChatClient.create(
        resolved_settings.openai_api_key, store=resolved_settings.openai_store
    )
    analyzer = ContentAnalyzer(
        client=analysis_client,
        model=resolved_settings.openai_analysis_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    responder = ConversationResponder(
        client=chat_client,
        model=resolved_settings.openai_chat_model,
    )
    synthesizer = (
        Pyttsx3Synthesizer.create() if resolved_settings.speech_enabled else None
    )
    narrator = SpeechNarrator(
        synthesizer=synthesizer,
        rate=resolved_settings.speech_rate,
        volume=resolved_settings.speech_volume,
    )
    recognizer = (
        SpeechRecognitionRecognizer.create(
            timeout_seconds=resolved_settings.capture_timeout_seconds,
            phrase_time_limit_seconds=resolved_settings.capture_phrase_limit_seconds,
        )
        if resolved_settings.voice_capture_enabled
        else None
    )
    voice_capture = VoiceCapture(recognizer) if recognizer is not None else None
    session = LearningSession(
        analyzer=analyzer,
        responder=responder,
        narrator=narrator,
        voice_capture=voice_capture,
        language=resolved_settings.default_language,
        max_image_bytes=resolved_settings.max_image_bytes,
    )

    async def close_resources() -> None:
        await session.close()
        if synthesizer is not None:
            await synthesizer.close()
        await analysis_client.close()
        await chat_client.close()

    return AppContainer(
        settings=resolved_settings,
        session=session,
        close_resources=close_resources,
    )
