"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from talk_to_study.domain.languages import Language

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

MAX_IMAGE_BYTES = 10 * 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    openai_api_key: str
    openai_analysis_model: str = "gpt-5.2"
    openai_chat_model: str = "gpt-5-mini"
    openai_reasoning_effort: str | None = "low"
    openai_store: bool = False
    default_language: Language = Language.ENGLISH
    max_image_bytes: int = MAX_IMAGE_BYTES
    speech_enabled: bool = True
    speech_rate: float = 0.9
    speech_volume: float = 1.0
    voice_capture_enabled: bool = True
    capture_timeout_seconds: float = 8.0
    capture_phrase_limit_seconds: float = 15.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
