"""Microphone speech recognition via the SpeechRecognition package."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import speech_recognition as sr

from talk_to_study.errors import CaptureError
from talk_to_study.services.voice_capture import SpeechRecognizer

_logger = logging.getLogger(__name__)


@dataclass
class SpeechRecognitionRecognizer(SpeechRecognizer):
    """Single-utterance recognizer backed by a local microphone."""

    recognizer: sr.Recognizer
    microphone_factory: Callable[[], Any] = sr.Microphone
    timeout_seconds: float = 8.0
    phrase_time_limit_seconds: float = 15.0

    @classmethod
    def create(
        cls, timeout_seconds: float = 8.0, phrase_time_limit_seconds: float = 15.0
    ) -> "SpeechRecognitionRecognizer | None":
        """Create a recognizer, or None if no microphone can be opened."""
        try:
            names = sr.Microphone.list_microphone_names()
        except (AttributeError, OSError) as exc:
            _logger.warning("Voice capture unavailable: %s", exc)
            return None
        if not names:
            _logger.warning("Voice capture unavailable: no microphone found")
            return None
        return cls(
            recognizer=sr.Recognizer(),
            timeout_seconds=timeout_seconds,
            phrase_time_limit_seconds=phrase_time_limit_seconds,
        )

    async def recognize_once(self, locale_tag: str) -> str:
        """Listen for one phrase and return its transcript."""
        return await asyncio.to_thread(self._listen_and_recognize, locale_tag)

    def _listen_and_recognize(self, locale_tag: str) -> str:
        try:
            with self.microphone_factory() as source:
                audio = self.recognizer.listen(
                    source,
                    timeout=self.timeout_seconds,
                    phrase_time_limit=self.phrase_time_limit_seconds,
                )
            return self.recognizer.recognize_google(audio, language=locale_tag)
        except sr.WaitTimeoutError as exc:
            raise CaptureError("no speech detected") from exc
        except sr.UnknownValueError as exc:
            raise CaptureError("speech was not understood") from exc
        except sr.RequestError as exc:
            raise CaptureError(f"recognition service unavailable: {exc}") from exc
