"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field

import pytest

from talk_to_study.config import Settings
from talk_to_study.containers import AppContainer
from talk_to_study.domain.speech import Utterance
from talk_to_study.errors import CaptureError
from talk_to_study.services.analysis import AnalysisClient, ContentAnalyzer
from talk_to_study.services.conversation import ChatClient, ConversationResponder
from talk_to_study.services.narration import (
    NarrationEvents,
    SpeechNarrator,
    SpeechSynthesizer,
)
from talk_to_study.services.sessions import LearningSession
from talk_to_study.services.voice_capture import SpeechRecognizer, VoiceCapture

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64


def learning_payload(topic: str = "Photosynthesis") -> dict[str, object]:
    return {
        "topic": topic,
        "extracted_text": "Plants make food from sunlight.",
        "explanation": "Leaves turn light, water and air into sugar.",
        "key_points": [
            "Needs sunlight",
            "Uses chlorophyll",
            "Releases oxygen",
        ],
        "example": "A houseplant growing toward a window.",
        "quiz": "What gas do plants release?",
    }


@dataclass
class FakeAnalysisClient(AnalysisClient):
    """Fake analysis client returning a fixed payload."""

    payload: dict[str, object] = field(default_factory=learning_payload)
    error: Exception | None = None
    gate: asyncio.Event | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def analyze(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        image_data_url: str,
        schema: dict[str, object],
        schema_name: str,
        prompt: str,
    ) -> dict[str, object]:
        self.calls.append(
            {
                "image_data_url": image_data_url,
                "prompt": prompt,
                "schema_name": schema_name,
            }
        )
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.payload


@dataclass
class FakeChatClient(ChatClient):
    """Fake chat client that records requests."""

    answer: str = "Chlorophyll is the green pigment that captures light."
    error: Exception | None = None
    gate: asyncio.Event | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def reply(
        self,
        *,
        model: str,
        instructions: str,
        messages: list[dict[str, str]],
    ) -> str:
        self.calls.append(
            {"model": model, "instructions": instructions, "messages": messages}
        )
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.answer


@dataclass
class FakeSynthesizer(SpeechSynthesizer):
    """Fake speech backend; tests fire events through ``events``."""

    calls: list[str] = field(default_factory=list)
    spoken: list[Utterance] = field(default_factory=list)
    events: NarrationEvents | None = None
    volume: float | None = None
    fail_on_speak: bool = False

    def speak(self, utterance: Utterance, events: NarrationEvents) -> None:
        self.calls.append("speak")
        if self.fail_on_speak:
            raise RuntimeError("audio device busy")
        self.spoken.append(utterance)
        self.events = events

    def cancel(self) -> None:
        self.calls.append("cancel")

    def pause(self) -> None:
        self.calls.append("pause")

    def resume(self) -> None:
        self.calls.append("resume")

    def set_volume(self, volume: float) -> None:
        self.calls.append("set_volume")
        self.volume = volume


@dataclass
class FakeRecognizer(SpeechRecognizer):
    """Fake recognizer returning a fixed transcript."""

    transcript: str = "What is chlorophyll?"
    error: Exception | None = None
    gate: asyncio.Event | None = None
    locales: list[str] = field(default_factory=list)

    async def recognize_once(self, locale_tag: str) -> str:
        self.locales.append(locale_tag)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.transcript


def no_speech() -> CaptureError:
    return CaptureError("no speech detected")


@dataclass
class SessionParts:
    """A session together with the fakes behind it."""

    session: LearningSession
    analysis_client: FakeAnalysisClient
    chat_client: FakeChatClient
    synthesizer: FakeSynthesizer
    recognizer: FakeRecognizer | None


def build_session(with_voice: bool = False) -> SessionParts:
    analysis_client = FakeAnalysisClient()
    chat_client = FakeChatClient()
    synthesizer = FakeSynthesizer()
    recognizer = FakeRecognizer() if with_voice else None
    session = LearningSession(
        analyzer=ContentAnalyzer(
            client=analysis_client,
            model="gpt-5.2",
            reasoning_effort="low",
            store=False,
        ),
        responder=ConversationResponder(client=chat_client, model="gpt-5-mini"),
        narrator=SpeechNarrator(synthesizer=synthesizer),
        voice_capture=VoiceCapture(recognizer) if recognizer is not None else None,
    )
    return SessionParts(
        session=session,
        analysis_client=analysis_client,
        chat_client=chat_client,
        synthesizer=synthesizer,
        recognizer=recognizer,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openai_api_key="openai-key",
        speech_enabled=False,
        voice_capture_enabled=False,
    )


@pytest.fixture
def parts() -> SessionParts:
    return build_session()


@pytest.fixture
def container(settings: Settings, parts: SessionParts) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        session=parts.session,
        close_resources=close_resources,
    )
