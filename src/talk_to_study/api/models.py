"""Pydantic models for the session HTTP API."""

from pydantic import BaseModel

from talk_to_study.domain.languages import Language
from talk_to_study.domain.learning import LearningRecord
from talk_to_study.domain.sessions import AnalysisOutcome, SessionSnapshot
from talk_to_study.domain.speech import CaptureState, NarrationState


class LanguageRequest(BaseModel):
    """Language selection payload."""

    language: Language


class ChatInputRequest(BaseModel):
    """Chat input buffer payload."""

    text: str


class MessageRequest(BaseModel):
    """Follow-up question payload; falls back to the input buffer."""

    text: str | None = None


class VolumeRequest(BaseModel):
    """Narration volume payload, clamped to 0-1 by the narrator."""

    volume: float


class CapturedImageRequest(BaseModel):
    """Camera capture sent as a data URL."""

    data_url: str


class ChatTurnView(BaseModel):
    """Chat turn payload."""

    speaker: str
    text: str


class NarrationView(BaseModel):
    """Narration state payload."""

    text: str
    locale_tag: str
    volume: float
    progress_percent: float
    state: NarrationState


class SessionView(BaseModel):
    """Full observable session state."""

    has_image: bool
    image_mime_type: str | None
    content: LearningRecord | None
    analyzing: bool
    chat: list[ChatTurnView]
    chat_loading: bool
    chat_input: str
    error: str | None
    language: Language
    locale_tag: str
    narration: NarrationView
    capture_state: CaptureState
    voice_capture_available: bool

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> "SessionView":
        narration = snapshot.narration
        return cls(
            has_image=snapshot.has_image,
            image_mime_type=snapshot.image_mime_type,
            content=snapshot.content,
            analyzing=snapshot.analyzing,
            chat=[
                ChatTurnView(speaker=turn.speaker.value, text=turn.text)
                for turn in snapshot.chat
            ],
            chat_loading=snapshot.chat_loading,
            chat_input=snapshot.chat_input,
            error=snapshot.error,
            language=snapshot.language,
            locale_tag=snapshot.locale_tag,
            narration=NarrationView(
                text=narration.text,
                locale_tag=narration.locale_tag,
                volume=narration.volume,
                progress_percent=narration.progress_percent,
                state=narration.state,
            ),
            capture_state=snapshot.capture_state,
            voice_capture_available=snapshot.voice_capture_available,
        )


class AnalyzeResponse(BaseModel):
    """Result of an analyze request."""

    status: AnalysisOutcome
    session: SessionView
