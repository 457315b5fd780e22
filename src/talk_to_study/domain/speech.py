"""Domain models for narration and voice capture."""

from dataclasses import dataclass
from enum import StrEnum


class NarrationState(StrEnum):
    """Lifecycle of a narration session."""

    IDLE = "idle"
    SPEAKING = "speaking"
    PAUSED = "paused"
    ENDED = "ended"


class CaptureState(StrEnum):
    """Lifecycle of a voice capture session."""

    IDLE = "idle"
    LISTENING = "listening"


@dataclass(frozen=True)
class Utterance:
    """Text handed to a speech backend."""

    text: str
    locale_tag: str
    volume: float
    rate: float


@dataclass(frozen=True)
class NarrationSnapshot:
    """Observable view of the narrator."""

    text: str
    locale_tag: str
    volume: float
    progress_percent: float
    state: NarrationState
