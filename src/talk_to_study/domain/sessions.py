"""Domain models for the learning session."""

from dataclasses import dataclass
from enum import StrEnum

from talk_to_study.domain.chat import ChatTurn
from talk_to_study.domain.languages import Language
from talk_to_study.domain.learning import LearningRecord
from talk_to_study.domain.speech import CaptureState, NarrationSnapshot
from talk_to_study.errors import InvalidTransitionError


class AnalysisPhase(StrEnum):
    """Whether an image analysis is in flight."""

    IDLE = "idle"
    ANALYZING = "analyzing"


class AnalysisOutcome(StrEnum):
    """What became of an analyze request."""

    IGNORED = "ignored"
    COMPLETED = "ok"
    FAILED = "failed"
    DISCARDED = "discarded"


ANALYSIS_TRANSITIONS: dict[AnalysisPhase, set[AnalysisPhase]] = {
    AnalysisPhase.IDLE: {AnalysisPhase.ANALYZING},
    AnalysisPhase.ANALYZING: {AnalysisPhase.IDLE},
}


def advance_analysis(current: AnalysisPhase, target: AnalysisPhase) -> AnalysisPhase:
    """Return the target phase if the transition is allowed."""
    if target not in ANALYSIS_TRANSITIONS[current]:
        raise InvalidTransitionError(f"analysis: {current} -> {target}")
    return target


@dataclass(frozen=True)
class SessionSnapshot:
    """Every field of the session a view needs to render."""

    has_image: bool
    image_mime_type: str | None
    content: LearningRecord | None
    analyzing: bool
    chat: tuple[ChatTurn, ...]
    chat_loading: bool
    chat_input: str
    error: str | None
    language: Language
    locale_tag: str
    narration: NarrationSnapshot
    capture_state: CaptureState
    voice_capture_available: bool
