"""Domain models for the follow-up conversation."""

from dataclasses import dataclass
from enum import StrEnum


class Speaker(StrEnum):
    """Who produced a chat turn."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatTurn:
    """One message in the conversation log."""

    speaker: Speaker
    text: str
