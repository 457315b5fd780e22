"""Follow-up question answering grounded in an analyzed image."""

import logging
from dataclasses import dataclass
from typing import Protocol

from talk_to_study.domain.chat import ChatTurn, Speaker
from talk_to_study.domain.languages import Language
from talk_to_study.domain.learning import LearningRecord

_logger = logging.getLogger(__name__)

EMPTY_ANSWER_FALLBACK = "I couldn't generate an answer at the moment."
ERROR_FALLBACK = "Sorry, I am having trouble connecting to the brain right now."


class ChatClient(Protocol):
    """Interface for LLM chat completions."""

    async def reply(
        self,
        *,
        model: str,
        instructions: str,
        messages: list[dict[str, str]],
    ) -> str:
        """Return the assistant reply text."""


@dataclass
class ConversationResponder:
    """Answers short follow-up questions; never raises."""

    client: ChatClient
    model: str

    async def respond(
        self, context: str, history: list[ChatTurn], language: Language
    ) -> str:
        """Return a brief answer, or a fixed fallback on failure."""
        try:
            answer = await self.client.reply(
                model=self.model,
                instructions=build_instructions(context, language),
                messages=to_model_messages(history),
            )
        except Exception:
            _logger.exception("Follow-up question failed")
            return ERROR_FALLBACK
        return answer.strip() or EMPTY_ANSWER_FALLBACK


def build_context(record: LearningRecord) -> str:
    """Summarize a learning record for the responder."""
    key_points = "\n".join(record.key_points)
    return (
        f"Topic: {record.topic}\n"
        f"Extracted Text: {record.extracted_text}\n"
        f"Explanation: {record.explanation}\n"
        f"Key Points: {key_points}\n"
        f"Example: {record.example}"
    )


def build_instructions(context: str, language: Language) -> str:
    """Build the system instruction for the responder."""
    return (
        "You are a learning assistant. The user is asking a question about a "
        "topic they just studied.\n"
        f"The context of the study material is:\n{context}\n\n"
        f"Respond in {language.value}. Keep the answer brief, encouraging, "
        "and simple (under 2-3 sentences)."
    )


def to_model_messages(history: list[ChatTurn]) -> list[dict[str, str]]:
    """Convert chat turns to model roles, oldest first."""
    return [
        {
            "role": "user" if turn.speaker is Speaker.USER else "assistant",
            "content": turn.text,
        }
        for turn in history
    ]
