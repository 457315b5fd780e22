"""Image explanation service using multimodal LLMs."""

import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from talk_to_study.domain.languages import Language
from talk_to_study.domain.learning import LearningRecord
from talk_to_study.errors import AnalysisError
from talk_to_study.services.images import EncodedImage, to_data_url

_logger = logging.getLogger(__name__)

LEARNING_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "topic": {
            "type": "string",
            "description": "The main title or topic of the content.",
        },
        "extracted_text": {
            "type": "string",
            "description": (
                "The exact text extracted from the image. "
                "If unclear, say 'Text not visible clearly'."
            ),
        },
        "explanation": {
            "type": "string",
            "description": (
                "A beginner-friendly explanation of the concept "
                "in a supportive teacher style."
            ),
        },
        "key_points": {
            "type": "array",
            "items": {"type": "string"},
            "description": "3 distinct key takeaways from the material.",
        },
        "example": {
            "type": "string",
            "description": "A real-world simple example illustrating the concept.",
        },
        "quiz": {
            "type": "string",
            "description": "A simple quiz question to test understanding.",
        },
    },
    "required": [
        "topic",
        "extracted_text",
        "explanation",
        "key_points",
        "example",
        "quiz",
    ],
    "additionalProperties": False,
}


LEARNING_SCHEMA_NAME = "learning_record"


class AnalysisClient(Protocol):
    """Interface for LLM image analysis."""

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
        """Return structured analysis data."""


@dataclass
class ContentAnalyzer:
    """Prepares the teaching prompt and validates the structured result."""

    client: AnalysisClient
    model: str
    reasoning_effort: str | None
    store: bool

    async def analyze(self, image: EncodedImage, language: Language) -> LearningRecord:
        """Explain an image in the requested language."""
        try:
            raw = await self.client.analyze(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                image_data_url=to_data_url(image),
                schema=LEARNING_SCHEMA,
                schema_name=LEARNING_SCHEMA_NAME,
                prompt=build_analysis_prompt(language),
            )
        except Exception as exc:
            raise AnalysisError(str(exc)) from exc
        try:
            return LearningRecord.model_validate(raw)
        except ValidationError as exc:
            _logger.warning("Analysis response failed validation: %s", exc)
            raise AnalysisError("malformed analysis response") from exc


def build_analysis_prompt(language: Language) -> str:
    """Build the analysis instructions for a target language."""
    return (
        "You are a helpful, supportive teacher for visually impaired students. "
        "Analyze this image (textbook page, handwriting, or notes).\n"
        "Tasks:\n"
        "1. Extract the text visible (OCR).\n"
        "2. Explain the core concept simply.\n"
        "3. Give exactly 3 key points.\n"
        "4. Provide a real-world example.\n"
        "5. Create a quiz question.\n"
        "Important:\n"
        f"- The output language MUST be {language.value}.\n"
        "- If the image contains no text or is blurry, explicitly state that "
        "in the 'extracted_text' field.\n"
        "- Do not invent facts that are not in the image, but use your knowledge "
        "to explain the visible topics."
    )
