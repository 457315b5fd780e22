"""Models for image analysis results."""

from pydantic import BaseModel, ConfigDict


class LearningRecord(BaseModel):
    """Structured explanation of one analyzed image."""

    model_config = ConfigDict(frozen=True)

    topic: str
    extracted_text: str
    explanation: str
    key_points: list[str]
    example: str
    quiz: str
