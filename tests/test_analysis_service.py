"""Tests for the content analyzer."""

import asyncio

import pytest

from talk_to_study.domain.languages import Language
from talk_to_study.errors import AnalysisError
from talk_to_study.services.analysis import (
    LEARNING_SCHEMA,
    LEARNING_SCHEMA_NAME,
    ContentAnalyzer,
    build_analysis_prompt,
)
from talk_to_study.services.images import encode_image
from tests.conftest import FakeAnalysisClient


def _analyzer(client: FakeAnalysisClient) -> ContentAnalyzer:
    return ContentAnalyzer(
        client=client, model="gpt-5.2", reasoning_effort="low", store=False
    )


def test_analyzer_returns_learning_record() -> None:
    client = FakeAnalysisClient()
    image = encode_image(b"jpeg", "image/jpeg")

    record = asyncio.run(_analyzer(client).analyze(image, Language.SPANISH))

    assert record.topic == "Photosynthesis"
    assert len(record.key_points) == 3
    assert client.calls[0]["image_data_url"].startswith("data:image/jpeg;base64,")
    assert "Spanish" in client.calls[0]["prompt"]
    assert client.calls[0]["schema_name"] == LEARNING_SCHEMA_NAME


def test_analyzer_wraps_client_failures() -> None:
    client = FakeAnalysisClient(error=RuntimeError("timeout"))
    image = encode_image(b"jpeg", "image/jpeg")

    with pytest.raises(AnalysisError):
        asyncio.run(_analyzer(client).analyze(image, Language.ENGLISH))


def test_analyzer_rejects_malformed_payload() -> None:
    client = FakeAnalysisClient(payload={"topic": "Only a topic"})
    image = encode_image(b"jpeg", "image/jpeg")

    with pytest.raises(AnalysisError):
        asyncio.run(_analyzer(client).analyze(image, Language.ENGLISH))


def test_prompt_asks_to_flag_missing_text() -> None:
    prompt = build_analysis_prompt(Language.HINDI)

    assert "MUST be Hindi" in prompt
    assert "extracted_text" in prompt


def test_schema_requires_every_record_field() -> None:
    assert set(LEARNING_SCHEMA["required"]) == set(LEARNING_SCHEMA["properties"])
