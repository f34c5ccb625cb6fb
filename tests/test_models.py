"""Tests for data models."""

import pytest
from pydantic import ValidationError

from intake.models import (
    AIQualityAssessment,
    ContentItem,
    ContentRow,
    ContentSummary,
    ProcessingResult,
    QualityAssessment,
    ValidationResult,
)


def test_content_item_defaults():
    item = ContentItem()
    assert item.status == "pending"
    assert item.summary is None
    assert item.extra == {}
    assert item.ai_metadata is None


def test_validation_result_valid():
    assert ValidationResult().valid
    assert ValidationResult(warnings={"publish_date": "future"}).valid
    assert not ValidationResult(errors={"title": "Title is required"}).valid


def test_quality_score_bounds():
    with pytest.raises(ValidationError):
        QualityAssessment(score=0)
    with pytest.raises(ValidationError):
        QualityAssessment(score=101)
    with pytest.raises(ValidationError):
        AIQualityAssessment(overall=10.5)


def test_summary_from_row():
    row = ContentRow(id=4, title="Headline", source_url="https://example.com", quality_score=66)
    summary = ContentSummary.from_row(row)
    assert summary.id == 4
    assert summary.quality_score == 66
    assert summary.created_at == row.created_at


def test_processing_result_serializes():
    result = ProcessingResult(errors={"duplicate": "Content duplicate found (ID: 1)"})
    dumped = result.model_dump(mode="json")
    assert dumped["success"] is False
    assert dumped["data"]["duplicate"] is None
