"""Pydantic data models for the ingestion pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Content ---


class AIMetadata(BaseModel):
    summary: str = ""
    entities: list[Any] = Field(default_factory=list)
    classifications: list[Any] = Field(default_factory=list)
    keywords: list[Any] = Field(default_factory=list)


class ContentItem(BaseModel):
    type: str = ""  # article|podcast|keyterm|financial|xpost|reddit|event|polymarket|...
    title: str = ""
    content: str = ""
    summary: str | None = None
    source_url: str = ""
    source_id: str | None = None
    publish_date: str | None = None
    status: str = "pending"  # pending|approved|rejected|published
    extra: dict[str, Any] = Field(default_factory=dict)

    # Derived by the pipeline before persistence
    fingerprint: str = ""
    quality_score: int | None = None
    ai_metadata: AIMetadata | None = None


class ContentRow(BaseModel):
    id: int = 0
    type: str = "article"
    title: str = ""
    content: str = ""
    summary: str = ""
    source_url: str = ""
    source_id: str = ""
    publish_date: str | None = None  # as received; feeds the fingerprint
    published_at: datetime | None = None
    status: str = "pending"
    extra: dict[str, Any] = Field(default_factory=dict)
    fingerprint: str = ""
    quality_score: int = 0
    ai_metadata: AIMetadata | None = None
    ingestion_date: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ContentSummary(BaseModel):
    id: int
    type: str = ""
    title: str = ""
    source_url: str = ""
    summary: str = ""
    publish_date: str | None = None
    quality_score: int = 0
    status: str = ""
    created_at: datetime | None = None

    @classmethod
    def from_row(cls, row: ContentRow) -> ContentSummary:
        return cls(
            id=row.id,
            type=row.type,
            title=row.title,
            source_url=row.source_url,
            summary=row.summary,
            publish_date=row.publish_date,
            quality_score=row.quality_score,
            status=row.status,
            created_at=row.created_at,
        )


# --- Validation ---


class ValidationResult(BaseModel):
    errors: dict[str, str] = Field(default_factory=dict)
    warnings: dict[str, str] = Field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors


# --- Quality ---


class QualityAssessment(BaseModel):
    score: int = Field(default=1, ge=1, le=100)
    category: str = "very_poor"
    completeness: float = Field(default=0.0, ge=0.0, le=1.0)
    recency: float = Field(default=0.0, ge=0.0, le=1.0)
    length: float = Field(default=0.0, ge=0.0, le=1.0)
    structure: float = Field(default=0.0, ge=0.0, le=1.0)
    short_circuited: bool = False
    suggestions: list[str] = Field(default_factory=list)


class AIQualityAssessment(BaseModel):
    overall: float = Field(default=0.0, ge=0.0, le=10.0)
    coherence: float = Field(default=0.0, ge=0.0, le=10.0)
    clarity: float = Field(default=0.0, ge=0.0, le=10.0)
    accuracy: float = Field(default=0.0, ge=0.0, le=10.0)
    relevance: float = Field(default=0.0, ge=0.0, le=10.0)
    engagement: float = Field(default=0.0, ge=0.0, le=10.0)
    passed: bool = False
    recommendations: list[str] = Field(default_factory=list)


# --- Index / duplicates ---


class ContentIndexEntry(BaseModel):
    content_id: int
    fingerprint: str
    content_key: str = ""
    quality_score: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class DuplicateLogEntry(BaseModel):
    log_id: int = 0
    content_id: int
    duplicate_id: int
    fingerprint: str
    resolution: str | None = None  # kept_new|kept_existing|ignored|manually_resolved
    created_at: datetime = Field(default_factory=utcnow)
    resolved_at: datetime | None = None


class DuplicateReportEntry(BaseModel):
    log_id: int
    content_id: int
    duplicate_id: int
    fingerprint: str
    resolution: str | None = None
    created_at: datetime
    resolved_at: datetime | None = None
    content_title: str | None = None
    content_url: str | None = None
    content_score: int | None = None
    content_status: str | None = None
    duplicate_title: str | None = None
    duplicate_url: str | None = None
    duplicate_score: int | None = None
    duplicate_status: str | None = None


class DuplicateReport(BaseModel):
    status: str = "success"
    message: str = ""
    duplicates: list[DuplicateReportEntry] = Field(default_factory=list)
    total: int = 0


class ReindexReport(BaseModel):
    processed: int = 0
    success: int = 0
    errors: int = 0
    duplicates: int = 0
    repaired: int = 0
    orphans_removed: int = 0
    last_id: int = 0
    has_more: bool = False
    message: str = ""


# --- Orchestrator results ---


class ProcessedData(BaseModel):
    content: ContentItem | None = None
    fingerprint: str = ""
    quality_score: int | None = None
    quality_assessment: QualityAssessment | None = None
    duplicate: ContentSummary | None = None


class ProcessingResult(BaseModel):
    success: bool = False
    errors: dict[str, str] = Field(default_factory=dict)
    warnings: dict[str, Any] = Field(default_factory=dict)
    data: ProcessedData = Field(default_factory=ProcessedData)


class SaveResult(BaseModel):
    success: bool = False
    errors: dict[str, str] = Field(default_factory=dict)
    content_id: int = 0


class ContentStats(BaseModel):
    total_count: int = 0
    status_counts: dict[str, int] = Field(default_factory=dict)
    type_counts: dict[str, int] = Field(default_factory=dict)
    quality_distribution: dict[str, int] = Field(default_factory=dict)
    recent_content: list[ContentSummary] = Field(default_factory=list)


class BatchItemOutcome(BaseModel):
    title: str = ""
    source_url: str = ""
    success: bool = False
    content_id: int = 0
    errors: dict[str, str] = Field(default_factory=dict)


class BatchReport(BaseModel):
    processed: int = 0
    saved: int = 0
    rejected: int = 0
    outcomes: list[BatchItemOutcome] = Field(default_factory=list)


# --- Error log ---


class ErrorLogEntry(BaseModel):
    context: str
    error_type: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    severity: str = "error"  # info|warning|error|critical
    created_at: datetime = Field(default_factory=utcnow)


# --- Store snapshot ---


class StoreSnapshot(BaseModel):
    next_content_id: int = 1
    next_log_id: int = 1
    content: list[ContentRow] = Field(default_factory=list)
    index: list[ContentIndexEntry] = Field(default_factory=list)
    duplicate_log: list[DuplicateLogEntry] = Field(default_factory=list)
