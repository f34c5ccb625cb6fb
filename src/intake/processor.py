"""Pipeline orchestrator: validate, dedupe, score, enrich, persist."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any

from intake.ai_quality import AIQualityCalculator
from intake.config import Settings
from intake.deduplicator import ContentDeduplicator
from intake.enrichment import AIEnrichmentService, enrich_content
from intake.error_log import ErrorLogger
from intake.events import CONTENT_ADDED, CONTENT_DELETED, CONTENT_UPDATED, EventDispatcher
from intake.models import (
    AIQualityAssessment,
    BatchItemOutcome,
    BatchReport,
    ContentItem,
    ContentRow,
    ContentStats,
    ContentSummary,
    DuplicateReport,
    ProcessedData,
    ProcessingResult,
    ReindexReport,
    SaveResult,
)
from intake.quality import QualityScorer
from intake.store import ContentStore, FingerprintConflictError, StoreError
from intake.text import parse_publish_date
from intake.validator import ContentValidator

logger = logging.getLogger(__name__)

_STORAGE_FAILED = "Failed to store content"
_QUALITY_BUCKETS = ("excellent", "good", "average", "poor", "very_poor")


class ContentProcessor:
    def __init__(
        self,
        settings: Settings,
        store: ContentStore,
        *,
        validator: ContentValidator | None = None,
        deduplicator: ContentDeduplicator | None = None,
        scorer: QualityScorer | None = None,
        enrichment: AIEnrichmentService | None = None,
        events: EventDispatcher | None = None,
        error_logger: ErrorLogger | None = None,
        taxonomy: list[str] | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._error_logger = error_logger or ErrorLogger()
        self._validator = validator or ContentValidator()
        self._deduplicator = deduplicator or ContentDeduplicator(store, self._error_logger)
        self._scorer = scorer or QualityScorer(settings)
        self._enrichment = enrichment
        self._taxonomy = taxonomy or []
        self.events = events or EventDispatcher()

    # --- Pipeline ---

    def process(self, item: ContentItem, exclude_id: int = 0) -> ProcessingResult:
        """Run the pipeline up to (not including) persistence.

        Validation, duplicate and quality failures are returned as results and
        stop at the failing stage.
        """
        result = ProcessingResult()

        # Stage 1: Validate
        valid, validation = self._validator.validate(item)
        result.warnings.update(validation.warnings)
        if not valid:
            result.errors = dict(validation.errors)
            self._error_logger.log(
                "content_processing",
                "validation_failed",
                "Content validation failed",
                {"errors": validation.errors, "content_data": _dump(item)},
                "warning",
            )
            return result

        # Stage 2: Deduplicate
        fingerprint = self._deduplicator.generate_fingerprint(item)
        content_key = self._deduplicator.generate_content_key(item)
        duplicate_id = self._deduplicator.is_duplicate(fingerprint, exclude_id, content_key)
        if duplicate_id is not None:
            details = self._deduplicator.get_duplicate_details(duplicate_id)
            result.errors["duplicate"] = f"Content duplicate found (ID: {duplicate_id})"
            result.data = ProcessedData(fingerprint=fingerprint, duplicate=details)
            self._error_logger.log(
                "content_processing",
                "duplicate",
                "Content duplicate found",
                {
                    "duplicate_id": duplicate_id,
                    "duplicate_details": _dump(details),
                    "content_data": _dump(item),
                },
                "warning",
            )
            return result

        # Stage 3: Score
        assessment = self._scorer.assess(item)
        quality_score = assessment.score
        auto_reject = self._settings.quality_score_auto_reject
        if auto_reject > 0 and quality_score < auto_reject:
            result.errors["quality_score"] = (
                f"Content quality score ({quality_score}) is below minimum threshold ({auto_reject})"
            )
            result.data = ProcessedData(
                fingerprint=fingerprint,
                quality_score=quality_score,
                quality_assessment=assessment,
            )
            self._error_logger.log(
                "content_processing",
                "quality_score",
                "Content quality score below threshold",
                {"score": quality_score, "threshold": auto_reject, "content_data": _dump(item)},
                "warning",
            )
            return result

        # Stage 4: Enrich (best effort)
        update: dict[str, Any] = {"fingerprint": fingerprint, "quality_score": quality_score}
        if self._enrichment is not None and self._settings.ai_enrichment_enabled:
            update["ai_metadata"] = enrich_content(
                self._enrichment, item.content, self._error_logger, self._taxonomy
            )

        result.success = True
        result.data = ProcessedData(
            content=item.model_copy(update=update),
            fingerprint=fingerprint,
            quality_score=quality_score,
            quality_assessment=assessment,
        )

        minimum = self._settings.quality_score_minimum
        if quality_score < minimum:
            result.warnings["quality_score"] = (
                f"Content quality score ({quality_score}) is below recommended threshold ({minimum})"
            )
            result.warnings["suggestions"] = list(assessment.suggestions)

        return result

    def save(self, processed: ProcessingResult, update_id: int = 0) -> SaveResult:
        """Persist a successful process() result as a new row or over ``update_id``."""
        result = SaveResult()
        data = processed.data
        if not processed.success or data.content is None or not data.fingerprint:
            result.errors["invalid"] = "Invalid processed data provided"
            self._error_logger.log(
                "content_processing",
                "invalid_processed_data",
                "Invalid processed data provided to save()",
                {"processed_data": _dump(processed), "update_id": update_id},
                "error",
            )
            return result

        row = _to_row(data.content, data.fingerprint, data.quality_score or 0)
        content_key = self._deduplicator.generate_content_key(data.content)

        if update_id > 0:
            return self._update(update_id, row, content_key)
        return self._insert(row, content_key)

    def _insert(self, row: ContentRow, content_key: str) -> SaveResult:
        result = SaveResult()
        try:
            content_id = self._store.insert_content(row)
        except StoreError as exc:
            result.errors["storage"] = _STORAGE_FAILED
            self._error_logger.log(
                "content_processing",
                "db_insert_failed",
                str(exc),
                {"content_data": _dump(row)},
                "error",
            )
            return result

        try:
            indexed = self._deduplicator.add_to_index(
                content_id, row.fingerprint, row.quality_score, content_key
            )
        except FingerprintConflictError as exc:
            # Lost a race with a concurrent insert of the same fingerprint
            self._rollback_insert(content_id)
            result.errors["duplicate"] = f"Content duplicate found (ID: {exc.existing_id})"
            self._error_logger.log(
                "content_processing",
                "duplicate",
                "Fingerprint conflict on index insert",
                {"duplicate_id": exc.existing_id, "fingerprint": row.fingerprint},
                "warning",
            )
            return result

        if not indexed:
            self._rollback_insert(content_id)
            result.errors["index"] = "Error adding content to index"
            self._error_logger.log(
                "content_processing",
                "index_insert_failed",
                "Index insert failed after content insert; content row removed",
                {"content_id": content_id, "fingerprint": row.fingerprint},
                "critical",
            )
            return result

        result.success = True
        result.content_id = content_id
        stored = self._store.get_content(content_id) or row
        self.events.emit(CONTENT_ADDED, content_id, stored)
        logger.info("Saved content %d (score=%d)", content_id, row.quality_score)
        return result

    def _rollback_insert(self, content_id: int) -> None:
        try:
            self._store.delete_content(content_id)
        except StoreError as exc:
            self._error_logger.log(
                "content_processing",
                "rollback_failed",
                str(exc),
                {"content_id": content_id},
                "critical",
            )

    def _update(self, content_id: int, row: ContentRow, content_key: str) -> SaveResult:
        result = SaveResult()
        previous = self._store.get_content(content_id)
        if previous is None:
            result.errors["not_found"] = f"Content {content_id} not found"
            return result

        try:
            if not self._store.update_content(content_id, row):
                result.errors["not_found"] = f"Content {content_id} not found"
                return result
        except StoreError as exc:
            result.errors["storage"] = _STORAGE_FAILED
            self._error_logger.log(
                "content_processing",
                "db_update_failed",
                str(exc),
                {"content_id": content_id},
                "error",
            )
            return result

        try:
            indexed = self._deduplicator.update_index(
                content_id, row.fingerprint, row.quality_score, content_key
            )
        except FingerprintConflictError as exc:
            self._restore(previous)
            result.errors["duplicate"] = f"Content duplicate found (ID: {exc.existing_id})"
            self._error_logger.log(
                "content_processing",
                "duplicate",
                "Fingerprint conflict on index update",
                {"content_id": content_id, "duplicate_id": exc.existing_id},
                "warning",
            )
            return result

        if not indexed:
            self._restore(previous)
            result.errors["index"] = "Error updating content index"
            self._error_logger.log(
                "content_processing",
                "index_update_failed",
                "Index update failed after content update; previous row restored",
                {"content_id": content_id, "fingerprint": row.fingerprint},
                "critical",
            )
            return result

        result.success = True
        result.content_id = content_id
        stored = self._store.get_content(content_id) or row
        self.events.emit(CONTENT_UPDATED, content_id, stored)
        return result

    def _restore(self, previous: ContentRow) -> None:
        try:
            self._store.update_content(previous.id, previous)
        except StoreError as exc:
            self._error_logger.log(
                "content_processing",
                "rollback_failed",
                str(exc),
                {"content_id": previous.id},
                "critical",
            )

    def delete(self, content_id: int) -> bool:
        """Remove the index entry, then the row. Missing ids return False."""
        try:
            row = self._store.get_content(content_id)
            if row is None:
                return False
            if not self._deduplicator.remove_from_index(content_id):
                return False
            deleted = self._store.delete_content(content_id)
        except StoreError as exc:
            self._error_logger.log(
                "content_processing",
                "delete_failed",
                str(exc),
                {"content_id": content_id},
                "error",
            )
            return False

        if deleted:
            self.events.emit(CONTENT_DELETED, content_id, row)
        return deleted

    def ingest(self, items: list[ContentItem]) -> BatchReport:
        """Process and save each item in turn."""
        report = BatchReport()
        for item in items:
            report.processed += 1
            outcome = BatchItemOutcome(title=item.title, source_url=item.source_url)
            processed = self.process(item)
            if processed.success:
                saved = self.save(processed)
                outcome.success = saved.success
                outcome.content_id = saved.content_id
                outcome.errors = saved.errors
            else:
                outcome.errors = processed.errors

            if outcome.success:
                report.saved += 1
            else:
                report.rejected += 1
            report.outcomes.append(outcome)

        logger.info(
            "Ingested batch: %d processed, %d saved, %d rejected",
            report.processed,
            report.saved,
            report.rejected,
        )
        return report

    # --- Queries & reporting ---

    def get_content(self, content_id: int) -> ContentRow | None:
        return self._store.get_content(content_id)

    def find_similar_content(self, item: ContentItem, limit: int = 5) -> list[ContentSummary]:
        """Exact fingerprint matches first, topped up with fuzzy title matches."""
        fingerprint = self._deduplicator.generate_fingerprint(item)
        similar = self._deduplicator.get_similar_content(fingerprint, limit)
        if len(similar) >= limit:
            return similar[:limit]

        seen = {s.id for s in similar}
        # Over-fetch so already-seen ids do not starve the top-up
        for candidate in self._deduplicator.find_potential_duplicates(item, limit + len(seen)):
            if candidate.id in seen:
                continue
            similar.append(candidate)
            seen.add(candidate.id)
            if len(similar) >= limit:
                break
        return similar

    def get_content_stats(self, recent: int = 5) -> ContentStats:
        rows = self._store.iter_content()
        distribution = Counter(self._scorer.category_for(r.quality_score) for r in rows)
        recent_rows = sorted(rows, key=lambda r: (r.created_at, r.id), reverse=True)[:recent]
        return ContentStats(
            total_count=len(rows),
            status_counts=dict(Counter(r.status for r in rows)),
            type_counts=dict(Counter(r.type for r in rows)),
            quality_distribution={bucket: distribution.get(bucket, 0) for bucket in _QUALITY_BUCKETS},
            recent_content=[ContentSummary.from_row(r) for r in recent_rows],
        )

    def reindex_content(self, batch_size: int | None = None, after_id: int = 0) -> ReindexReport:
        return self._deduplicator.reindex_content(
            self._settings.content_batch_size if batch_size is None else batch_size, after_id
        )

    def generate_duplicate_report(
        self,
        days: int | None = None,
        limit: int = 100,
        status: str | None = None,
    ) -> DuplicateReport:
        if days is None:
            days = self._settings.duplicates_lookback_days
        return self._deduplicator.generate_duplicate_report(days=days, limit=limit, status=status)

    def resolve_duplicate(self, log_id: int, resolution: str) -> bool:
        return self._deduplicator.resolve_duplicate(log_id, resolution)

    def assess_ai_quality(self, item: ContentItem) -> AIQualityAssessment:
        """AI quality assessment; all-zero and failing when no service is configured."""
        if self._enrichment is None:
            return AIQualityAssessment(recommendations=["AI quality assessment is not configured"])
        calculator = AIQualityCalculator(
            self._enrichment,
            min_threshold=self._settings.ai_quality_threshold,
            error_logger=self._error_logger,
        )
        return calculator.calculate_score(
            item.content, {"max_length": self._settings.ai_quality_max_length}
        )


def _to_row(item: ContentItem, fingerprint: str, quality_score: int) -> ContentRow:
    return ContentRow(
        type=item.type or "article",
        title=item.title,
        content=item.content,
        summary=item.summary or "",
        source_url=item.source_url.strip(),
        source_id=item.source_id or "",
        publish_date=item.publish_date,
        published_at=parse_publish_date(item.publish_date),
        status=item.status or "pending",
        extra=dict(item.extra),
        fingerprint=fingerprint,
        quality_score=quality_score,
        ai_metadata=item.ai_metadata,
    )


def _dump(model: Any) -> Any:
    if model is None:
        return None
    return model.model_dump(mode="json")
