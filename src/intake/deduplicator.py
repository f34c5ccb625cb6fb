"""Fingerprint-based deduplication and maintenance of the content index."""

from __future__ import annotations

import hashlib
import logging
import re
from datetime import datetime, timedelta

from intake.error_log import ErrorLogger
from intake.models import (
    ContentIndexEntry,
    ContentItem,
    ContentRow,
    ContentSummary,
    DuplicateLogEntry,
    DuplicateReport,
    DuplicateReportEntry,
    ReindexReport,
    utcnow,
)
from intake.store import ContentStore, FingerprintConflictError, StoreError
from intake.text import collapse_whitespace, normalize

logger = logging.getLogger(__name__)

_DELIMITER = "||"
_DEFAULT_QUALITY_SCORE = 50
_MIN_TERM_LENGTH = 4

RESOLUTIONS = ("kept_new", "kept_existing", "ignored", "manually_resolved")

_STOP_WORDS = frozenset(
    {
        "a", "an", "the", "and", "or", "but", "is", "are", "was", "were",
        "in", "on", "at", "to", "for", "with", "by", "about", "like",
        "from", "of", "that", "this", "these", "those",
    }
)


def _digest(parts: list[str]) -> str:
    return hashlib.sha256(_DELIMITER.join(parts).encode("utf-8")).hexdigest()


def _plain(value: str | None) -> str:
    return collapse_whitespace(value or "").lower()


def generate_fingerprint(item: ContentItem | ContentRow) -> str:
    """SHA-256 over normalized title, content, url, publish date and source id."""
    return _digest(
        [
            normalize(item.title),
            normalize(item.content),
            _plain(item.source_url),
            _plain(item.publish_date),
            _plain(item.source_id),
        ]
    )


def generate_content_key(item: ContentItem | ContentRow) -> str:
    """Secondary key over body and url only, so retitled copies still collide."""
    return _digest([normalize(item.content), _plain(item.source_url)])


def extract_title_terms(title: str) -> list[str]:
    words = re.sub(r"[^\w\s]", " ", title.lower()).split()
    return [w for w in words if w not in _STOP_WORDS and len(w) > 2]


class ContentDeduplicator:
    def __init__(self, store: ContentStore, error_logger: ErrorLogger | None = None) -> None:
        self._store = store
        self._error_logger = error_logger or ErrorLogger()

    generate_fingerprint = staticmethod(generate_fingerprint)
    generate_content_key = staticmethod(generate_content_key)

    def is_duplicate(
        self,
        fingerprint: str,
        exclude_id: int = 0,
        content_key: str = "",
    ) -> int | None:
        """Return the id of an indexed item with the same fingerprint or content key."""
        for key in ({"fingerprint": fingerprint}, {"content_key": content_key}):
            if not any(key.values()):
                continue
            matches = self._store.find_index(exclude_id=exclude_id, limit=1, **key)
            if matches:
                return matches[0].content_id
        return None

    def add_to_index(
        self,
        content_id: int,
        fingerprint: str,
        quality_score: int,
        content_key: str = "",
    ) -> bool:
        """Insert (or refresh) the index row for ``content_id``.

        Returns False when the store fails. A unique-fingerprint violation is
        raised as FingerprintConflictError so callers can report a duplicate.
        """
        entry = ContentIndexEntry(
            content_id=content_id,
            fingerprint=fingerprint,
            content_key=content_key,
            quality_score=quality_score,
        )
        try:
            if self._store.get_index(content_id) is not None:
                return self._store.update_index(entry)
            self._store.insert_index(entry)
            return True
        except FingerprintConflictError:
            raise
        except StoreError as exc:
            self._error_logger.log(
                "content_index",
                "index_write_failed",
                str(exc),
                {"content_id": content_id, "fingerprint": fingerprint},
                "error",
            )
            return False

    def update_index(
        self,
        content_id: int,
        fingerprint: str,
        quality_score: int,
        content_key: str = "",
    ) -> bool:
        return self.add_to_index(content_id, fingerprint, quality_score, content_key)

    def remove_from_index(self, content_id: int) -> bool:
        """Idempotent: removing an id that is not indexed still succeeds."""
        try:
            self._store.delete_index(content_id)
        except StoreError as exc:
            self._error_logger.log(
                "content_index",
                "index_delete_failed",
                str(exc),
                {"content_id": content_id},
                "error",
            )
            return False
        return True

    def get_duplicate_details(self, content_id: int) -> ContentSummary | None:
        row = self._store.get_content(content_id)
        return ContentSummary.from_row(row) if row else None

    def get_similar_content(self, fingerprint: str, limit: int = 5) -> list[ContentSummary]:
        similar = []
        for entry in self._store.find_index(fingerprint=fingerprint, limit=limit):
            row = self._store.get_content(entry.content_id)
            if row is not None:
                similar.append(ContentSummary.from_row(row))
        return similar

    def find_potential_duplicates(
        self,
        item: ContentItem,
        limit: int = 5,
        exclude_id: int = 0,
    ) -> list[ContentSummary]:
        """Fuzzy lookup: stored items of the same type sharing significant title terms."""
        if not item.title.strip():
            return []
        terms = [t for t in extract_title_terms(item.title) if len(t) >= _MIN_TERM_LENGTH]
        if not terms:
            return []
        rows = self._store.find_by_title_terms(
            terms,
            content_type=item.type,
            exclude_id=exclude_id,
            limit=limit,
        )
        return [ContentSummary.from_row(row) for row in rows]

    def reindex_content(self, batch_size: int = 50, after_id: int = 0) -> ReindexReport:
        """Rebuild the index for one page of content rows after ``after_id``.

        Missing entries are added and stale fingerprints refreshed. Index
        entries whose content row is gone are dropped once per pass, on the
        first page (``after_id == 0``). ``last_id`` in the report is the
        cursor for the next call.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        report = ReindexReport(last_id=after_id)
        if after_id == 0:
            report.orphans_removed = self._remove_orphans()

        page = self._store.iter_content(after_id=after_id, limit=batch_size)
        for row in page:
            report.last_id = row.id
            fingerprint = generate_fingerprint(row)
            content_key = generate_content_key(row)
            existing = self._store.get_index(row.id)
            if (
                existing is not None
                and existing.fingerprint == fingerprint
                and existing.content_key == content_key
            ):
                continue

            report.processed += 1
            duplicate_id = self.is_duplicate(fingerprint, row.id, content_key)
            if duplicate_id is not None:
                report.duplicates += 1
                self._log_duplicate(row.id, duplicate_id, fingerprint)

            quality_score = row.quality_score or _DEFAULT_QUALITY_SCORE
            try:
                added = self.add_to_index(row.id, fingerprint, quality_score, content_key)
            except FingerprintConflictError:
                # Exact collision stays unindexed until resolved via the duplicate log
                report.errors += 1
                continue

            if not added:
                report.errors += 1
            elif existing is None:
                report.success += 1
            else:
                report.repaired += 1

        report.has_more = len(page) == batch_size
        if report.processed == 0 and report.orphans_removed == 0:
            report.message = "No content found that needs reindexing."
        else:
            report.message = (
                f"Processed {report.processed} items: {report.success} indexed, "
                f"{report.repaired} repaired, {report.duplicates} duplicates found, "
                f"{report.errors} errors, {report.orphans_removed} orphans removed"
            )
        logger.info("Reindex: %s (last_id=%d)", report.message, report.last_id)
        return report

    def _remove_orphans(self) -> int:
        removed = 0
        for entry in self._store.iter_index():
            if not self._store.has_content(entry.content_id):
                if self._store.delete_index(entry.content_id):
                    removed += 1
        return removed

    def _log_duplicate(self, content_id: int, duplicate_id: int, fingerprint: str) -> None:
        for entry in self._store.list_duplicate_logs():
            if (
                entry.content_id == content_id
                and entry.duplicate_id == duplicate_id
                and entry.resolution is None
            ):
                return
        self._store.insert_duplicate_log(
            DuplicateLogEntry(
                content_id=content_id,
                duplicate_id=duplicate_id,
                fingerprint=fingerprint,
            )
        )

    def generate_duplicate_report(
        self,
        days: int = 30,
        limit: int = 100,
        status: str | None = None,
        now: datetime | None = None,
    ) -> DuplicateReport:
        """Duplicate-log entries from the last ``days`` days, newest first.

        ``status`` is None (all), "pending", "resolved", or a concrete resolution.
        """
        cutoff = (now or utcnow()) - timedelta(days=days)
        entries = [
            e
            for e in self._store.list_duplicate_logs()
            if e.created_at >= cutoff and _matches_status(e, status)
        ]
        entries.sort(key=lambda e: (e.created_at, e.log_id), reverse=True)

        duplicates = [self._report_entry(e) for e in entries[:limit]]
        return DuplicateReport(
            status="success",
            message=f"Found {len(duplicates)} duplicate entries",
            duplicates=duplicates,
            total=len(entries),
        )

    def _report_entry(self, entry: DuplicateLogEntry) -> DuplicateReportEntry:
        content = self._store.get_content(entry.content_id)
        duplicate = self._store.get_content(entry.duplicate_id)
        return DuplicateReportEntry(
            **entry.model_dump(),
            content_title=content.title if content else None,
            content_url=content.source_url if content else None,
            content_score=content.quality_score if content else None,
            content_status=content.status if content else None,
            duplicate_title=duplicate.title if duplicate else None,
            duplicate_url=duplicate.source_url if duplicate else None,
            duplicate_score=duplicate.quality_score if duplicate else None,
            duplicate_status=duplicate.status if duplicate else None,
        )

    def resolve_duplicate(self, log_id: int, resolution: str) -> bool:
        if resolution not in RESOLUTIONS:
            return False
        for entry in self._store.list_duplicate_logs():
            if entry.log_id == log_id:
                resolved = entry.model_copy(
                    update={"resolution": resolution, "resolved_at": utcnow()}
                )
                return self._store.update_duplicate_log(resolved)
        return False


def _matches_status(entry: DuplicateLogEntry, status: str | None) -> bool:
    if status is None:
        return True
    if status == "pending":
        return entry.resolution is None
    if status == "resolved":
        return entry.resolution is not None
    return entry.resolution == status
