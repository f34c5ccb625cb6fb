"""Persistence store: content rows, fingerprint index and duplicate log."""

from __future__ import annotations

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import ValidationError

from intake.models import (
    ContentIndexEntry,
    ContentRow,
    DuplicateLogEntry,
    StoreSnapshot,
    utcnow,
)

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """The store could not complete an operation."""


class FingerprintConflictError(StoreError):
    """Unique constraint on the index fingerprint was violated."""

    def __init__(self, fingerprint: str, existing_id: int) -> None:
        super().__init__(f"Fingerprint already indexed for content {existing_id}")
        self.fingerprint = fingerprint
        self.existing_id = existing_id


class ContentStore(ABC):
    # --- Content rows ---

    @abstractmethod
    def insert_content(self, row: ContentRow) -> int: ...

    @abstractmethod
    def update_content(self, content_id: int, row: ContentRow) -> bool: ...

    @abstractmethod
    def delete_content(self, content_id: int) -> bool: ...

    @abstractmethod
    def get_content(self, content_id: int) -> ContentRow | None: ...

    @abstractmethod
    def has_content(self, content_id: int) -> bool: ...

    @abstractmethod
    def iter_content(self, after_id: int = 0, limit: int | None = None) -> list[ContentRow]: ...

    @abstractmethod
    def count_content(self) -> int: ...

    @abstractmethod
    def find_by_title_terms(
        self,
        terms: list[str],
        content_type: str = "",
        exclude_id: int = 0,
        limit: int = 5,
    ) -> list[ContentRow]: ...

    # --- Fingerprint index ---

    @abstractmethod
    def insert_index(self, entry: ContentIndexEntry) -> None: ...

    @abstractmethod
    def update_index(self, entry: ContentIndexEntry) -> bool: ...

    @abstractmethod
    def delete_index(self, content_id: int) -> bool: ...

    @abstractmethod
    def get_index(self, content_id: int) -> ContentIndexEntry | None: ...

    @abstractmethod
    def find_index(
        self,
        fingerprint: str = "",
        content_key: str = "",
        exclude_id: int = 0,
        limit: int | None = None,
    ) -> list[ContentIndexEntry]: ...

    @abstractmethod
    def iter_index(self) -> list[ContentIndexEntry]: ...

    # --- Duplicate log ---

    @abstractmethod
    def insert_duplicate_log(self, entry: DuplicateLogEntry) -> int: ...

    @abstractmethod
    def update_duplicate_log(self, entry: DuplicateLogEntry) -> bool: ...

    @abstractmethod
    def list_duplicate_logs(self) -> list[DuplicateLogEntry]: ...


class InMemoryContentStore(ContentStore):
    """Dict-backed store enforcing a unique fingerprint in the index."""

    def __init__(self, snapshot: StoreSnapshot | None = None) -> None:
        self._lock = threading.RLock()
        self._load_snapshot(snapshot or StoreSnapshot())

    def _load_snapshot(self, snapshot: StoreSnapshot) -> None:
        self._next_content_id = snapshot.next_content_id
        self._next_log_id = snapshot.next_log_id
        self._content = {row.id: row for row in snapshot.content}
        self._index = {entry.content_id: entry for entry in snapshot.index}
        self._by_fingerprint = {entry.fingerprint: entry.content_id for entry in snapshot.index}
        self._duplicate_log = {entry.log_id: entry for entry in snapshot.duplicate_log}

    def snapshot(self) -> StoreSnapshot:
        with self._lock:
            return StoreSnapshot(
                next_content_id=self._next_content_id,
                next_log_id=self._next_log_id,
                content=[self._content[k] for k in sorted(self._content)],
                index=[self._index[k] for k in sorted(self._index)],
                duplicate_log=[self._duplicate_log[k] for k in sorted(self._duplicate_log)],
            )

    def _committed(self) -> None:
        """Hook called after every mutation; raising StoreError undoes it."""

    def _capture(self) -> tuple:
        return (
            self._next_content_id,
            self._next_log_id,
            dict(self._content),
            dict(self._index),
            dict(self._by_fingerprint),
            dict(self._duplicate_log),
        )

    def _restore(self, saved: tuple) -> None:
        (
            self._next_content_id,
            self._next_log_id,
            self._content,
            self._index,
            self._by_fingerprint,
            self._duplicate_log,
        ) = saved

    def _commit(self, saved: tuple) -> None:
        try:
            self._committed()
        except StoreError:
            self._restore(saved)
            raise

    # --- Content rows ---

    def insert_content(self, row: ContentRow) -> int:
        with self._lock:
            saved = self._capture()
            content_id = self._next_content_id
            self._next_content_id += 1
            now = utcnow()
            self._content[content_id] = row.model_copy(
                update={"id": content_id, "created_at": now, "updated_at": now}
            )
            self._commit(saved)
            return content_id

    def update_content(self, content_id: int, row: ContentRow) -> bool:
        with self._lock:
            existing = self._content.get(content_id)
            if existing is None:
                return False
            saved = self._capture()
            self._content[content_id] = row.model_copy(
                update={
                    "id": content_id,
                    "created_at": existing.created_at,
                    "ingestion_date": existing.ingestion_date,
                    "updated_at": utcnow(),
                }
            )
            self._commit(saved)
            return True

    def delete_content(self, content_id: int) -> bool:
        with self._lock:
            if content_id not in self._content:
                return False
            saved = self._capture()
            del self._content[content_id]
            self._commit(saved)
            return True

    def get_content(self, content_id: int) -> ContentRow | None:
        with self._lock:
            row = self._content.get(content_id)
            return row.model_copy(deep=True) if row else None

    def has_content(self, content_id: int) -> bool:
        with self._lock:
            return content_id in self._content

    def iter_content(self, after_id: int = 0, limit: int | None = None) -> list[ContentRow]:
        with self._lock:
            ids = [k for k in sorted(self._content) if k > after_id]
            if limit is not None:
                ids = ids[:limit]
            return [self._content[k].model_copy(deep=True) for k in ids]

    def count_content(self) -> int:
        with self._lock:
            return len(self._content)

    def find_by_title_terms(
        self,
        terms: list[str],
        content_type: str = "",
        exclude_id: int = 0,
        limit: int = 5,
    ) -> list[ContentRow]:
        lowered = [t.lower() for t in terms if t]
        if not lowered:
            return []
        with self._lock:
            matches = []
            for content_id in sorted(self._content):
                row = self._content[content_id]
                if content_id == exclude_id:
                    continue
                if content_type and row.type != content_type:
                    continue
                title = row.title.lower()
                if any(term in title for term in lowered):
                    matches.append(row.model_copy(deep=True))
                    if len(matches) >= limit:
                        break
            return matches

    # --- Fingerprint index ---

    def insert_index(self, entry: ContentIndexEntry) -> None:
        with self._lock:
            if entry.content_id in self._index:
                raise StoreError(f"Content {entry.content_id} is already indexed")
            self._check_fingerprint(entry.fingerprint, entry.content_id)
            saved = self._capture()
            self._index[entry.content_id] = entry
            self._by_fingerprint[entry.fingerprint] = entry.content_id
            self._commit(saved)

    def update_index(self, entry: ContentIndexEntry) -> bool:
        with self._lock:
            existing = self._index.get(entry.content_id)
            if existing is None:
                return False
            self._check_fingerprint(entry.fingerprint, entry.content_id)
            saved = self._capture()
            self._by_fingerprint.pop(existing.fingerprint, None)
            self._index[entry.content_id] = entry.model_copy(
                update={"created_at": existing.created_at, "updated_at": utcnow()}
            )
            self._by_fingerprint[entry.fingerprint] = entry.content_id
            self._commit(saved)
            return True

    def _check_fingerprint(self, fingerprint: str, content_id: int) -> None:
        owner = self._by_fingerprint.get(fingerprint)
        if owner is not None and owner != content_id:
            raise FingerprintConflictError(fingerprint, owner)

    def delete_index(self, content_id: int) -> bool:
        with self._lock:
            entry = self._index.get(content_id)
            if entry is None:
                return False
            saved = self._capture()
            del self._index[content_id]
            self._by_fingerprint.pop(entry.fingerprint, None)
            self._commit(saved)
            return True

    def get_index(self, content_id: int) -> ContentIndexEntry | None:
        with self._lock:
            return self._index.get(content_id)

    def find_index(
        self,
        fingerprint: str = "",
        content_key: str = "",
        exclude_id: int = 0,
        limit: int | None = None,
    ) -> list[ContentIndexEntry]:
        with self._lock:
            matches = [
                entry
                for content_id, entry in sorted(self._index.items())
                if content_id != exclude_id
                and (
                    (fingerprint and entry.fingerprint == fingerprint)
                    or (content_key and entry.content_key == content_key)
                )
            ]
        return matches[:limit] if limit is not None else matches

    def iter_index(self) -> list[ContentIndexEntry]:
        with self._lock:
            return [self._index[k] for k in sorted(self._index)]

    # --- Duplicate log ---

    def insert_duplicate_log(self, entry: DuplicateLogEntry) -> int:
        with self._lock:
            saved = self._capture()
            log_id = self._next_log_id
            self._next_log_id += 1
            self._duplicate_log[log_id] = entry.model_copy(update={"log_id": log_id})
            self._commit(saved)
            return log_id

    def update_duplicate_log(self, entry: DuplicateLogEntry) -> bool:
        with self._lock:
            if entry.log_id not in self._duplicate_log:
                return False
            saved = self._capture()
            self._duplicate_log[entry.log_id] = entry
            self._commit(saved)
            return True

    def list_duplicate_logs(self) -> list[DuplicateLogEntry]:
        with self._lock:
            return [self._duplicate_log[k] for k in sorted(self._duplicate_log)]


class JsonContentStore(InMemoryContentStore):
    """In-memory store persisted to a JSON file after every mutation.

    A mutation whose write fails is rolled back in memory before the
    StoreError propagates.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        super().__init__(self._read())

    def _read(self) -> StoreSnapshot:
        if not self._path.exists():
            return StoreSnapshot()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return StoreSnapshot.model_validate(raw)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise StoreError(f"Cannot load content store {self._path}") from exc

    def _committed(self) -> None:
        # Write a sibling file and swap it in whole
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(
                self.snapshot().model_dump_json(indent=2) + "\n",
                encoding="utf-8",
            )
            os.replace(tmp, self._path)
        except OSError as exc:
            raise StoreError(f"Cannot write content store {self._path}") from exc
