"""Unified error log: python logging plus a queryable record list and JSONL file."""

from __future__ import annotations

import logging
from collections import deque
from pathlib import Path
from typing import Any

from intake.models import ErrorLogEntry

logger = logging.getLogger(__name__)

_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class ErrorLogger:
    """Keeps the most recent ``max_entries`` records in memory; the JSONL file keeps all."""

    def __init__(self, path: str | Path | None = None, max_entries: int = 1000) -> None:
        self._path = Path(path) if path else None
        self._entries: deque[ErrorLogEntry] = deque(maxlen=max_entries)

    def log(
        self,
        context: str,
        error_type: str,
        message: str,
        data: dict[str, Any] | None = None,
        severity: str = "error",
    ) -> ErrorLogEntry:
        if severity not in _LEVELS:
            raise ValueError(f"Unknown severity: {severity}")

        entry = ErrorLogEntry(
            context=context,
            error_type=error_type,
            message=message,
            data=data or {},
            severity=severity,
        )
        self._entries.append(entry)
        logger.log(_LEVELS[severity], "[%s/%s] %s", context, error_type, message)

        if self._path is not None:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as fh:
                    fh.write(entry.model_dump_json() + "\n")
            except OSError:
                logger.warning("Failed to append to error log %s", self._path, exc_info=True)
        return entry

    def entries(
        self,
        context: str | None = None,
        severity: str | None = None,
    ) -> list[ErrorLogEntry]:
        return [
            e
            for e in self._entries
            if (context is None or e.context == context)
            and (severity is None or e.severity == severity)
        ]
