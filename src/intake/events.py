"""Domain events for external subscribers."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable

from intake.models import ContentRow

logger = logging.getLogger(__name__)

CONTENT_ADDED = "content_added"
CONTENT_UPDATED = "content_updated"
CONTENT_DELETED = "content_deleted"

_EVENTS = (CONTENT_ADDED, CONTENT_UPDATED, CONTENT_DELETED)

Subscriber = Callable[[int, ContentRow], None]


class EventDispatcher:
    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)

    def subscribe(self, event: str, callback: Subscriber) -> None:
        if event not in _EVENTS:
            raise ValueError(f"Unknown event: {event}")
        self._subscribers[event].append(callback)

    def unsubscribe(self, event: str, callback: Subscriber) -> None:
        if callback in self._subscribers.get(event, []):
            self._subscribers[event].remove(callback)

    def emit(self, event: str, content_id: int, row: ContentRow) -> None:
        """Deliver to every subscriber; one failing subscriber does not stop the rest."""
        for callback in list(self._subscribers.get(event, [])):
            try:
                callback(content_id, row)
            except Exception:
                logger.exception("Subscriber for %s failed (content_id=%d)", event, content_id)
