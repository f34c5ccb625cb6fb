"""Text normalization helpers shared by validation, fingerprinting and scoring."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from html import unescape

_SCRIPT_STYLE = re.compile(r"<(script|style)[^>]*?>.*?</\1>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]+>")
_WHITESPACE = re.compile(r"\s+")
_WORD = re.compile(r"[^\W\d_]+(?:['-][^\W\d_]+)*")
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n|\r\n\s*\r\n|\r\s*\r")

_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
)


def strip_tags(text: str | None) -> str:
    """Remove HTML tags (and script/style bodies), unescape entities."""
    if not text:
        return ""
    clean = _SCRIPT_STYLE.sub("", text)
    clean = _TAG.sub("", clean)
    return unescape(clean).strip()


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def normalize(text: str | None) -> str:
    """Markup-stripped, whitespace-collapsed, lower-cased text."""
    return collapse_whitespace(strip_tags(text)).lower()


def word_count(text: str) -> int:
    return len(_WORD.findall(text))


def split_paragraphs(text: str) -> list[str]:
    return _PARAGRAPH_BREAK.split(text)


def has_markup(text: str | None) -> bool:
    """True when the raw text carries markup beyond its stripped form."""
    if not text:
        return False
    return len(text) > len(strip_tags(text))


def parse_publish_date(value: str | None) -> datetime | None:
    """Parse an ISO-ish or RFC 2822 date string to an aware UTC datetime.

    Returns None when the value is empty or cannot be parsed. Naive values are
    assumed to be UTC.
    """
    if not value or not value.strip():
        return None
    raw = value.strip()
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except (ValueError, OverflowError):
        pass

    if parsed is None:
        try:
            parsed = parsedate_to_datetime(raw)
        except (TypeError, ValueError, IndexError, OverflowError):
            parsed = None

    if parsed is None:
        for fmt in _DATE_FORMATS:
            try:
                parsed = datetime.strptime(raw, fmt)
                break
            except (ValueError, OverflowError):
                continue

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        # Offset pushes the instant outside datetime's range
        return None
