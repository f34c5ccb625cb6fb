"""Structural and quality-heuristic validation of content items."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from urllib.parse import urlparse

from intake.models import ContentItem, ValidationResult
from intake.text import parse_publish_date, strip_tags, word_count

_REQUIRED_FIELDS = {
    "type": "Content type is required",
    "title": "Title is required",
    "content": "Content body is required",
    "source_url": "Source URL is required",
}

_MIN_LENGTHS = {
    "title": 5,
    "content": 100,
    "summary": 10,
}

_MAX_TITLE_RATIO = 0.2
_MIN_WORDS = 50
_STUFFING_MIN_WORDS = 100
_STUFFING_MAX_SHARE = 0.05
_STUFFING_MIN_WORD_LENGTH = 4


class ContentValidator:
    """Runs every rule independently; errors accumulate across rules."""

    def validate(
        self,
        item: ContentItem,
        now: datetime | None = None,
    ) -> tuple[bool, ValidationResult]:
        result = ValidationResult()
        result.errors.update(self.validate_required_fields(item))
        result.errors.update(self.validate_content_length(item))

        date_errors, date_warnings = self.validate_publish_date(item, now=now)
        result.errors.update(date_errors)
        result.warnings.update(date_warnings)

        result.errors.update(self.validate_source_url(item))
        result.errors.update(self.validate_content_quality(item))
        return result.valid, result

    def validate_required_fields(self, item: ContentItem) -> dict[str, str]:
        errors: dict[str, str] = {}
        for field_name, message in _REQUIRED_FIELDS.items():
            value = getattr(item, field_name)
            if not value or not str(value).strip():
                errors[field_name] = message
        return errors

    def validate_content_length(self, item: ContentItem) -> dict[str, str]:
        errors: dict[str, str] = {}
        for field_name, min_length in _MIN_LENGTHS.items():
            value = getattr(item, field_name)
            # Empty required fields are reported by validate_required_fields
            if not value:
                continue
            if len(strip_tags(value)) < min_length:
                errors[field_name] = (
                    f"{field_name.capitalize()} must be at least {min_length} characters long"
                )
        return errors

    def validate_publish_date(
        self,
        item: ContentItem,
        now: datetime | None = None,
    ) -> tuple[dict[str, str], dict[str, str]]:
        """Returns (errors, warnings). A future date is only a warning."""
        if not item.publish_date or not item.publish_date.strip():
            return {}, {}

        parsed = parse_publish_date(item.publish_date)
        if parsed is None:
            return {"publish_date": "Invalid publish date format"}, {}

        now = now or datetime.now(timezone.utc)
        if parsed > now:
            return {}, {"publish_date": "Publish date is in the future"}
        return {}, {}

    def validate_source_url(self, item: ContentItem) -> dict[str, str]:
        url = item.source_url.strip()
        if not url:
            return {}

        if any(ch.isspace() for ch in url):
            return {"source_url": "Source URL is not a valid URL format"}

        try:
            parts = urlparse(url)
            # Accessing port validates it
            parts.port
        except ValueError:
            return {"source_url": "Source URL is not a valid URL format"}

        if not parts.scheme or not parts.netloc or not parts.hostname:
            return {"source_url": "Source URL must include scheme (http/https) and domain"}
        return {}

    def validate_content_quality(self, item: ContentItem) -> dict[str, str]:
        if not item.content:
            return {}

        errors: dict[str, str] = {}
        content = strip_tags(item.content)

        if item.title:
            title_length = len(strip_tags(item.title))
            content_length = len(content)
            if content_length > 0 and title_length > content_length * _MAX_TITLE_RATIO:
                errors["title_length"] = "Title is too long compared to content body"

        if word_count(content) < _MIN_WORDS:
            errors["content_words"] = f"Content should have at least {_MIN_WORDS} words"

        if detect_keyword_stuffing(content):
            errors["keyword_stuffing"] = "Content appears to contain keyword stuffing"

        return errors


def detect_keyword_stuffing(text: str) -> bool:
    """Flag text where a single longer word exceeds 5% of all words."""
    words = text.lower().split()
    total = len(words)
    if total < _STUFFING_MIN_WORDS:
        return False

    threshold = total * _STUFFING_MAX_SHARE
    counts = Counter(w for w in words if len(w) >= _STUFFING_MIN_WORD_LENGTH)
    return any(count > threshold for count in counts.values())
