"""Tests for content validation."""

from datetime import datetime, timezone

import pytest

from intake.models import ContentItem
from intake.validator import ContentValidator, detect_keyword_stuffing


def test_valid_article(article: ContentItem):
    valid, result = ContentValidator().validate(article)
    assert valid
    assert result.errors == {}


def test_missing_title_and_short_content_report_both():
    item = ContentItem(type="article", content="0123456789", source_url="https://example.com/a")
    valid, result = ContentValidator().validate(item)
    assert not valid
    assert result.errors["title"] == "Title is required"
    assert result.errors["content"] == "Content must be at least 100 characters long"


def test_required_fields_all_missing():
    errors = ContentValidator().validate_required_fields(ContentItem())
    assert set(errors) == {"type", "title", "content", "source_url"}


def test_whitespace_only_field_is_missing(article: ContentItem):
    item = article.model_copy(update={"title": "   "})
    errors = ContentValidator().validate_required_fields(item)
    assert "title" in errors


def test_short_summary(article: ContentItem):
    item = article.model_copy(update={"summary": "short"})
    valid, result = ContentValidator().validate(item)
    assert not valid
    assert result.errors["summary"] == "Summary must be at least 10 characters long"


def test_length_measured_on_stripped_text():
    item = ContentItem(title="<b>Hi</b>")
    errors = ContentValidator().validate_content_length(item)
    assert "title" in errors


def test_url_without_scheme():
    item = ContentItem(source_url="example.com/a")
    errors = ContentValidator().validate_source_url(item)
    assert errors["source_url"] == "Source URL must include scheme (http/https) and domain"


def test_url_malformed():
    validator = ContentValidator()
    assert "source_url" in validator.validate_source_url(ContentItem(source_url="http://exa mple.com"))
    assert "source_url" in validator.validate_source_url(ContentItem(source_url="http://example.com:abc/"))


def test_url_valid():
    item = ContentItem(source_url="https://example.com/news/1?ref=rss")
    assert ContentValidator().validate_source_url(item) == {}


def test_unparsable_date_is_error(article: ContentItem):
    item = article.model_copy(update={"publish_date": "not a date"})
    valid, result = ContentValidator().validate(item)
    assert not valid
    assert result.errors["publish_date"] == "Invalid publish date format"


@pytest.mark.parametrize("raw", ["0001-01-01T00:00:00+05:00", "9999-12-31T23:59:59-01:00"])
def test_date_outside_utc_range_is_error(article: ContentItem, raw: str):
    item = article.model_copy(update={"publish_date": raw})
    valid, result = ContentValidator().validate(item)
    assert not valid
    assert result.errors["publish_date"] == "Invalid publish date format"


def test_future_date_is_warning(article: ContentItem):
    item = article.model_copy(update={"publish_date": "2025-06-01T00:00:00Z"})
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    valid, result = ContentValidator().validate(item, now=now)
    assert valid
    assert result.warnings["publish_date"] == "Publish date is in the future"


def test_past_date_is_clean(article: ContentItem):
    item = article.model_copy(update={"publish_date": "2024-12-01"})
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    errors, warnings = ContentValidator().validate_publish_date(item, now=now)
    assert errors == {}
    assert warnings == {}


def test_title_too_long_for_content():
    item = ContentItem(title="A rather long title for a body", content="Short body text here.")
    errors = ContentValidator().validate_content_quality(item)
    assert "title_length" in errors


def test_too_few_words():
    item = ContentItem(content="Only a handful of words in this body.")
    errors = ContentValidator().validate_content_quality(item)
    assert "content_words" in errors


def test_keyword_stuffing_detected():
    item = ContentItem(content="spam " * 2000)
    errors = ContentValidator().validate_content_quality(item)
    assert "keyword_stuffing" in errors


def test_keyword_stuffing_needs_enough_words():
    assert not detect_keyword_stuffing("spam " * 99)


def test_keyword_stuffing_ignores_short_words():
    words = " ".join(["the"] * 50 + [f"word{i}" for i in range(100)])
    assert not detect_keyword_stuffing(words)


def test_errors_accumulate_across_rules():
    item = ContentItem(
        type="article",
        title="Hi",
        content="spam " * 30,
        source_url="example.com",
        publish_date="yesterday-ish",
    )
    valid, result = ContentValidator().validate(item)
    assert not valid
    assert {"title", "source_url", "publish_date", "content_words"} <= set(result.errors)
