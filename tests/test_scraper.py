"""Tests for full-text scraping of thin feed entries."""

from unittest.mock import patch

from intake.models import ContentItem
from intake.sources.scraper import fill_thin_content, scrape_text

ARTICLE_TEXT = "Full article text. " * 60


def _item(content="<p>Short teaser.</p>", **kwargs) -> ContentItem:
    return ContentItem(
        type="article",
        title="Story",
        content=content,
        source_url="https://example.com/a",
        **kwargs,
    )


def test_scrape_text():
    with patch("intake.sources.scraper.trafilatura") as mock_traf:
        mock_traf.fetch_url.return_value = "<html>...</html>"
        mock_traf.extract.return_value = "Extracted text."
        assert scrape_text("https://example.com/a") == "Extracted text."


def test_scrape_text_download_failed():
    with patch("intake.sources.scraper.trafilatura") as mock_traf:
        mock_traf.fetch_url.return_value = None
        assert scrape_text("https://example.com/a") is None
        mock_traf.extract.assert_not_called()


def test_scrape_text_swallows_errors():
    with patch("intake.sources.scraper.trafilatura") as mock_traf:
        mock_traf.fetch_url.side_effect = RuntimeError("timeout")
        assert scrape_text("https://example.com/a") is None


def test_fill_thin_content():
    with patch("intake.sources.scraper.scrape_text", return_value=ARTICLE_TEXT) as mock_scrape:
        item = fill_thin_content(_item())

    mock_scrape.assert_called_once_with("https://example.com/a")
    assert item.content == ARTICLE_TEXT
    assert item.summary == "Short teaser."
    assert item.extra["scraped"] is True


def test_fill_thin_content_keeps_existing_summary():
    with patch("intake.sources.scraper.scrape_text", return_value=ARTICLE_TEXT):
        item = fill_thin_content(_item(summary="Feed summary."))
    assert item.summary == "Feed summary."


def test_rich_content_not_scraped():
    with patch("intake.sources.scraper.scrape_text") as mock_scrape:
        item = fill_thin_content(_item(content=ARTICLE_TEXT))
    mock_scrape.assert_not_called()
    assert "scraped" not in item.extra


def test_failed_scrape_keeps_original():
    original = _item()
    with patch("intake.sources.scraper.scrape_text", return_value=None):
        assert fill_thin_content(original) == original
