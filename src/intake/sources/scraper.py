"""Full-text article scraping with trafilatura."""

from __future__ import annotations

import logging

import trafilatura

from intake.models import ContentItem
from intake.text import strip_tags

logger = logging.getLogger(__name__)

_THIN_CONTENT_CHARS = 500


def scrape_text(url: str) -> str | None:
    """Download and extract article text. Returns None on failure."""
    try:
        downloaded = trafilatura.fetch_url(url)
        if downloaded is None:
            return None
        return trafilatura.extract(downloaded) or None
    except Exception:
        logger.warning("Scrape failed for %s", url, exc_info=True)
        return None


def fill_thin_content(item: ContentItem, min_chars: int = _THIN_CONTENT_CHARS) -> ContentItem:
    """Replace a feed snippet with the scraped article body when the snippet is thin."""
    if len(strip_tags(item.content)) >= min_chars or not item.source_url:
        return item

    text = scrape_text(item.source_url)
    if not text or len(text) <= len(strip_tags(item.content)):
        return item

    summary = item.summary or strip_tags(item.content) or None
    extra = {**item.extra, "scraped": True}
    return item.model_copy(update={"content": text, "summary": summary, "extra": extra})
