"""RSS/Atom feed adapter producing content items for the pipeline."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from pathlib import Path

import feedparser
import httpx

from intake.models import ContentItem
from intake.text import strip_tags

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT = 15.0
_IMG_SRC = re.compile(r"""<img[^>]+src=['"]([^'"]+)['"]""", re.IGNORECASE)


def load_feed_urls(feeds_path: str) -> list[str]:
    """Load feed URLs from a text file (one per line, # comments)."""
    path = Path(feeds_path)
    if not path.exists():
        return []
    urls = []
    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            urls.append(stripped)
    return urls


def _parse_published(entry: dict) -> str | None:
    for key in ("published_parsed", "updated_parsed"):
        parsed = entry.get(key)
        if parsed:
            try:
                return datetime(*parsed[:6], tzinfo=timezone.utc).isoformat()
            except (TypeError, ValueError):
                continue
    return None


def _entry_content(entry: dict) -> str:
    blocks = entry.get("content") or []
    for block in blocks:
        value = block.get("value") if isinstance(block, dict) else None
        if value:
            return value
    return entry.get("summary", entry.get("description", ""))


def _extract_image(entry: dict, content: str) -> str | None:
    for enclosure in entry.get("enclosures") or []:
        if str(enclosure.get("type", "")).startswith("image/") and enclosure.get("href"):
            return enclosure["href"]
    match = _IMG_SRC.search(content)
    return match.group(1) if match else None


def entry_to_item(entry: dict, feed_title: str = "") -> ContentItem | None:
    """Map one feedparser entry to a ContentItem; None when title/link/body are missing."""
    title = strip_tags(entry.get("title", ""))
    link = entry.get("link", "")
    content = _entry_content(entry)
    if not title or not link or not content:
        return None

    summary_raw = entry.get("summary", "")
    summary = strip_tags(summary_raw) if summary_raw and summary_raw != content else None

    extra: dict = {
        "feed_id": entry.get("id", ""),
        "feed_title": feed_title,
        "author": entry.get("author"),
        "categories": [t.get("term", "") for t in entry.get("tags") or [] if t.get("term")],
    }
    image = _extract_image(entry, content)
    if image:
        extra["image"] = image

    return ContentItem(
        type="article",
        title=title,
        content=content,
        summary=summary,
        source_url=link,
        source_id=entry.get("id") or None,
        publish_date=_parse_published(entry),
        extra=extra,
    )


def fetch_feed(feed_url: str, max_items: int = 50) -> list[ContentItem]:
    """Fetch one feed and convert its newest entries. Network failures return []."""
    try:
        with httpx.Client(follow_redirects=True, timeout=_REQUEST_TIMEOUT) as client:
            response = client.get(feed_url)
            response.raise_for_status()
            body = response.text
    except httpx.HTTPError:
        logger.warning("Failed to fetch feed %s", feed_url, exc_info=True)
        return []

    feed = feedparser.parse(body)
    if feed.bozo and not feed.entries:
        logger.warning("Feed parse error for %s: %s", feed_url, feed.bozo_exception)
        return []

    feed_title = feed.feed.get("title", "") if getattr(feed, "feed", None) else ""
    items = []
    for entry in feed.entries[:max_items]:
        item = entry_to_item(entry, feed_title)
        if item is not None:
            items.append(item)

    logger.info("Feed %s: %d items", feed_url, len(items))
    return items


def fetch_feeds(feed_urls: list[str], max_items: int = 50) -> list[ContentItem]:
    items: list[ContentItem] = []
    for feed_url in feed_urls:
        items.extend(fetch_feed(feed_url, max_items=max_items))
    return items
