"""Command-line entry point for ingestion and maintenance."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import BaseModel, TypeAdapter, ValidationError

from intake.config import Settings
from intake.enrichment import GeminiEnrichmentService
from intake.error_log import ErrorLogger
from intake.gemini import GeminiClient
from intake.models import ContentItem
from intake.processor import ContentProcessor
from intake.sources.rss_feeds import fetch_feeds, load_feed_urls
from intake.sources.scraper import fill_thin_content
from intake.store import JsonContentStore

logger = logging.getLogger(__name__)

_items_adapter = TypeAdapter(list[ContentItem])


def build_processor(settings: Settings) -> ContentProcessor:
    enrichment = None
    if settings.gemini_api_key and settings.ai_enrichment_enabled:
        enrichment = GeminiEnrichmentService(GeminiClient(settings))
    return ContentProcessor(
        settings,
        JsonContentStore(settings.store_path),
        enrichment=enrichment,
        error_logger=ErrorLogger(settings.error_log_path or None, settings.error_log_max_entries),
    )


def _print(model: BaseModel) -> None:
    sys.stdout.write(model.model_dump_json(indent=2) + "\n")


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="intake", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    ingest = sub.add_parser("ingest", help="process and save items from a JSON file")
    ingest.add_argument("path", help="JSON file holding a list of content items")

    feeds = sub.add_parser("feeds", help="ingest the configured RSS feeds")
    feeds.add_argument("--scrape", action="store_true", help="fetch full text for thin entries")

    sub.add_parser("stats", help="print content statistics")

    reindex = sub.add_parser("reindex", help="rebuild one page of the fingerprint index")
    reindex.add_argument("--batch-size", type=_positive_int, default=None)
    reindex.add_argument("--after-id", type=int, default=0)

    duplicates = sub.add_parser("duplicates", help="print the duplicate report")
    duplicates.add_argument("--days", type=int, default=None)
    duplicates.add_argument("--limit", type=int, default=100)
    duplicates.add_argument("--status", default=None)

    delete = sub.add_parser("delete", help="delete a content item")
    delete.add_argument("content_id", type=int)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = _build_parser().parse_args(argv)
    settings = Settings.from_env()
    processor = build_processor(settings)

    if args.command == "ingest":
        raw = Path(args.path).read_text(encoding="utf-8")
        try:
            items = _items_adapter.validate_json(raw)
        except ValidationError as exc:
            raise SystemExit(
                f"Invalid items file {args.path}: {exc.error_count()} validation error(s)"
            ) from None
        _print(processor.ingest(items))
    elif args.command == "feeds":
        urls = load_feed_urls(settings.feeds_path)
        if not urls:
            raise SystemExit(f"No feed URLs found in {settings.feeds_path}")
        items = fetch_feeds(urls, max_items=settings.rss_max_items)
        if args.scrape:
            items = [fill_thin_content(item) for item in items]
        _print(processor.ingest(items))
    elif args.command == "stats":
        _print(processor.get_content_stats())
    elif args.command == "reindex":
        _print(processor.reindex_content(args.batch_size, args.after_id))
    elif args.command == "duplicates":
        _print(processor.generate_duplicate_report(args.days, args.limit, args.status))
    elif args.command == "delete":
        deleted = processor.delete(args.content_id)
        sys.stdout.write(json.dumps({"deleted": deleted}) + "\n")
        return 0 if deleted else 1
    return 0
