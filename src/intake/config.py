"""Configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    quality_score_excellent: int = 90
    quality_score_good: int = 70
    quality_score_average: int = 50
    quality_score_poor: int = 30
    quality_score_minimum: int = 40
    quality_score_auto_reject: int = 25
    content_batch_size: int = 50
    duplicates_lookback_days: int = 30
    ai_quality_threshold: float = 6.0
    ai_quality_max_length: int = 1500
    ai_enrichment_enabled: bool = False
    gemini_api_key: str = ""
    model_id: str = "gemini-2.5-flash"
    ai_request_timeout_seconds: float = 30.0
    store_path: str = "data/content.json"
    error_log_path: str = ""
    error_log_max_entries: int = 1000
    feeds_path: str = "data/feeds.txt"
    rss_max_items: int = 50

    @classmethod
    def from_env(cls) -> Settings:
        api_key = os.environ.get("GEMINI_API_KEY", "")
        return cls(
            quality_score_excellent=int(os.environ.get("ASAP_QUALITY_SCORE_EXCELLENT", "90")),
            quality_score_good=int(os.environ.get("ASAP_QUALITY_SCORE_GOOD", "70")),
            quality_score_average=int(os.environ.get("ASAP_QUALITY_SCORE_AVERAGE", "50")),
            quality_score_poor=int(os.environ.get("ASAP_QUALITY_SCORE_POOR", "30")),
            quality_score_minimum=int(os.environ.get("ASAP_QUALITY_SCORE_MINIMUM", "40")),
            quality_score_auto_reject=int(
                os.environ.get("ASAP_QUALITY_SCORE_AUTO_REJECT", "25")
            ),
            content_batch_size=int(os.environ.get("ASAP_CONTENT_BATCH_SIZE", "50")),
            duplicates_lookback_days=int(
                os.environ.get("ASAP_DUPLICATES_LOOKBACK_DAYS", "30")
            ),
            ai_quality_threshold=float(os.environ.get("AI_QUALITY_THRESHOLD", "6.0")),
            ai_quality_max_length=int(os.environ.get("AI_QUALITY_MAX_LENGTH", "1500")),
            ai_enrichment_enabled=_env_bool("AI_ENRICHMENT_ENABLED", bool(api_key)),
            gemini_api_key=api_key,
            model_id=os.environ.get("GEMINI_MODEL_ID", "gemini-2.5-flash"),
            ai_request_timeout_seconds=float(
                os.environ.get("AI_REQUEST_TIMEOUT_SECONDS", "30")
            ),
            store_path=os.environ.get("CONTENT_STORE_PATH", "data/content.json"),
            error_log_path=os.environ.get("ERROR_LOG_PATH", "data/error_log.jsonl"),
            error_log_max_entries=int(os.environ.get("ERROR_LOG_MAX_ENTRIES", "1000")),
            feeds_path=os.environ.get("FEEDS_PATH", "data/feeds.txt"),
            rss_max_items=int(os.environ.get("RSS_MAX_ITEMS", "50")),
        )
