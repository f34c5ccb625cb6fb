"""Tests for environment-based settings."""

from intake.config import Settings


def test_defaults():
    settings = Settings()
    assert settings.quality_score_minimum == 40
    assert settings.quality_score_auto_reject == 25
    assert settings.content_batch_size == 50
    assert settings.duplicates_lookback_days == 30
    assert settings.ai_quality_threshold == 6.0
    assert not settings.ai_enrichment_enabled
    assert settings.error_log_max_entries == 1000


def test_from_env(monkeypatch):
    monkeypatch.setenv("ASAP_QUALITY_SCORE_MINIMUM", "55")
    monkeypatch.setenv("ASAP_QUALITY_SCORE_AUTO_REJECT", "0")
    monkeypatch.setenv("ASAP_CONTENT_BATCH_SIZE", "10")
    monkeypatch.setenv("AI_QUALITY_THRESHOLD", "7.5")
    monkeypatch.setenv("CONTENT_STORE_PATH", "/tmp/store.json")
    monkeypatch.setenv("ERROR_LOG_MAX_ENTRIES", "200")
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("AI_ENRICHMENT_ENABLED", raising=False)

    settings = Settings.from_env()
    assert settings.quality_score_minimum == 55
    assert settings.quality_score_auto_reject == 0
    assert settings.content_batch_size == 10
    assert settings.ai_quality_threshold == 7.5
    assert settings.store_path == "/tmp/store.json"
    assert settings.error_log_max_entries == 200
    assert not settings.ai_enrichment_enabled


def test_enrichment_follows_api_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "key")
    monkeypatch.delenv("AI_ENRICHMENT_ENABLED", raising=False)
    assert Settings.from_env().ai_enrichment_enabled

    monkeypatch.setenv("AI_ENRICHMENT_ENABLED", "false")
    assert not Settings.from_env().ai_enrichment_enabled
