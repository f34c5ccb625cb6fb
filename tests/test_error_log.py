"""Tests for the error log."""

import json
import logging

import pytest

from intake.error_log import ErrorLogger


def test_log_records_entry(caplog):
    error_logger = ErrorLogger()
    with caplog.at_level(logging.WARNING, logger="intake.error_log"):
        entry = error_logger.log("content_processing", "duplicate", "Dup found", {"id": 1}, "warning")

    assert entry.severity == "warning"
    assert entry.data == {"id": 1}
    assert error_logger.entries() == [entry]
    assert "[content_processing/duplicate] Dup found" in caplog.text


def test_unknown_severity():
    with pytest.raises(ValueError):
        ErrorLogger().log("ctx", "type", "msg", severity="fatal")


def test_filter_entries():
    error_logger = ErrorLogger()
    error_logger.log("a", "t1", "m")
    error_logger.log("b", "t2", "m", severity="critical")
    error_logger.log("a", "t3", "m", severity="critical")

    assert [e.error_type for e in error_logger.entries(context="a")] == ["t1", "t3"]
    assert [e.error_type for e in error_logger.entries(severity="critical")] == ["t2", "t3"]
    assert [e.error_type for e in error_logger.entries("a", "critical")] == ["t3"]


def test_jsonl_file(tmp_path):
    path = tmp_path / "logs" / "errors.jsonl"
    error_logger = ErrorLogger(path)
    error_logger.log("ai_enrichment", "summarize_error", "timeout", {"text_length": 10}, "warning")
    error_logger.log("content_index", "index_write_failed", "boom")

    lines = path.read_text().splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["context"] == "ai_enrichment"
    assert first["data"] == {"text_length": 10}


def test_memory_keeps_only_recent_entries(tmp_path):
    path = tmp_path / "errors.jsonl"
    error_logger = ErrorLogger(path, max_entries=3)
    for i in range(5):
        error_logger.log("content_processing", f"failure_{i}", "m")

    assert [e.error_type for e in error_logger.entries()] == ["failure_2", "failure_3", "failure_4"]
    assert len(path.read_text().splitlines()) == 5
