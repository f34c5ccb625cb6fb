"""Tests for the command-line entry point."""

import json

import pytest

from intake.cli import main


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    monkeypatch.setenv("CONTENT_STORE_PATH", str(tmp_path / "content.json"))
    monkeypatch.setenv("ERROR_LOG_PATH", str(tmp_path / "errors.jsonl"))
    monkeypatch.setenv("FEEDS_PATH", str(tmp_path / "feeds.txt"))
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("AI_ENRICHMENT_ENABLED", raising=False)
    return tmp_path


def _write_items(path, items):
    path.write_text(json.dumps([item.model_dump(mode="json") for item in items]))


def test_ingest_then_stats(cli_env, article, capsys):
    items_path = cli_env / "items.json"
    _write_items(items_path, [article, article])

    assert main(["ingest", str(items_path)]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["saved"] == 1
    assert report["rejected"] == 1
    assert (cli_env / "content.json").exists()

    assert main(["stats"]) == 0
    stats = json.loads(capsys.readouterr().out)
    assert stats["total_count"] == 1


def test_rejections_reach_error_log(cli_env, article, capsys):
    items_path = cli_env / "items.json"
    _write_items(items_path, [article.model_copy(update={"source_url": "example.com/a"})])

    main(["ingest", str(items_path)])
    lines = (cli_env / "errors.jsonl").read_text().splitlines()
    assert json.loads(lines[0])["error_type"] == "validation_failed"


def test_delete(cli_env, article, capsys):
    items_path = cli_env / "items.json"
    _write_items(items_path, [article])
    main(["ingest", str(items_path)])
    content_id = json.loads(capsys.readouterr().out)["outcomes"][0]["content_id"]

    assert main(["delete", str(content_id)]) == 0
    assert json.loads(capsys.readouterr().out) == {"deleted": True}
    assert main(["delete", str(content_id)]) == 1


def test_reindex_and_duplicates(cli_env, capsys):
    assert main(["reindex", "--batch-size", "10"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["message"] == "No content found that needs reindexing."

    assert main(["duplicates", "--status", "pending"]) == 0
    assert json.loads(capsys.readouterr().out)["total"] == 0


def test_feeds_without_urls(cli_env):
    with pytest.raises(SystemExit):
        main(["feeds"])


@pytest.mark.parametrize("batch_size", ["0", "-5"])
def test_reindex_rejects_non_positive_batch(cli_env, batch_size):
    with pytest.raises(SystemExit) as excinfo:
        main(["reindex", "--batch-size", batch_size])
    assert excinfo.value.code == 2


def test_ingest_invalid_items_file(cli_env):
    items_path = cli_env / "items.json"
    items_path.write_text(json.dumps([{"type": "article", "title": None}]))

    with pytest.raises(SystemExit) as excinfo:
        main(["ingest", str(items_path)])
    assert str(excinfo.value.code).startswith(f"Invalid items file {items_path}")
