"""Shared test fixtures."""

from __future__ import annotations

from collections import deque
from pathlib import Path
from typing import Any, TypeVar

import pytest
from pydantic import BaseModel

from intake.config import Settings
from intake.enrichment import AIEnrichmentService
from intake.error_log import ErrorLogger
from intake.models import ContentItem
from intake.processor import ContentProcessor
from intake.store import InMemoryContentStore

T = TypeVar("T", bound=BaseModel)

ARTICLE_BODY = (
    "City officials announced a new plan on Monday to expand public transit across the "
    "northern districts. The proposal includes additional bus routes, longer service hours, "
    "and upgraded stations near schools.\n\n"
    "Residents have long complained about crowded trains during rush hour. Several community "
    "groups welcomed the announcement but asked for clearer timelines and firm budget "
    "commitments before construction begins.\n\n"
    "The council will hold public hearings next month. Engineers expect the first phase to "
    "finish within two years, while later phases depend on federal grants and regional "
    "partnerships."
)


class MockGeminiClient:
    """Stands in for GeminiClient; replies are consumed in order.

    A queued exception is raised, a queued dict is validated into the
    requested response model. Once the queue is empty, empty replies are
    returned.
    """

    def __init__(self) -> None:
        self.prompts: list[str] = []
        self._queue: deque[Any] = deque()

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    def set_responses(self, responses: list[Any]) -> None:
        self._queue = deque(responses)

    def generate(
        self,
        prompt: str,
        *,
        response_model: type[T] | None = None,
        temperature: float = 0.2,
    ) -> str | T:
        self.prompts.append(prompt)
        if not self._queue:
            return response_model() if response_model is not None else ""

        reply = self._queue.popleft()
        if isinstance(reply, Exception):
            raise reply
        if response_model is not None and isinstance(reply, dict):
            return response_model.model_validate(reply)
        return reply


class StubEnrichmentService(AIEnrichmentService):
    """Enrichment service with canned answers; names in ``failing`` raise."""

    def __init__(self, failing: set[str] | None = None, quality: Any = None) -> None:
        self.failing = failing or set()
        self.quality = quality if quality is not None else {}
        self.calls: list[str] = []

    def _call(self, name: str, value: Any) -> Any:
        self.calls.append(name)
        if name in self.failing:
            raise RuntimeError(f"{name} unavailable")
        return value

    def summarize(self, text: str) -> str:
        return self._call("summarize", "A short summary.")

    def extract_entities(self, text: str) -> list[dict[str, Any]]:
        return self._call("extract_entities", [{"entity": "City", "type": "location", "confidence": 0.9}])

    def classify(self, text: str, taxonomy: list[str] | None = None) -> list[dict[str, Any]]:
        return self._call("classify", [{"category": "transport", "confidence": 0.8}])

    def generate_keywords(self, text: str) -> list[dict[str, Any]]:
        return self._call("generate_keywords", [{"keyword": "transit", "score": 0.7}])

    def calculate_quality_score(self, text: str, options: dict[str, Any] | None = None) -> Any:
        return self._call("calculate_quality_score", self.quality)


@pytest.fixture
def mock_client() -> MockGeminiClient:
    return MockGeminiClient()


@pytest.fixture
def make_enrichment() -> type[StubEnrichmentService]:
    return StubEnrichmentService


@pytest.fixture
def sample_settings(tmp_path: Path) -> Settings:
    return Settings(
        gemini_api_key="test-key",
        model_id="test-model",
        store_path=str(tmp_path / "content.json"),
        feeds_path=str(tmp_path / "feeds.txt"),
    )


@pytest.fixture
def store() -> InMemoryContentStore:
    return InMemoryContentStore()


@pytest.fixture
def error_logger() -> ErrorLogger:
    return ErrorLogger()


@pytest.fixture
def processor(
    sample_settings: Settings,
    store: InMemoryContentStore,
    error_logger: ErrorLogger,
) -> ContentProcessor:
    return ContentProcessor(sample_settings, store, error_logger=error_logger)


@pytest.fixture
def article() -> ContentItem:
    return ContentItem(
        type="article",
        title="Five Word Title Here",
        content=ARTICLE_BODY,
        source_url="https://example.com/a",
    )
