"""AI enrichment service and the best-effort enrichment fan-out."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

from pydantic import BaseModel, Field

from intake.error_log import ErrorLogger
from intake.gemini import GeminiClient
from intake.models import AIMetadata

logger = logging.getLogger(__name__)

_MAX_PROMPT_CHARS = 6000
_DEFAULT_KEYWORD_LIMIT = 10


class AIEnrichmentService(ABC):
    """External, best-effort AI operations. Any call may raise."""

    @abstractmethod
    def summarize(self, text: str) -> str: ...

    @abstractmethod
    def extract_entities(self, text: str) -> list[dict[str, Any]]: ...

    @abstractmethod
    def classify(self, text: str, taxonomy: list[str] | None = None) -> list[dict[str, Any]]: ...

    @abstractmethod
    def generate_keywords(self, text: str) -> list[dict[str, Any]]: ...

    @abstractmethod
    def calculate_quality_score(
        self, text: str, options: dict[str, Any] | None = None
    ) -> dict[str, Any]: ...


class _SummaryResponse(BaseModel):
    summary: str = ""


class _Entity(BaseModel):
    entity: str = ""
    type: str = ""
    confidence: float = 0.0


class _EntitiesResponse(BaseModel):
    entities: list[_Entity] = Field(default_factory=list)


class _Classification(BaseModel):
    category: str = ""
    confidence: float = 0.0


class _ClassificationResponse(BaseModel):
    classifications: list[_Classification] = Field(default_factory=list)


class _Keyword(BaseModel):
    keyword: str = ""
    score: float = 0.0


class _KeywordsResponse(BaseModel):
    keywords: list[_Keyword] = Field(default_factory=list)


class GeminiEnrichmentService(AIEnrichmentService):
    def __init__(self, client: GeminiClient, keyword_limit: int = _DEFAULT_KEYWORD_LIMIT) -> None:
        self._client = client
        self._keyword_limit = keyword_limit

    def summarize(self, text: str) -> str:
        prompt = f"""Summarize the following content in 2-3 sentences. Be factual and neutral.

Content:
{text[:_MAX_PROMPT_CHARS]}

Return a JSON object: {{"summary": "..."}}"""
        result = self._client.generate(prompt, response_model=_SummaryResponse)
        return result.summary if isinstance(result, _SummaryResponse) else ""

    def extract_entities(self, text: str) -> list[dict[str, Any]]:
        prompt = f"""Extract named entities from the following text. For each entity provide the
entity text, its type (person, organization, location, product, event, other) and a
confidence score between 0 and 1.

Text:
{text[:_MAX_PROMPT_CHARS]}

Return a JSON object: {{"entities": [{{"entity": "...", "type": "...", "confidence": 0.9}}]}}"""
        result = self._client.generate(prompt, response_model=_EntitiesResponse)
        if not isinstance(result, _EntitiesResponse):
            return []
        return [e.model_dump() for e in result.entities]

    def classify(self, text: str, taxonomy: list[str] | None = None) -> list[dict[str, Any]]:
        if taxonomy:
            instruction = (
                "Classify the following text into one or more of these categories: "
                f"{', '.join(taxonomy)}."
            )
        else:
            instruction = "Classify the following text into its most appropriate category."
        prompt = f"""{instruction} Give each category a confidence score between 0 and 1,
sorted by confidence descending.

Text:
{text[:_MAX_PROMPT_CHARS]}

Return a JSON object: {{"classifications": [{{"category": "...", "confidence": 0.8}}]}}"""
        result = self._client.generate(prompt, response_model=_ClassificationResponse)
        if not isinstance(result, _ClassificationResponse):
            return []
        return [c.model_dump() for c in result.classifications]

    def generate_keywords(self, text: str) -> list[dict[str, Any]]:
        prompt = f"""Extract up to {self._keyword_limit} keywords or key phrases from the following
text, each with a relevance score between 0 and 1, sorted by score descending.

Text:
{text[:_MAX_PROMPT_CHARS]}

Return a JSON object: {{"keywords": [{{"keyword": "...", "score": 0.7}}]}}"""
        result = self._client.generate(prompt, response_model=_KeywordsResponse)
        if not isinstance(result, _KeywordsResponse):
            return []
        return [k.model_dump() for k in result.keywords[: self._keyword_limit]]

    def calculate_quality_score(
        self, text: str, options: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        prompt = f"""You are a content quality reviewer. Rate the following content from 0 to 10 on
each dimension: coherence, clarity, accuracy, relevance, engagement. Also give an overall
score and a one-sentence explanation per dimension.

Content:
{text}

Return a JSON object:
{{
  "overall": 7.5,
  "coherence": 8, "clarity": 7, "accuracy": 8, "relevance": 7, "engagement": 6,
  "explanations": {{"coherence": "...", "clarity": "...", "accuracy": "...",
                    "relevance": "...", "engagement": "..."}}
}}
Return valid JSON only."""
        raw = self._client.generate(prompt)
        return _parse_json_object(raw if isinstance(raw, str) else "")


def _parse_json_object(text: str) -> dict[str, Any]:
    cleaned = text.strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1:
        raise ValueError("AI response did not contain a JSON object")
    data = json.loads(cleaned[start : end + 1])
    if not isinstance(data, dict):
        raise ValueError("AI response JSON is not an object")
    return data


def enrich_content(
    service: AIEnrichmentService,
    text: str,
    error_logger: ErrorLogger,
    taxonomy: list[str] | None = None,
) -> AIMetadata:
    """Run every enrichment call independently; a failure leaves that field empty."""
    metadata = AIMetadata()

    calls: list[tuple[str, str, Callable[[], Any]]] = [
        ("summary", "summarize_error", lambda: service.summarize(text)),
        ("entities", "entities_error", lambda: service.extract_entities(text)),
        ("classifications", "classify_error", lambda: service.classify(text, taxonomy or [])),
        ("keywords", "keywords_error", lambda: service.generate_keywords(text)),
    ]

    for field_name, error_type, call in calls:
        try:
            value = call()
        except Exception as exc:
            error_logger.log(
                "ai_enrichment",
                error_type,
                str(exc) or exc.__class__.__name__,
                {"text_length": len(text)},
                "warning",
            )
            continue
        if value:
            setattr(metadata, field_name, value)

    logger.info(
        "Enrichment: summary=%s entities=%d classifications=%d keywords=%d",
        bool(metadata.summary),
        len(metadata.entities),
        len(metadata.classifications),
        len(metadata.keywords),
    )
    return metadata
