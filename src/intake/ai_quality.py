"""AI-backed quality assessment on a 0-10 scale with pass/fail and recommendations."""

from __future__ import annotations

import logging
import math
from typing import Any

from intake.enrichment import AIEnrichmentService
from intake.error_log import ErrorLogger
from intake.models import AIQualityAssessment

logger = logging.getLogger(__name__)

DIMENSIONS = ("coherence", "clarity", "accuracy", "relevance", "engagement")

_DEFAULT_MAX_LENGTH = 1500
_MIN_CONTENT_LENGTH = 50
_EXPLANATION_CUTOFF = 7.0
_TEMPLATE_CUTOFF = 6.0

_TEMPLATES = {
    "coherence": "Improve content structure and logical flow to enhance coherence.",
    "clarity": "Simplify complex sentences and define technical terms to increase clarity.",
    "accuracy": "Verify facts, sources, and claims to improve accuracy.",
    "relevance": "Focus more tightly on the main topic and ensure all content is directly relevant.",
    "engagement": "Make content more engaging through storytelling, examples, or stronger hooks.",
}


def _clamp(value: float, low: float = 0.0, high: float = 10.0) -> float:
    return max(low, min(high, value))


class AIQualityCalculator:
    def __init__(
        self,
        service: AIEnrichmentService,
        min_threshold: float = 6.0,
        error_logger: ErrorLogger | None = None,
    ) -> None:
        self._service = service
        self._error_logger = error_logger or ErrorLogger()
        self._min_threshold = _clamp(float(min_threshold))

    @property
    def min_threshold(self) -> float:
        return self._min_threshold

    def set_min_threshold(self, threshold: float) -> None:
        self._min_threshold = _clamp(float(threshold))

    def calculate_score(
        self,
        content: str,
        options: dict[str, Any] | None = None,
    ) -> AIQualityAssessment:
        """Never raises: any failure degrades to an all-zero, failing assessment."""
        options = options or {}
        try:
            max_length = int(options.get("max_length", _DEFAULT_MAX_LENGTH))
            content = content[:max_length]

            if len(content) < _MIN_CONTENT_LENGTH:
                return AIQualityAssessment(
                    recommendations=[
                        f"Content is too short to analyze (minimum {_MIN_CONTENT_LENGTH} characters)"
                    ]
                )

            raw = self._service.calculate_quality_score(
                content, options.get("provider_options") or {}
            )
            return self._normalize(raw)
        except Exception as exc:
            self._error_logger.log(
                "content_quality",
                "calculation_error",
                str(exc) or exc.__class__.__name__,
                {"content_length": len(content), "options": _loggable(options)},
                "error",
            )
            return AIQualityAssessment(recommendations=["Unable to calculate quality score"])

    def passes_quality_threshold(
        self, content: str, options: dict[str, Any] | None = None
    ) -> bool:
        return self.calculate_score(content, options).passed

    def _normalize(self, raw: Any) -> AIQualityAssessment:
        data: dict[str, Any] = dict(raw) if isinstance(raw, dict) else {}

        if "overall" not in data and isinstance(data.get("scores"), dict):
            nested = dict(data["scores"])
            for key in ("explanations", "recommendations"):
                if key in data and key not in nested:
                    nested[key] = data[key]
            data = nested

        if not _is_number(data.get("overall")):
            values = [
                float(data[dim]) for dim in DIMENSIONS if _is_number(data.get(dim))
            ]
            if values:
                data["overall"] = round(sum(values) / len(values), 1)

        scores = {
            dim: round(_clamp(float(data[dim])), 1) if _is_number(data.get(dim)) else 0.0
            for dim in ("overall", *DIMENSIONS)
        }
        passed = scores["overall"] >= self._min_threshold

        recommendations = data.get("recommendations")
        if isinstance(recommendations, str):
            recommendations = [recommendations]
        if not isinstance(recommendations, list) or not recommendations:
            explanations = data.get("explanations")
            if isinstance(explanations, dict):
                recommendations = _from_explanations(scores, explanations)
            else:
                recommendations = self._from_scores(scores)

        return AIQualityAssessment(
            **scores,
            passed=passed,
            recommendations=[str(r) for r in recommendations],
        )

    def _from_scores(self, scores: dict[str, float]) -> list[str]:
        recommendations = [
            _TEMPLATES[dim] for dim in DIMENSIONS if scores[dim] < _TEMPLATE_CUTOFF
        ]
        if recommendations:
            return recommendations
        if scores["overall"] < self._min_threshold:
            return ["Review the content holistically for quality improvements."]
        return ["Content meets basic quality standards but could be enhanced."]


def _from_explanations(scores: dict[str, float], explanations: dict[str, Any]) -> list[str]:
    recommendations = [
        f"{dim.capitalize()}: {explanations[dim]}"
        for dim in DIMENSIONS
        if scores[dim] < _EXPLANATION_CUTOFF and explanations.get(dim)
    ]
    return recommendations or [
        "Content quality is generally good, but could be improved for better engagement."
    ]


def _is_number(value: Any) -> bool:
    """Finite int, float or numeric string; NaN and infinities count as missing."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return False
    try:
        return math.isfinite(float(value))
    except (ValueError, OverflowError):
        return False


def _loggable(options: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in options.items() if isinstance(v, (str, int, float, bool))}
