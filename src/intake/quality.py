"""Heuristic quality scoring: completeness, recency, length and structure."""

from __future__ import annotations

import math
from datetime import datetime, timezone

from intake.config import Settings
from intake.models import ContentItem, QualityAssessment
from intake.text import has_markup, parse_publish_date, split_paragraphs, strip_tags

_WEIGHTS = {
    "completeness": 0.25,
    "recency": 0.25,
    "length": 0.25,
    "structure": 0.25,
}

# (max age in days, sub-score)
_RECENCY_TIERS = ((1, 1.0), (7, 0.8), (30, 0.6), (90, 0.4))
_RECENCY_OLD = 0.2
_RECENCY_UNKNOWN = 0.5

# (min stripped length, exclusive, sub-score)
_LENGTH_TIERS = ((5000, 1.0), (2000, 0.8), (1000, 0.6), (500, 0.4))
_LENGTH_SHORT = 0.2

# (min paragraph count, sub-score)
_STRUCTURE_TIERS = ((5, 0.8), (3, 0.6), (2, 0.4))
_STRUCTURE_FLAT = 0.2
_MARKUP_BONUS = 0.2

_SHORT_CIRCUIT_ERRORS = 2
_SHORT_CIRCUIT_SCORE = 30
_MIN_CONTENT_FOR_COMPLETENESS = 100
_WEAK_SUBSCORE = 0.5
_MAX_SUGGESTIONS = 5


class QualityScorer:
    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or Settings()

    def calculate_quality_score(
        self,
        item: ContentItem,
        error_count: int = 0,
        now: datetime | None = None,
    ) -> int:
        return self.assess(item, error_count=error_count, now=now).score

    def assess(
        self,
        item: ContentItem,
        error_count: int = 0,
        now: datetime | None = None,
    ) -> QualityAssessment:
        """Score an item on a 1-100 scale.

        Items that already failed more than two validation rules get a fixed
        low score without running the weighted computation.
        """
        if error_count > _SHORT_CIRCUIT_ERRORS:
            return QualityAssessment(
                score=_SHORT_CIRCUIT_SCORE,
                category=self.category_for(_SHORT_CIRCUIT_SCORE),
                short_circuited=True,
                suggestions=["Fix the reported validation errors before resubmitting."],
            )

        sub_scores = {
            "completeness": completeness_score(item),
            "recency": recency_score(item, now=now),
            "length": length_score(item),
            "structure": structure_score(item),
        }
        weighted = sum(sub_scores[name] * weight for name, weight in _WEIGHTS.items())
        score = max(1, min(100, math.floor(weighted * 100 + 0.5)))

        return QualityAssessment(
            score=score,
            category=self.category_for(score),
            suggestions=_suggestions(item, sub_scores),
            **sub_scores,
        )

    def category_for(self, score: int) -> str:
        s = self._settings
        if score >= s.quality_score_excellent:
            return "excellent"
        if score >= s.quality_score_good:
            return "good"
        if score >= s.quality_score_average:
            return "average"
        if score >= s.quality_score_poor:
            return "poor"
        return "very_poor"

    def passes_quality_threshold(self, assessment: QualityAssessment, threshold: int | None = None) -> bool:
        if threshold is None:
            threshold = self._settings.quality_score_minimum
        return assessment.score >= threshold


def completeness_score(item: ContentItem) -> float:
    score = 0.0
    if item.title:
        score += 0.25
    if item.content and len(strip_tags(item.content)) > _MIN_CONTENT_FOR_COMPLETENESS:
        score += 0.25
    if item.summary:
        score += 0.25
    if item.source_url:
        score += 0.25
    return score


def recency_score(item: ContentItem, now: datetime | None = None) -> float:
    published = parse_publish_date(item.publish_date)
    if published is None:
        return _RECENCY_UNKNOWN

    now = now or datetime.now(timezone.utc)
    days_old = (now - published).total_seconds() / 86400
    for max_days, value in _RECENCY_TIERS:
        if days_old <= max_days:
            return value
    return _RECENCY_OLD


def length_score(item: ContentItem) -> float:
    if not item.content:
        return _LENGTH_SHORT
    length = len(strip_tags(item.content))
    for min_length, value in _LENGTH_TIERS:
        if length > min_length:
            return value
    return _LENGTH_SHORT


def structure_score(item: ContentItem) -> float:
    if not item.content:
        return _STRUCTURE_FLAT

    paragraphs = len(split_paragraphs(item.content))
    score = _STRUCTURE_FLAT
    for min_count, value in _STRUCTURE_TIERS:
        if paragraphs >= min_count:
            score = value
            break

    if has_markup(item.content):
        score = min(1.0, score + _MARKUP_BONUS)
    return score


def _suggestions(item: ContentItem, sub_scores: dict[str, float]) -> list[str]:
    suggestions: list[str] = []

    if sub_scores["completeness"] < 1.0:
        if not item.summary:
            suggestions.append(
                "Add a summary to improve content discoverability and reader engagement."
            )
        if not item.source_url:
            suggestions.append("Include the original source URL for proper attribution.")
        if len(strip_tags(item.content)) <= _MIN_CONTENT_FOR_COMPLETENESS:
            suggestions.append("Add more body text to meet the minimum length requirement.")

    if sub_scores["recency"] < _WEAK_SUBSCORE:
        suggestions.append("Update content or ensure a proper publish date is set.")
    elif not item.publish_date:
        suggestions.append("Add a publish date to establish content timeline and relevance.")

    if sub_scores["length"] < _WEAK_SUBSCORE:
        suggestions.append("Expand the content body with more detail and context.")

    if sub_scores["structure"] < _WEAK_SUBSCORE:
        suggestions.append("Break content into multiple paragraphs for better readability.")
        if not has_markup(item.content):
            suggestions.append(
                "Add HTML formatting like headings, lists, and emphasis to improve readability."
            )

    return list(dict.fromkeys(suggestions))[:_MAX_SUGGESTIONS]
