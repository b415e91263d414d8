"""Weighted lead scoring (core domain)."""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Iterable, List, Optional

from core.config import ScoringWeights
from core.extractors import city_pattern
from core.models import ScoreResult

# Only "free" is word-bounded; every other term (including "spam") matches
# as a plain substring, so "antispam" counts.
NEGATIVE_RE = re.compile(
    r"\bfree\b|cheapest|lowest|follow\s*me|promo|discount code|spam",
    re.IGNORECASE,
)


def score_lead(
    body: str,
    keywords: Iterable[str],
    hot_intent: Iterable[str],
    cities: Iterable[str],
    price: Optional[Decimal],
    weights: Optional[ScoringWeights] = None,
) -> ScoreResult:
    """Score a normalized body and return the clamped score with its tags.

    Signals are summed in a fixed order (keywords, hot intent, cities, price,
    negative terms) and the total is clamped into [0, 1]. Tags follow the same
    order so results are reproducible.
    """

    weights = weights or ScoringWeights()
    if not body or not body.strip():
        return ScoreResult(score=0.0, tags=())

    lowered = body.lower()
    score = 0.0
    tags: List[str] = []

    for keyword in keywords:
        if keyword.lower() in lowered:
            score += weights.keyword
            tags.append(f"kw:{keyword}")

    for phrase in hot_intent:
        if phrase.lower() in lowered:
            score += weights.intent
            tags.append(f"intent:{phrase}")

    for city in cities:
        if city_pattern(city).search(lowered):
            score += weights.city
            tags.append(f"city:{city}")

    if price is not None and weights.price_min <= price <= weights.price_max:
        score += weights.price
        tags.append("price:ok")

    if NEGATIVE_RE.search(lowered):
        score -= weights.negative

    return ScoreResult(score=max(0.0, min(1.0, score)), tags=tuple(tags))


def is_qualified(score: float, threshold: float) -> bool:
    return score >= threshold
