"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Tuple


@dataclass(frozen=True)
class ScoringWeights:
    """Per-signal weights and the accepted price window for the lead scorer."""

    keyword: float = 0.08
    intent: float = 0.10
    city: float = 0.06
    price: float = 0.10
    negative: float = 0.15
    price_min: Decimal = Decimal(50)
    price_max: Decimal = Decimal(2000)


@dataclass(frozen=True)
class PipelineConfig:
    """Everything the message processor needs to qualify a lead."""

    subject_must_contain: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()
    hot_intent: Tuple[str, ...] = ()
    cities: Tuple[str, ...] = ()
    score_threshold: float = 0.65
    message_chars: int = 500
    weights: ScoringWeights = field(default_factory=ScoringWeights)
