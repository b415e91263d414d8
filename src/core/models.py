"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any mail-transport-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple


@dataclass(frozen=True)
class RawMessage:
    """Minimal inbound message used by the core processing pipeline."""

    uid: str
    message_id: Optional[str]
    subject: str
    text_body: Optional[str]
    html_body: Optional[str]
    from_name: str
    from_email: str
    date: Optional[datetime] = None


@dataclass(frozen=True)
class ExtractedFields:
    """Structured fields mined from a message subject and body."""

    source: str
    price: Optional[Decimal]
    url: Optional[str]
    city: str


@dataclass(frozen=True)
class ScoreResult:
    """Bounded lead score plus the tags of every signal that fired."""

    score: float
    tags: Tuple[str, ...]


@dataclass(frozen=True)
class LeadRecord:
    """Persisted representation of a single lead.

    Attribute order is the CSV column order.
    """

    timestamp_utc: datetime
    source: str
    from_name: str
    from_email: str
    title: str
    message: str
    url: str
    city: str
    price: Optional[Decimal]
    score: float
    qualified: bool


LEAD_FIELDS = tuple(f.name for f in fields(LeadRecord))
