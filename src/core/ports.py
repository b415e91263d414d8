"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for mail, storage, and notification
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from datetime import datetime
from typing import AbstractSet, Iterable, Protocol, Sequence

from core.models import LeadRecord, RawMessage


class MailSourcePort(Protocol):
    """Read-only access to a mail folder."""

    def fetch_messages_since(self, since: datetime) -> Iterable[RawMessage]:
        ...


class LeadSinkPort(Protocol):
    """Append-only lead log. Raises OSError when the append fails."""

    def append(self, record: LeadRecord) -> None:
        ...


class LedgerStorePort(Protocol):
    """Whole-file persistence for the dedup ledger."""

    def load(self) -> set[str]:
        ...

    def save(self, ids: AbstractSet[str]) -> None:
        ...


class NotifierPort(Protocol):
    """Alert delivery for qualified leads. Raises on delivery failure."""

    async def send(self, record: LeadRecord, tags: Sequence[str]) -> None:
        ...
