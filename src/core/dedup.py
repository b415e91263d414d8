"""Deduplication helpers (core domain)."""

from __future__ import annotations

from typing import FrozenSet, Iterable, Optional

from core.models import RawMessage


def message_key(message: RawMessage) -> str:
    """Return the identifier used to deduplicate a message across runs.

    The transport's Message-ID is preferred. The per-folder uid fallback is
    weaker: it is not guaranteed to survive folder moves or UIDVALIDITY resets.
    """

    if message.message_id:
        return message.message_id
    return f"{message.uid}"


class DedupLedger:
    """In-memory set of processed message identifiers.

    The ledger is passed to and returned from the processor explicitly; loading
    and persisting it is the caller's job (see ports.LedgerStorePort).
    """

    def __init__(self, ids: Optional[Iterable[str]] = None) -> None:
        self._ids = set(ids or ())

    def contains(self, message_id: str) -> bool:
        return message_id in self._ids

    def add(self, message_id: str) -> None:
        self._ids.add(message_id)

    def copy(self) -> "DedupLedger":
        return DedupLedger(self._ids)

    @property
    def ids(self) -> FrozenSet[str]:
        return frozenset(self._ids)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)
