"""Core lead processing pipeline.

This module is integration-agnostic. It only relies on ports for the lead log
and notifications, enabling other mail sources or sinks without changes here.

Per message the order is strict:
1) Subject filter
2) Dedup ledger check
3) Normalize, extract, score
4) Append to the lead log
5) Mark the message in the ledger
6) Notify when qualified
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional

from core.config import PipelineConfig
from core.dedup import DedupLedger, message_key
from core.extractors import extract_fields, subject_matches
from core.models import LeadRecord, RawMessage
from core.normalize import best_body_text, compact
from core.ports import LeadSinkPort, NotifierPort
from core.scoring import is_qualified, score_lead

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunSummary:
    """Outcome of one pass over a batch of messages."""

    new_leads: int
    ledger: DedupLedger


class MessageProcessor:
    """Orchestrates filtering, dedup, scoring, persistence, and notifications."""

    def __init__(
        self,
        config: PipelineConfig,
        sink: LeadSinkPort,
        notifier: Optional[NotifierPort] = None,
    ) -> None:
        self._config = config
        self._sink = sink
        self._notifier = notifier

    async def run(self, messages: Iterable[RawMessage], ledger: DedupLedger) -> RunSummary:
        """Process a batch and return the updated copy of the ledger.

        The incoming ledger is left untouched, so a run that fails half-way
        leaves nothing for the caller to persist by accident.
        """

        ledger = ledger.copy()
        new_leads = 0
        for message in messages:
            record = await self.handle(message, ledger)
            if record is not None:
                new_leads += 1
        return RunSummary(new_leads=new_leads, ledger=ledger)

    async def handle(self, message: RawMessage, ledger: DedupLedger) -> Optional[LeadRecord]:
        """Process one message; return the recorded lead or None when skipped."""

        config = self._config

        # Messages from unrelated senders are invisible to the rest of the pipeline.
        if not subject_matches(message.subject, config.subject_must_contain):
            return None

        key = message_key(message)
        if ledger.contains(key):
            return None

        body = best_body_text(message.text_body, message.html_body)
        fields = extract_fields(message.subject, body, config.cities)
        result = score_lead(
            body,
            config.keywords,
            config.hot_intent,
            config.cities,
            fields.price,
            config.weights,
        )
        qualified = is_qualified(result.score, config.score_threshold)

        record = LeadRecord(
            timestamp_utc=datetime.now(timezone.utc),
            source=fields.source,
            from_name=message.from_name,
            from_email=message.from_email,
            title=message.subject or "",
            message=compact(body, config.message_chars),
            url=fields.url or "",
            city=fields.city,
            price=fields.price,
            score=result.score,
            qualified=qualified,
        )

        try:
            self._sink.append(record)
        except (OSError, UnicodeError):
            # Left out of the ledger so the next run retries it.
            LOGGER.exception("Failed to append lead %s; it will be retried next run", key)
            return None
        ledger.add(key)

        LOGGER.info(
            "[%s] %s | %s <%s> | %s | %s",
            "QUAL" if qualified else "LOG",
            record.source,
            record.from_name,
            record.from_email,
            round(record.score, 2),
            record.title,
        )

        if qualified and self._notifier is not None:
            # The lead is already recorded; a failed alert must not undo that.
            try:
                await self._notifier.send(record, result.tags)
            except Exception:
                LOGGER.exception("Failed to send alert for lead %s", key)

        return record
