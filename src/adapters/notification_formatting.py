"""Shared notification formatting helpers.

Keeping formatting here prevents drift between adapters and keeps alerts
consistent regardless of delivery channel.
"""

from __future__ import annotations

import html
from typing import Sequence

from core.models import LeadRecord


def _score(record: LeadRecord) -> str:
    return f"{round(record.score, 2)}"


def _price(record: LeadRecord) -> str:
    return "n/a" if record.price is None else str(record.price)


def format_subject(record: LeadRecord) -> str:
    """Return the alert subject line for a qualified lead."""

    return f"Qualified lead {_score(record)} – {record.source}: {record.title}"


def format_plain_text(record: LeadRecord, tags: Sequence[str]) -> str:
    """Create the plain-text body used by the email notifier."""

    lines = [
        f"Source: {record.source}",
        f"From: {record.from_name} <{record.from_email}>",
        f"City: {record.city}",
        f"Price: {_price(record)}",
        f"Score: {_score(record)} ({', '.join(tags)})",
        "",
        "Message:",
        record.message,
        "",
        f"URL: {record.url}",
        f"Logged at: {record.timestamp_utc.isoformat()}",
    ]
    return "\n".join(lines).strip()


def format_html(record: LeadRecord, tags: Sequence[str]) -> str:
    """Create the HTML body used by the Bot API adapter."""

    parts = [
        f"<b>{html.escape(format_subject(record))}</b>",
        f"<b>From:</b> {html.escape(record.from_name)} &lt;{html.escape(record.from_email)}&gt;",
        f"<b>City:</b> {html.escape(record.city or 'n/a')}",
        f"<b>Price:</b> {html.escape(_price(record))}",
        f"<b>Why:</b> {html.escape(', '.join(tags))}",
        "──────────────",
        "",
        html.escape(record.message),
    ]

    if record.url:
        safe_link = html.escape(record.url)
        parts.extend(["", "<b>Link:</b>", f"<a href=\"{safe_link}\">{safe_link}</a>"])

    parts.append("──────────────")
    return "\n".join(parts)
