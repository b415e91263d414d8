from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from adapters.email_notifier import build_alert_email
from adapters.notification_formatting import format_html, format_plain_text, format_subject
from adapters.telegram_bot_notifier import TelegramBotNotifier
from core.models import LeadRecord
from settings import SmtpSettings

TAGS = ("kw:detail", "intent:today")


def _record(**overrides) -> LeadRecord:
    values = dict(
        timestamp_utc=datetime(2024, 1, 1, tzinfo=timezone.utc),
        source="OfferUp",
        from_name="Jane <admin>",
        from_email="jane@example.com",
        title="Detail today?",
        message="Need a detail & wax",
        url="https://offerup.com/item/1",
        city="Dallas",
        price=Decimal(300),
        score=0.6789,
        qualified=True,
    )
    values.update(overrides)
    return LeadRecord(**values)


def test_subject_rounds_score() -> None:
    assert format_subject(_record()) == "Qualified lead 0.68 – OfferUp: Detail today?"


def test_plain_text_lists_fields_and_tags() -> None:
    text = format_plain_text(_record(price=None), TAGS)
    assert "Price: n/a" in text
    assert "Score: 0.68 (kw:detail, intent:today)" in text
    assert "URL: https://offerup.com/item/1" in text
    assert text.endswith("Logged at: 2024-01-01T00:00:00+00:00")


def test_html_escapes_user_content() -> None:
    body = format_html(_record(), TAGS)
    assert "Jane &lt;admin&gt;" in body
    assert "Need a detail &amp; wax" in body
    assert '<a href="https://offerup.com/item/1">' in body


def test_html_omits_link_without_url() -> None:
    assert "<b>Link:</b>" not in format_html(_record(url=""), TAGS)


def test_alert_email_headers() -> None:
    config = SmtpSettings(username="bot@example.com", to="me@example.com")
    message = build_alert_email(config, _record(), TAGS)
    assert message["From"] == "LeadInboxAgent <bot@example.com>"
    assert message["To"] == "Me <me@example.com>"
    assert message["Subject"] == "Qualified lead 0.68 – OfferUp: Detail today?"
    assert "Score: 0.68" in message.get_content()


def test_bot_payload_uses_html_mode() -> None:
    payload = TelegramBotNotifier("token", "42").build_payload(_record(), TAGS)
    assert payload["chat_id"] == "42"
    assert payload["parse_mode"] == "HTML"
    assert payload["text"].startswith("<b>Qualified lead 0.68")
