from __future__ import annotations

from email.message import EmailMessage

from adapters.mail_mapper import build_raw_message


def _email(*, plain=None, html=None, message_id="<abc123@mail.example>") -> bytes:
    message = EmailMessage()
    message["From"] = "Jane Doe <jane@example.com>"
    message["To"] = "me@example.com"
    message["Subject"] = "New OfferUp inquiry"
    message["Date"] = "Tue, 05 Mar 2024 10:00:00 -0600"
    if message_id:
        message["Message-ID"] = message_id
    if plain is not None:
        message.set_content(plain)
        if html is not None:
            message.add_alternative(html, subtype="html")
    elif html is not None:
        message.set_content(html, subtype="html")
    return message.as_bytes()


def test_build_raw_message_multipart() -> None:
    raw = build_raw_message(_email(plain="Price: 450", html="<p>Price: 450</p>"), "12")
    assert raw.uid == "12"
    assert raw.message_id == "abc123@mail.example"
    assert raw.subject == "New OfferUp inquiry"
    assert raw.from_name == "Jane Doe"
    assert raw.from_email == "jane@example.com"
    assert raw.text_body.strip() == "Price: 450"
    assert "<p>Price: 450</p>" in raw.html_body
    assert raw.date.utcoffset().total_seconds() == 0
    assert raw.date.hour == 16


def test_build_raw_message_html_only_without_message_id() -> None:
    raw = build_raw_message(_email(html="<b>hello</b>", message_id=None), "7")
    assert raw.message_id is None
    assert raw.text_body is None
    assert "<b>hello</b>" in raw.html_body


def test_build_raw_message_missing_from() -> None:
    message = EmailMessage()
    message["Subject"] = "Marketplace"
    message.set_content("hi")
    raw = build_raw_message(message.as_bytes(), "1")
    assert raw.from_name == ""
    assert raw.from_email == ""
    assert raw.date is None


RAW_8BIT = (
    b"From: Caf\xe9 Owner <jane@example.com>\r\n"
    b"Subject: OfferUp inquiry caf\xe9 detail\r\n"
    b"Message-ID: <8bit@example.com>\r\n"
    b"\r\n"
    b"Need a detail in Dallas, $300\r\n"
)


def _has_surrogates(value: str) -> bool:
    return any(0xD800 <= ord(ch) <= 0xDFFF for ch in value)


def test_raw_8bit_headers_are_replaced_not_surrogates() -> None:
    raw = build_raw_message(RAW_8BIT, "9")
    assert raw.subject.startswith("OfferUp inquiry caf")
    assert "�" in raw.subject
    for value in (raw.subject, raw.from_name, raw.from_email, raw.text_body or ""):
        assert not _has_surrogates(value)


def test_raw_8bit_message_is_written_to_csv(tmp_path) -> None:
    import asyncio
    import csv

    from adapters.csv_sink import CsvLeadSink
    from core.config import PipelineConfig
    from core.dedup import DedupLedger
    from core.processor import MessageProcessor

    path = tmp_path / "leads.csv"
    processor = MessageProcessor(
        PipelineConfig(subject_must_contain=("offerup",), keywords=("detail",)),
        CsvLeadSink(str(path)),
    )
    summary = asyncio.run(processor.run([build_raw_message(RAW_8BIT, "9")], DedupLedger()))

    assert summary.new_leads == 1
    assert summary.ledger.contains("8bit@example.com")
    with open(path, "r", encoding="utf-8", newline="") as handle:
        rows = list(csv.reader(handle))
    assert len(rows) == 2
    assert rows[1][4].startswith("OfferUp inquiry caf")
