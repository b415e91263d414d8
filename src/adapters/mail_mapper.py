"""RFC 822-to-core message mapping adapter.

This keeps email-package details out of the core pipeline.
"""

from __future__ import annotations

import logging
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from email.utils import parsedate_to_datetime
from datetime import datetime, timezone
from typing import Optional, Tuple

from core.models import RawMessage

LOGGER = logging.getLogger(__name__)


def _clean(value: Optional[str]) -> str:
    """Replace undecodable 8-bit bytes (kept by the parser as surrogates) with U+FFFD."""

    if not value:
        return ""
    try:
        raw = value.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        raw = value.encode("utf-8", "replace")
    return raw.decode("utf-8", "replace")


def _body_part(message: EmailMessage, subtype: str) -> Optional[str]:
    part = message.get_body(preferencelist=(subtype,))
    if part is None:
        return None
    try:
        return _clean(part.get_content())
    except (LookupError, UnicodeDecodeError):
        # Unknown or lying charset: fall back to a lossy decode.
        payload = part.get_payload(decode=True) or b""
        return payload.decode("utf-8", errors="replace")


def _first_sender(message: EmailMessage) -> Tuple[str, str]:
    header = message["From"]
    addresses = getattr(header, "addresses", None) or ()
    if not addresses:
        return "", ""
    address = addresses[0]
    return _clean(address.display_name), _clean(address.addr_spec)


def _message_id(message: EmailMessage) -> Optional[str]:
    raw = message["Message-ID"]
    if raw is None:
        return None
    value = _clean(str(raw)).strip().strip("<>").strip()
    return value or None


def _received_at(message: EmailMessage) -> Optional[datetime]:
    raw = message["Date"]
    if not raw:
        return None
    try:
        parsed = parsedate_to_datetime(str(raw))
    except (TypeError, ValueError):
        LOGGER.debug("Unparseable Date header %r", raw)
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def build_raw_message(raw_bytes: bytes, uid: str) -> RawMessage:
    """Build a core RawMessage from raw RFC 822 bytes and the folder uid."""

    message = BytesParser(policy=policy.default).parsebytes(raw_bytes)
    from_name, from_email = _first_sender(message)
    return RawMessage(
        uid=uid,
        message_id=_message_id(message),
        subject=_clean(str(message["Subject"] or "")),
        text_body=_body_part(message, "plain"),
        html_body=_body_part(message, "html"),
        from_name=from_name,
        from_email=from_email,
        date=_received_at(message),
    )
