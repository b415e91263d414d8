"""SMTP notification adapter.

Sends a plain-text alert email for each qualified lead.
"""

from __future__ import annotations

import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formataddr
from typing import Sequence

from adapters.notification_formatting import format_plain_text, format_subject
from core.models import LeadRecord
from settings import SmtpSettings

SENDER_NAME = "LeadInboxAgent"


def build_alert_email(config: SmtpSettings, record: LeadRecord, tags: Sequence[str]) -> EmailMessage:
    message = EmailMessage()
    message["From"] = formataddr((SENDER_NAME, config.username))
    message["To"] = formataddr(("Me", config.to))
    message["Subject"] = format_subject(record)
    message.set_content(format_plain_text(record, tags))
    return message


class SmtpNotifier:
    """Notifier adapter that emails qualified leads to a single recipient."""

    def __init__(self, config: SmtpSettings, timeout: float = 30) -> None:
        if not config.to:
            raise RuntimeError("smtp.to is required for email notifications")
        self._config = config
        self._timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if self._config.use_starttls:
            client = smtplib.SMTP(self._config.host, self._config.port, timeout=self._timeout)
            try:
                client.starttls(context=context)
            except Exception:
                client.close()
                raise
            return client
        return smtplib.SMTP_SSL(self._config.host, self._config.port, timeout=self._timeout, context=context)

    async def send(self, record: LeadRecord, tags: Sequence[str]) -> None:
        """Send the formatted alert; SMTP errors propagate to the caller."""

        message = build_alert_email(self._config, record, tags)
        # We use a blocking SMTP session because alerts are rare; the adapter
        # boundary makes it easy to swap for an async client later.
        with self._connect() as client:
            if self._config.username:
                client.login(self._config.username, self._config.password)
            client.send_message(message)
