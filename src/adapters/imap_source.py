"""IMAP mail source adapter.

Implements the core MailSourcePort on top of imaplib. The folder is opened
read-only and bodies are fetched with BODY.PEEK so polling never flips the
\\Seen flag on the user's mail.
"""

from __future__ import annotations

import imaplib
import logging
from datetime import datetime
from typing import Callable, Iterator, Optional

from adapters.mail_mapper import build_raw_message
from client import build_imap_client
from core.models import RawMessage
from settings import ImapSettings

LOGGER = logging.getLogger(__name__)

# IMAP dates use English month names regardless of the process locale.
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class MailSourceError(RuntimeError):
    """Raised when the server rejects a folder or search command."""


def imap_date(value: datetime) -> str:
    """Format a datetime as an IMAP SEARCH date (e.g. 05-Mar-2024)."""

    return f"{value.day:02d}-{_MONTHS[value.month - 1]}-{value.year}"


def _quote_mailbox(folder: str) -> str:
    if folder.startswith('"'):
        return folder
    return '"' + folder.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _raw_bytes(fetch_data: list) -> Optional[bytes]:
    for part in fetch_data:
        if isinstance(part, tuple) and len(part) >= 2 and isinstance(part[1], bytes):
            return part[1]
    return None


class ImapMailSource:
    """Yield RawMessages delivered since a point in time from one folder."""

    def __init__(
        self,
        config: ImapSettings,
        client_factory: Callable[[ImapSettings], imaplib.IMAP4] = build_imap_client,
    ) -> None:
        self._config = config
        self._client_factory = client_factory

    def fetch_messages_since(self, since: datetime) -> Iterator[RawMessage]:
        """Search the folder and yield messages one at a time.

        IMAP SINCE has day granularity, so messages from earlier on the
        cut-off day are included too.
        """

        client = self._client_factory(self._config)
        try:
            status, _ = client.select(_quote_mailbox(self._config.folder), readonly=True)
            if status != "OK":
                raise MailSourceError(f"Cannot open folder {self._config.folder!r}")

            status, data = client.uid("SEARCH", None, "SINCE", imap_date(since))
            if status != "OK":
                raise MailSourceError(f"IMAP search failed in {self._config.folder!r}")
            uids = data[0].split() if data and data[0] else []
            LOGGER.info("Found %s messages since %s in %s", len(uids), imap_date(since), self._config.folder)

            for raw_uid in uids:
                uid = raw_uid.decode("ascii")
                status, fetch_data = client.uid("FETCH", uid, "(BODY.PEEK[])")
                raw = _raw_bytes(fetch_data or []) if status == "OK" else None
                if raw is None:
                    LOGGER.warning("Failed to fetch message uid %s (status %s)", uid, status)
                    continue
                try:
                    message = build_raw_message(raw, uid)
                except Exception:
                    LOGGER.warning("Skipping unparseable message uid %s", uid, exc_info=True)
                    continue
                yield message
        finally:
            try:
                client.logout()
            except (imaplib.IMAP4.error, OSError):
                LOGGER.warning("Error during IMAP logout", exc_info=True)
