"""Telegram Bot API notification adapter.

Uses the Bot API for delivery so alerts can be routed via a bot chat.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Sequence

from adapters.notification_formatting import format_html
from core.models import LeadRecord


class TelegramBotNotifier:
    """Notifier adapter that sends qualified leads via the Telegram Bot API."""

    def __init__(self, bot_token: str, chat_id: str, timeout: float = 10) -> None:
        self._bot_token = bot_token
        self._chat_id = chat_id
        self._timeout = timeout

    def _endpoint(self) -> str:
        # The Bot API endpoint is deterministic and derived from the token.
        return f"https://api.telegram.org/bot{self._bot_token}/sendMessage"

    def build_payload(self, record: LeadRecord, tags: Sequence[str]) -> dict:
        return {
            "chat_id": self._chat_id,
            "text": format_html(record, tags),
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }

    async def send(self, record: LeadRecord, tags: Sequence[str]) -> None:
        """Send the formatted alert via the Bot API."""

        data = json.dumps(self.build_payload(record, tags)).encode("utf-8")
        request = urllib.request.Request(self._endpoint(), data=data, method="POST")
        request.add_header("Content-Type", "application/json")
        # Blocking HTTP call; alerts are rare and sent one lead at a time.
        try:
            with urllib.request.urlopen(request, timeout=self._timeout):
                pass
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise RuntimeError(f"Bot API error {e.code}: {body}") from e
