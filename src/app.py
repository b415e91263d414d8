"""Application entry point for the leadinbox poller."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from datetime import datetime, timedelta, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint

import settings
from adapters.csv_sink import CsvLeadSink
from adapters.email_notifier import SmtpNotifier
from adapters.imap_source import ImapMailSource
from adapters.json_ledger import JsonLedgerStore
from adapters.telegram_bot_notifier import TelegramBotNotifier
from core.dedup import DedupLedger
from core.ports import LedgerStorePort, MailSourcePort, NotifierPort
from core.processor import MessageProcessor

NAME = "LEADINBOX"
FONT = "small"

DEFAULT_REDACT_PATTERNS = ["IMAP__PASSWORD", "SMTP__PASSWORD", settings.TELEGRAM_BOT_TOKEN_ENV]


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict, app_settings: settings.AppSettings) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", True):
        return []
    values = [app_settings.imap.password, app_settings.smtp.password]
    if app_settings.notifications.bot_token:
        values.append(app_settings.notifications.bot_token)
    for name in redact_cfg.get("patterns", DEFAULT_REDACT_PATTERNS):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted({value for value in values if value}, key=len, reverse=True)


def _configure_logging(app_settings: settings.AppSettings) -> None:
    config = app_settings.logging or {}
    if not config.get("enabled", True):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config, app_settings)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", os.path.join(settings.PROJECT_ROOT, "logs", "leadinbox.log"))
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def build_notifier(app_settings: settings.AppSettings) -> Optional[NotifierPort]:
    """Select the alert adapter, or None when alerts are disabled."""

    notifications = app_settings.notifications
    if not notifications.enabled:
        return None
    if notifications.notification_method == "telegram_bot":
        if not notifications.bot_token:
            raise RuntimeError(
                f"{settings.TELEGRAM_BOT_TOKEN_ENV} is required when notification_method=telegram_bot"
            )
        if not notifications.bot_chat_id:
            raise RuntimeError("notifications.bot_chat_id is required for bot notifications")
        return TelegramBotNotifier(bot_token=notifications.bot_token, chat_id=notifications.bot_chat_id)
    return SmtpNotifier(app_settings.smtp)


def search_since(lookback_days: int, now: Optional[datetime] = None) -> datetime:
    """Start of the search window; always at least one day back."""

    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=max(1, lookback_days))


async def run_cycle(
    app_settings: settings.AppSettings,
    source: MailSourcePort,
    ledger_store: LedgerStorePort,
    processor: MessageProcessor,
) -> int:
    """Run one fetch-score-record pass and persist the ledger on success.

    Any exception from the mail source propagates before the ledger is saved,
    so the next run reprocesses those messages.
    """

    ledger = DedupLedger(ledger_store.load())
    since = search_since(app_settings.imap.search_lookback_days)
    summary = await processor.run(source.fetch_messages_since(since), ledger)
    ledger_store.save(summary.ledger.ids)
    return summary.new_leads


def _run(config_path: Optional[str] = None) -> None:
    _print_banner()
    app_settings = settings.load_settings(config_path)
    _configure_logging(app_settings)
    logger = logging.getLogger(__name__)

    imap = app_settings.imap
    logger.info("Starting leadinbox")
    logger.info("IMAP host: %s, folder: %s, lookback: %sd", imap.host, imap.folder, imap.search_lookback_days)
    logger.info("CSV path: %s", app_settings.csv_path)
    if not app_settings.pipeline.subject_must_contain:
        logger.warning("providers.subject_must_contain is empty; every message will be skipped")

    notifier = build_notifier(app_settings)
    if notifier is not None:
        logger.info("Selected notification method - %s", app_settings.notifications.notification_method)

    processor = MessageProcessor(
        config=app_settings.pipeline,
        sink=CsvLeadSink(app_settings.csv_path),
        notifier=notifier,
    )
    new_leads = asyncio.run(
        run_cycle(
            app_settings,
            ImapMailSource(imap),
            JsonLedgerStore(app_settings.ledger_path),
            processor,
        )
    )
    print(f"\nDone. New leads processed: {new_leads}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        prog="leadinbox",
        description="Poll the inbox once, score new leads, and append them to the CSV log.",
    )
    parser.add_argument(
        "--config",
        help=f"Path to config.json (default: ${settings.CONFIG_PATH_ENV} or {settings.CONFIG_PATH})",
    )
    args = parser.parse_args(argv)
    _run(args.config)


if __name__ == "__main__":
    main()
