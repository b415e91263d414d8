"""Layered configuration for leadinbox.

All user-editable settings (mailbox, alerts, scoring lists, logging) live in a
single JSON file for quick edits without touching Python. Secrets come from
the environment (or a .env file) and override the file:

1) config.json
2) .env / process environment, for the names in ENV_OVERRIDES

The result is one frozen AppSettings object handed to the app layer.
"""

from __future__ import annotations

import copy
import json
import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Optional, Tuple

from dotenv import load_dotenv

from core.config import PipelineConfig, ScoringWeights

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# config.json sits next to src/ unless --config or LEADINBOX_CONFIG says otherwise.
CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")
CONFIG_PATH_ENV = "LEADINBOX_CONFIG"

# Environment variable -> (section, key) in the JSON document.
ENV_OVERRIDES: dict[str, Tuple[str, str]] = {
    "IMAP__HOST": ("imap", "host"),
    "IMAP__USERNAME": ("imap", "username"),
    "IMAP__PASSWORD": ("imap", "password"),
    "SMTP__HOST": ("smtp", "host"),
    "SMTP__USERNAME": ("smtp", "username"),
    "SMTP__PASSWORD": ("smtp", "password"),
    "SMTP__TO": ("smtp", "to"),
}

TELEGRAM_BOT_TOKEN_ENV = "TELEGRAM_BOT_TOKEN"

NOTIFICATION_METHODS = ("email", "telegram_bot")


@dataclass(frozen=True)
class ImapSettings:
    host: str = "imap.gmail.com"
    port: int = 993
    use_ssl: bool = True
    username: str = ""
    password: str = ""
    folder: str = "INBOX"
    search_lookback_days: int = 3


@dataclass(frozen=True)
class SmtpSettings:
    host: str = "smtp.gmail.com"
    port: int = 587
    use_starttls: bool = True
    username: str = ""
    password: str = ""
    to: str = ""


@dataclass(frozen=True)
class NotificationSettings:
    """Alert settings; only qualified leads are ever sent."""

    enabled: bool = False
    notification_method: str = "email"
    bot_chat_id: Optional[str] = None
    bot_token: Optional[str] = None


@dataclass(frozen=True)
class AppSettings:
    imap: ImapSettings
    smtp: SmtpSettings
    notifications: NotificationSettings
    pipeline: PipelineConfig
    csv_path: str
    ledger_path: str
    config_path: str
    logging: dict = field(default_factory=dict)


def resolve_config_path(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> str:
    environ = os.environ if environ is None else environ
    return path or environ.get(CONFIG_PATH_ENV) or CONFIG_PATH


def _load_json_config(path: str) -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {path}")
    return data


def apply_env_overrides(raw: dict, environ: Mapping[str, str]) -> dict:
    """Return a copy of raw with the named environment overrides applied."""

    merged = copy.deepcopy(raw)
    for name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(name)
        if value:
            merged.setdefault(section, {})[key] = value
    return merged


def _resolve_path(path: str, base_dir: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(base_dir, path)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _as_tuple(values: Any, name: str) -> Tuple[str, ...]:
    if values is None:
        return ()
    if not isinstance(values, list):
        raise ValueError(f"{name} must be a list of strings")
    return tuple(str(value) for value in values if str(value).strip())


def _build_imap(raw: dict) -> ImapSettings:
    defaults = ImapSettings()
    return ImapSettings(
        host=str(raw.get("host", defaults.host)),
        port=int(raw.get("port", defaults.port)),
        use_ssl=_as_bool(raw.get("use_ssl", defaults.use_ssl)),
        username=str(raw.get("username", defaults.username)),
        password=str(raw.get("password", defaults.password)),
        folder=str(raw.get("folder", defaults.folder)),
        search_lookback_days=int(raw.get("search_lookback_days", defaults.search_lookback_days)),
    )


def _build_smtp(raw: dict) -> SmtpSettings:
    defaults = SmtpSettings()
    return SmtpSettings(
        host=str(raw.get("host", defaults.host)),
        port=int(raw.get("port", defaults.port)),
        use_starttls=_as_bool(raw.get("use_starttls", defaults.use_starttls)),
        username=str(raw.get("username", defaults.username)),
        password=str(raw.get("password", defaults.password)),
        to=str(raw.get("to", defaults.to)),
    )


def _build_notifications(raw: dict, environ: Mapping[str, str]) -> NotificationSettings:
    method = str(raw.get("notification_method", "email"))
    if method not in NOTIFICATION_METHODS:
        raise ValueError(f"notification_method must be one of {', '.join(NOTIFICATION_METHODS)}")
    bot_chat_id = raw.get("bot_chat_id")
    return NotificationSettings(
        enabled=_as_bool(raw.get("enabled", False)),
        notification_method=method,
        bot_chat_id=None if bot_chat_id is None else str(bot_chat_id),
        bot_token=environ.get(TELEGRAM_BOT_TOKEN_ENV) or None,
    )


def _build_weights(raw: dict) -> ScoringWeights:
    defaults = ScoringWeights()
    return ScoringWeights(
        keyword=float(raw.get("keyword", defaults.keyword)),
        intent=float(raw.get("intent", defaults.intent)),
        city=float(raw.get("city", defaults.city)),
        price=float(raw.get("price", defaults.price)),
        negative=float(raw.get("negative", defaults.negative)),
        price_min=Decimal(str(raw.get("price_min", defaults.price_min))),
        price_max=Decimal(str(raw.get("price_max", defaults.price_max))),
    )


def _build_pipeline(raw: dict) -> PipelineConfig:
    providers = raw.get("providers", {}) or {}
    message_chars = int(raw.get("message_chars", 500))
    if message_chars <= 0:
        raise ValueError("message_chars must be positive")
    return PipelineConfig(
        subject_must_contain=_as_tuple(
            providers.get("subject_must_contain"), "providers.subject_must_contain"
        ),
        keywords=_as_tuple(raw.get("keywords"), "keywords"),
        hot_intent=_as_tuple(raw.get("hot_intent"), "hot_intent"),
        cities=_as_tuple(raw.get("cities"), "cities"),
        score_threshold=float(raw.get("score_threshold", 0.65)),
        message_chars=message_chars,
        weights=_build_weights(raw.get("scoring", {}) or {}),
    )


def build_settings(raw: dict, config_path: str, environ: Mapping[str, str]) -> AppSettings:
    """Turn a parsed config document into AppSettings."""

    raw = apply_env_overrides(raw, environ)
    base_dir = os.path.dirname(os.path.abspath(config_path))
    logging_config = copy.deepcopy(raw.get("logging", {}) or {})
    file_cfg = logging_config.get("file")
    if isinstance(file_cfg, dict) and file_cfg.get("path"):
        file_cfg["path"] = _resolve_path(str(file_cfg["path"]), base_dir)

    return AppSettings(
        imap=_build_imap(raw.get("imap", {}) or {}),
        smtp=_build_smtp(raw.get("smtp", {}) or {}),
        notifications=_build_notifications(raw.get("notifications", {}) or {}, environ),
        pipeline=_build_pipeline(raw),
        csv_path=_resolve_path(str(raw.get("csv_path", "leads.csv")), base_dir),
        ledger_path=_resolve_path(str(raw.get("ledger_path", "processed.json")), base_dir),
        config_path=os.path.abspath(config_path),
        logging=logging_config,
    )


def load_settings(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> AppSettings:
    """Load config.json and apply environment overrides.

    A missing config file is fatal: FileNotFoundError propagates to the caller.
    """

    if environ is None:
        load_dotenv()
        environ = os.environ
    config_path = resolve_config_path(path, environ)
    return build_settings(_load_json_config(config_path), config_path, environ)
