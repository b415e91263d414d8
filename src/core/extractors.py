"""Field extractors (core domain).

Each extractor is a pure function over the subject or the normalized body.
Patterns are compiled once at import time; the first match always wins.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, Optional, TypeVar

from core.models import ExtractedFields

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

SOURCE_OFFERUP = "OfferUp"
SOURCE_FACEBOOK = "Facebook"
SOURCE_EMAIL = "Email"

# Checked in order; the first rule with any marker present wins.
SOURCE_RULES = (
    (SOURCE_OFFERUP, ("offerup",)),
    (SOURCE_FACEBOOK, ("marketplace", "facebook")),
)

# "$450", "price: 450", "Price 450"
_PRICE_PREFIXED_RE = re.compile(r"(?:\$|price[:\s]*)(\d{2,5})", re.IGNORECASE)
# "450 usd", "450 dollars"
_PRICE_SUFFIXED_RE = re.compile(r"\b(\d{2,5})\s?(?:usd|dollars?)\b", re.IGNORECASE)
_URL_RE = re.compile(r"https?://\S+")
_URL_TRAILING_PUNCTUATION = ".)]},"


def detect_source(subject: Optional[str]) -> str:
    """Infer the marketplace channel from the subject line."""

    lowered = (subject or "").lower()
    for source, markers in SOURCE_RULES:
        if any(marker in lowered for marker in markers):
            return source
    return SOURCE_EMAIL


def subject_matches(subject: Optional[str], needles: Iterable[str]) -> bool:
    """Return True when the subject contains any needle, ignoring case."""

    if not subject or not subject.strip():
        return False
    lowered = subject.lower()
    return any(needle.lower() in lowered for needle in needles)


def extract_price(body: str) -> Optional[Decimal]:
    match = _PRICE_PREFIXED_RE.search(body) or _PRICE_SUFFIXED_RE.search(body)
    if not match:
        return None
    try:
        return Decimal(match.group(1))
    except InvalidOperation:
        return None


def extract_first_url(body: str) -> Optional[str]:
    match = _URL_RE.search(body)
    if not match:
        return None
    return match.group(0).rstrip(_URL_TRAILING_PUNCTUATION)


def city_pattern(city: str) -> re.Pattern:
    """Whole-word, lower-case pattern for a configured city name."""

    return re.compile(rf"\b{re.escape(city.lower())}\b")


def find_city(body: str, cities: Iterable[str]) -> str:
    """Return the first configured city found in the body as a whole word."""

    lowered = body.lower()
    for city in cities:
        if city_pattern(city).search(lowered):
            return city
    return ""


def _safely(name: str, extractor: Callable[[], T], fallback: T) -> T:
    # A failing extractor yields its fallback; the other fields still run.
    try:
        return extractor()
    except Exception:
        LOGGER.warning("Extractor %s failed; treating field as absent", name, exc_info=True)
        return fallback


def extract_fields(subject: Optional[str], body: str, cities: Iterable[str]) -> ExtractedFields:
    """Run every extractor, degrading individual failures to absent fields."""

    cities = list(cities)
    return ExtractedFields(
        source=_safely("source", lambda: detect_source(subject), SOURCE_EMAIL),
        price=_safely("price", lambda: extract_price(body), None),
        url=_safely("url", lambda: extract_first_url(body), None),
        city=_safely("city", lambda: find_city(body, cities), ""),
    )
