"""Text normalization for inbound message bodies."""

from __future__ import annotations

import html
import re
from typing import Optional

_TAG_RE = re.compile(r"<.*?>", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")

ELLIPSIS = "…"


def _collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def strip_html(markup: str) -> str:
    """Replace every tag with a space and collapse whitespace runs."""

    return _collapse_whitespace(_TAG_RE.sub(" ", markup))


def best_body_text(text_body: Optional[str], html_body: Optional[str]) -> str:
    """Return the best plain-text rendition of a message body.

    The plain-text variant wins when it is present and non-blank. Otherwise the
    HTML variant is stripped of markup. Entities are decoded in both cases.
    """

    text = text_body
    if not text or not text.strip():
        text = strip_html(html_body or "")
    return html.unescape(text).strip()


def compact(text: str, max_chars: int) -> str:
    """Clip text to max_chars, marking truncation with an ellipsis."""

    if not text or len(text) <= max_chars:
        return text
    return text[:max_chars] + ELLIPSIS
