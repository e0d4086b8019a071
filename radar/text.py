from __future__ import annotations

import re
from typing import AbstractSet

from radar.lexicon import STOP_WORDS

_HTML_TAG_RE = re.compile(r"<[^>]+>")
_URL_RE = re.compile(r"https?://\S+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]+")


def tokenize(text: str | None, stop_words: AbstractSet[str] = STOP_WORDS) -> list[str]:
    """Lowercase alphanumeric tokens in original order, repeats kept."""
    if not text or not isinstance(text, str):
        return []
    cleaned = _HTML_TAG_RE.sub(" ", text)
    cleaned = _URL_RE.sub(" ", cleaned)
    cleaned = _NON_ALNUM_RE.sub(" ", cleaned.lower())
    return [token for token in cleaned.split() if len(token) > 1 and token not in stop_words]


def document_text(title: str | None, summary: str | None) -> str:
    # title twice: titles carry more signal than summaries
    title = title or ""
    return f"{title} {title} {summary or ''}"


def tokenize_document(
    title: str | None,
    summary: str | None,
    stop_words: AbstractSet[str] = STOP_WORDS,
) -> list[str]:
    return tokenize(document_text(title, summary), stop_words)
