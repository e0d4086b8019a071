from __future__ import annotations

from typing import Any, Iterable, Mapping

import pandas as pd

from radar.lexicon import RELEVANCE_PHRASES


def is_relevant(title: str | None, summary: str | None = None, phrases: Iterable[str] = RELEVANCE_PHRASES) -> bool:
    """True when any topic phrase occurs as a raw substring of title + summary."""
    text = f"{title or ''} {summary or ''}".lower()
    return any(phrase.lower() in text for phrase in phrases)


def is_item_relevant(item: Mapping[str, Any], phrases: Iterable[str] = RELEVANCE_PHRASES) -> bool:
    return is_relevant(item.get("title"), item.get("summary"), phrases)


def filter_relevant(df: pd.DataFrame, phrases: Iterable[str] = RELEVANCE_PHRASES) -> pd.DataFrame:
    if df.empty:
        return df.copy()
    phrases = tuple(phrases)
    mask = df.apply(lambda row: is_relevant(row.get("title"), row.get("summary"), phrases), axis=1)
    return df[mask.astype(bool)].copy()
