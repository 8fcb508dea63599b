"""
Aggregate-view deduplication and ordering.

Records are removed when:
1. Their URL was already seen (canonical duplicates, first occurrence wins)
2. Optionally, their title is nearly identical to a kept record's title
   (the same story syndicated under different URLs)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, TypeVar

from rapidfuzz import fuzz

from .types import RawArticle


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

T = TypeVar("T")


def dedup_by_url(
    records: list[tuple[T, RawArticle]],
    title_threshold: int | None = None,
) -> list[tuple[T, RawArticle]]:
    """Remove duplicate records from a tagged list, preserving order.

    Records without a URL cannot be matched to a canonical article and are
    dropped.

    Args:
        records: (tag, record) pairs in fetch order
        title_threshold: Similarity threshold (0-100) for fuzzy title matching,
                         or None to compare URLs only

    Returns:
        Deduplicated list, first occurrence of each URL kept
    """
    seen_urls: set[str] = set()
    titles: list[str] = []
    kept: list[tuple[T, RawArticle]] = []

    for tag, record in records:
        if not record.url or record.url in seen_urls:
            continue
        if title_threshold is not None and record.title:
            if _is_similar_title(record.title, titles, title_threshold):
                continue
            titles.append(record.title)
        seen_urls.add(record.url)
        kept.append((tag, record))

    return kept


def sort_newest_first(records: list[tuple[T, RawArticle]]) -> list[tuple[T, RawArticle]]:
    """Stable sort by published timestamp, newest first; undated records sort last."""
    return sorted(records, key=lambda item: parse_published(item[1].published_at), reverse=True)


def parse_published(value: Any) -> datetime:
    """Parse an ISO 8601 timestamp, treating missing or malformed values as the epoch."""
    if not value or not isinstance(value, str):
        return EPOCH
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _is_similar_title(title: str, titles: list[str], threshold: int) -> bool:
    for existing in titles:
        if fuzz.ratio(title, existing) >= threshold:
            return True
    return False
