"""Filtering and ordering helpers for fully resident record collections."""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List

from recordlens.domain.models.core import Record
from recordlens.domain.models.query import SortKey, SortOrder


def normalize_needle(text: str) -> str:
    return text.casefold()


def matches(record: Record, needle: str) -> bool:
    """Case-insensitive substring match against title, models and tags.

    *needle* must already be normalised with :func:`normalize_needle`; an
    empty needle matches every record.
    """
    if not needle:
        return True
    return any(needle in haystack for haystack in record.search_text())


def _updated_key(record: Record) -> float:
    # Records without a timestamp sort before every dated record.
    if record.updated_at is None:
        return float("-inf")
    return record.updated_at.timestamp()


def _first(values: Iterable[str]) -> str:
    for value in values:
        return value
    return ""


_SORT_KEYS: Dict[SortKey, Callable[[Record], Any]] = {
    SortKey.UPDATED: _updated_key,
    SortKey.MODEL: lambda record: _first(record.secondary_identifiers),
    SortKey.TAG: lambda record: _first(record.tags),
}


def sort_records(records: Iterable[Record], key: SortKey, order: SortOrder) -> List[Record]:
    """Stable sort by *key*; DESC flips the order while ties keep their relative order."""
    return sorted(records, key=_SORT_KEYS[key], reverse=order is SortOrder.DESC)


def filter_and_sort(
    records: Iterable[Record],
    text: str,
    key: SortKey,
    order: SortOrder,
) -> List[Record]:
    needle = normalize_needle(text)
    return sort_records((r for r in records if matches(r, needle)), key, order)
