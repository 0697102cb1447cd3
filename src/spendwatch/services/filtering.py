"""Free-text and date-range filtering over a cached snapshot."""

from __future__ import annotations

from typing import Iterable

from ..models.record import DateRange, FilterState, Record


def normalize_search(text: str | None) -> str:
    """Trim and lower-case search text; ``None`` behaves like empty."""

    return (text or "").strip().lower()


def matches_text(record: Record, needle: str) -> bool:
    """Return True when ``needle`` (already normalized) occurs in the record text."""

    if not needle:
        return True
    return needle in record.haystack()


def matches_range(record: Record, date_range: DateRange) -> bool:
    """Apply the inclusive day bounds; pending records fail any set bound."""

    start = date_range.start_instant
    end = date_range.end_instant
    if start is None and end is None:
        return True
    created = record.created_at
    if created is None:
        return False
    if start is not None and created < start:
        return False
    if end is not None and created > end:
        return False
    return True


def filter_records(records: Iterable[Record], state: FilterState) -> list[Record]:
    """Return the records passing both predicates, in their original order."""

    needle = normalize_search(state.search_text)
    return [
        record
        for record in records
        if matches_text(record, needle) and matches_range(record, state.range)
    ]
