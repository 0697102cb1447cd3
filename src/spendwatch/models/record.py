"""Validated in-memory shapes for expenditure records and filter state."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional

from ..errors import InvalidRangeError
from ..utils.dates import day_end, day_start, format_date, parse_date


@dataclass(frozen=True)
class Record:
    """A single expenditure as held in the local cache.

    ``created_at`` is naive local time and stays ``None`` while the store has
    not assigned a creation time yet.
    """

    id: str
    item: str = ""
    amount: float = 0.0
    vendor: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.created_at is None

    def haystack(self) -> str:
        """Lower-cased text searched by the free-text filter."""

        return f"{self.item or ''} {self.vendor or ''} {self.notes or ''}".lower()


@dataclass(frozen=True)
class DateRange:
    """Optional inclusive day-granularity interval."""

    start: Optional[date] = None
    end: Optional[date] = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise InvalidRangeError(
                f"start {format_date(self.start)} is after end {format_date(self.end)}"
            )

    @classmethod
    def from_iso(cls, start: Optional[str] = None, end: Optional[str] = None) -> "DateRange":
        """Build from ISO strings; malformed bounds are treated as absent."""

        return cls(start=parse_date(start), end=parse_date(end))

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None

    @property
    def start_instant(self) -> Optional[datetime]:
        return day_start(self.start) if self.start is not None else None

    @property
    def end_instant(self) -> Optional[datetime]:
        return day_end(self.end) if self.end is not None else None

    def with_start(self, value: Optional[date]) -> "DateRange":
        return replace(self, start=value)

    def with_end(self, value: Optional[date]) -> "DateRange":
        return replace(self, end=value)

    def to_iso(self) -> tuple[str, str]:
        """Bounds as ISO strings, empty for absent bounds."""

        return (
            format_date(self.start) if self.start else "",
            format_date(self.end) if self.end else "",
        )


@dataclass(frozen=True)
class FilterState:
    """Caller-owned search and date range applied on every recomputation."""

    search_text: str = ""
    range: DateRange = field(default_factory=DateRange)

    def with_search(self, text: str) -> "FilterState":
        return replace(self, search_text=text)

    def with_range(self, date_range: DateRange) -> "FilterState":
        return replace(self, range=date_range)

    def cleared(self) -> "FilterState":
        """Drop search text and both bounds."""

        return FilterState()
