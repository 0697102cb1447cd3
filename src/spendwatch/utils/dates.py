"""Calendar date helpers shared by the filter engine, picker, and CLI."""

from __future__ import annotations

from calendar import month_name
from datetime import date, datetime, time
from typing import Optional

END_OF_DAY = time(23, 59, 59, 999000)

YearMonth = tuple[int, int]


def parse_date(raw: Optional[str]) -> Optional[date]:
    """Parse an ISO ``YYYY-MM-DD`` string; malformed input yields ``None``."""

    if not raw:
        return None
    parts = raw.strip().split("-")
    if len(parts) != 3:
        return None
    try:
        year, month, day = (int(part) for part in parts)
    except ValueError:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def format_date(value: date) -> str:
    """Return the zero-padded ISO form of a calendar date."""

    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def day_start(value: date) -> datetime:
    """First instant (00:00:00.000) of the given day."""

    return datetime.combine(value, time.min)


def day_end(value: date) -> datetime:
    """Last instant (23:59:59.999) of the given day."""

    return datetime.combine(value, END_OF_DAY)


def month_of(value: date) -> YearMonth:
    return (value.year, value.month)


def shift_month(month: YearMonth, delta: int) -> YearMonth:
    """Move a (year, month) pair by ``delta`` months, wrapping year boundaries."""

    year, mon = month
    index = year * 12 + (mon - 1) + delta
    return (index // 12, index % 12 + 1)


def month_title(month: YearMonth) -> str:
    """Heading such as ``October 2026``."""

    year, mon = month
    return f"{month_name[mon]} {year}"


def format_display_date(value: Optional[datetime]) -> str:
    """Day/month/year display form; ``-`` while the timestamp is pending."""

    if value is None:
        return "-"
    return value.strftime("%d/%m/%Y")


def parse_month(raw: str) -> Optional[YearMonth]:
    """Parse ``YYYY-MM``; malformed input yields ``None``."""

    parsed = parse_date(f"{raw.strip()}-01") if raw else None
    return month_of(parsed) if parsed else None
