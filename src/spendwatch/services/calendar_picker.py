"""Calendar date-range picker modeled as a small state machine.

The picker is either closed or open on a displayed month while editing one
bound of a caller-owned ``DateRange``. Selecting a day either writes that bound
and closes, or raises ``InvalidRangeError`` and stays open on the same month.
"""

from __future__ import annotations

import logging
from calendar import SUNDAY, monthrange
from dataclasses import dataclass, replace
from datetime import date
from typing import Callable, Literal, Optional

from ..errors import CalendarStateError, InvalidRangeError
from ..models.record import DateRange
from ..utils.dates import YearMonth, format_date, month_of, month_title, shift_month

logger = logging.getLogger("spendwatch.calendar")

PickerMode = Literal["start", "end"]
Direction = Literal["prev", "next"]

WEEKDAY_HEADINGS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

MonthGrid = list[list[Optional[date]]]


def build_month_grid(year: int, month: int, first_weekday: int = SUNDAY) -> MonthGrid:
    """Lay out a month as rows of 7 cells, ``None`` for padding cells.

    ``first_weekday`` uses the ``calendar`` module constants (MONDAY=0 ...
    SUNDAY=6) and names the weekday shown in column 0.
    """

    weekday_of_first, total_days = monthrange(year, month)
    offset = (weekday_of_first - first_weekday) % 7

    rows: MonthGrid = []
    cells: list[Optional[date]] = [None] * offset
    for day in range(1, total_days + 1):
        cells.append(date(year, month, day))
        if len(cells) == 7:
            rows.append(cells)
            cells = []
    if cells:
        cells.extend([None] * (7 - len(cells)))
        rows.append(cells)
    return rows


@dataclass(frozen=True)
class CalendarPickerState:
    """Snapshot of the picker: open flag, bound being edited, month on display."""

    is_open: bool
    mode: PickerMode
    displayed_month: YearMonth


class CalendarPicker:
    """Interactive picker producing validated ``DateRange`` bounds."""

    def __init__(self, today: Callable[[], date] = date.today) -> None:
        self._today = today
        self._state = CalendarPickerState(
            is_open=False, mode="start", displayed_month=month_of(today())
        )

    @property
    def state(self) -> CalendarPickerState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state.is_open

    @property
    def mode(self) -> PickerMode:
        return self._state.mode

    @property
    def displayed_month(self) -> YearMonth:
        return self._state.displayed_month

    @property
    def title(self) -> str:
        return month_title(self._state.displayed_month)

    def _require_open(self, action: str) -> None:
        if not self._state.is_open:
            raise CalendarStateError(f"cannot {action} while the picker is closed")

    def open(self, mode: PickerMode) -> CalendarPickerState:
        """Open (or re-target) the picker on today's month."""

        if mode not in ("start", "end"):
            raise ValueError(f"Unknown picker mode: {mode!r}")
        self._state = CalendarPickerState(
            is_open=True, mode=mode, displayed_month=month_of(self._today())
        )
        return self._state

    def navigate(self, direction: Direction) -> CalendarPickerState:
        """Show the previous or next month."""

        self._require_open("navigate")
        if direction == "prev":
            delta = -1
        elif direction == "next":
            delta = 1
        else:
            raise ValueError(f"Unknown direction: {direction!r}")
        self._state = replace(
            self._state, displayed_month=shift_month(self._state.displayed_month, delta)
        )
        return self._state

    def select_date(self, day: date, current: DateRange) -> DateRange:
        """Write ``day`` into the bound being edited and close the picker.

        Raises ``InvalidRangeError`` (picker stays open, ``current`` untouched)
        when the selection would cross the other bound.
        """

        self._require_open("select a date")
        if self._state.mode == "start":
            if current.end is not None and day > current.end:
                logger.info(
                    "Rejected start selection",
                    extra={"selected": format_date(day), "end": format_date(current.end)},
                )
                raise InvalidRangeError("start after end")
            updated = current.with_start(day)
        else:
            if current.start is not None and day < current.start:
                logger.info(
                    "Rejected end selection",
                    extra={"selected": format_date(day), "start": format_date(current.start)},
                )
                raise InvalidRangeError("end before start")
            updated = current.with_end(day)
        self._state = replace(self._state, is_open=False)
        return updated

    def cancel(self) -> CalendarPickerState:
        """Close without touching the range; no-op when already closed."""

        if self._state.is_open:
            self._state = replace(self._state, is_open=False)
        return self._state

    def grid(self, first_weekday: int = SUNDAY) -> MonthGrid:
        """Grid for the displayed month."""

        year, month = self._state.displayed_month
        return build_month_grid(year, month, first_weekday)
