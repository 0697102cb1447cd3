"""End-to-end scenarios across sync, filter, aggregate, and the picker."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from spendwatch.errors import InvalidRangeError
from spendwatch.models.record import DateRange, FilterState
from spendwatch.services.aggregation import sum_amounts
from spendwatch.services.calendar_picker import CalendarPicker
from spendwatch.services.filtering import filter_records
from spendwatch.sync.live import LiveCollectionSync
from spendwatch.sync.sources import InMemoryCollectionSource


@pytest.fixture
def live_snapshot():
    source = InMemoryCollectionSource("expenditures")
    source.load(
        [
            {"id": "paper", "item": "Paper", "amount": 500, "vendor": "ABC", "createdAt": datetime(2024, 3, 5, 11, 0)},
            {"id": "ink", "item": "Ink", "amount": 200, "vendor": "XYZ", "createdAt": datetime(2024, 3, 10, 16, 0)},
        ]
    )
    sync = LiveCollectionSync(source)
    sync.start()
    yield sync.records
    sync.stop()


def test_search_only(live_snapshot):
    filtered = filter_records(live_snapshot, FilterState(search_text="abc"))
    assert [r.item for r in filtered] == ["Paper"]
    assert sum_amounts(filtered) == 500


def test_date_range_only(live_snapshot):
    state = FilterState(range=DateRange(start=date(2024, 3, 6), end=date(2024, 3, 12)))
    filtered = filter_records(live_snapshot, state)
    assert [r.item for r in filtered] == ["Ink"]
    assert sum_amounts(filtered) == 200


def test_picker_rejects_end_before_start():
    state = FilterState(range=DateRange(start=date(2024, 3, 15)))
    picker = CalendarPicker(today=lambda: date(2024, 3, 20))
    picker.open("end")

    with pytest.raises(InvalidRangeError):
        state = state.with_range(picker.select_date(date(2024, 3, 10), state.range))

    assert picker.is_open
    assert state.range == DateRange(start=date(2024, 3, 15))


def test_picker_feeds_filter(live_snapshot):
    picker = CalendarPicker(today=lambda: date(2024, 3, 20))
    state = FilterState()

    picker.open("start")
    state = state.with_range(picker.select_date(date(2024, 3, 5), state.range))
    picker.open("end")
    state = state.with_range(picker.select_date(date(2024, 3, 5), state.range))

    filtered = filter_records(live_snapshot, state)
    assert [r.id for r in filtered] == ["paper"]
