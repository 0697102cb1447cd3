from __future__ import annotations

from types import SimpleNamespace

from spendwatch.models.record import FilterState
from spendwatch.services.aggregation import sum_amounts
from spendwatch.services.filtering import filter_records
from tests.conftest import assert_float_equal


def test_sum_of_empty_is_zero():
    assert sum_amounts([]) == 0.0


def test_sum_adds_amounts(record_factory):
    records = [record_factory(amount=500), record_factory(amount=200.5), record_factory(amount=0)]
    assert_float_equal(sum_amounts(records), 700.5)


def test_missing_and_invalid_amounts_count_as_zero():
    records = [
        SimpleNamespace(amount=10.0),
        SimpleNamespace(amount=None),
        SimpleNamespace(amount="12"),
        SimpleNamespace(amount=float("nan")),
        SimpleNamespace(amount=float("inf")),
        SimpleNamespace(amount=True),
        SimpleNamespace(),
    ]
    assert sum_amounts(records) == 10.0


def test_sum_is_idempotent_over_filtered_list(record_factory):
    records = [record_factory(item="Paper", amount=5), record_factory(item="Ink", amount=7)]
    filtered = filter_records(records, FilterState(search_text="paper"))

    assert sum_amounts(filtered) == sum_amounts(filtered) == 5
    assert [r.amount for r in filtered] == [5]
