"""Ledger projections: the filtered list and its total, computed together."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ..models.record import FilterState, Record
from .aggregation import sum_amounts
from .filtering import filter_records


@dataclass(frozen=True)
class LedgerView:
    """Filtered records plus the total over exactly those records."""

    records: tuple[Record, ...]
    total: float

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records


def build_ledger_view(snapshot: Sequence[Record], state: FilterState) -> LedgerView:
    """Filter the snapshot and sum the result in one step."""

    filtered = tuple(filter_records(snapshot, state))
    return LedgerView(records=filtered, total=sum_amounts(filtered))


class LedgerViewCache:
    """Memoize the last view while the snapshot object and filter state are unchanged.

    Snapshots are immutable tuples replaced wholesale on every sync update, so
    identity is enough to detect a new snapshot.
    """

    def __init__(self) -> None:
        self._snapshot: Optional[Sequence[Record]] = None
        self._state: Optional[FilterState] = None
        self._view: Optional[LedgerView] = None

    def get(self, snapshot: Sequence[Record], state: FilterState) -> LedgerView:
        if self._view is not None and snapshot is self._snapshot and state == self._state:
            return self._view
        self._view = build_ledger_view(snapshot, state)
        self._snapshot = snapshot
        self._state = state
        return self._view

    def invalidate(self) -> None:
        self._snapshot = None
        self._state = None
        self._view = None
