"""SpendWatch: a live, filterable view of a remote expenditures collection."""

from __future__ import annotations

from .config import BaseConfig, DevConfig
from .models import DateRange, FilterState, Record
from .services.aggregation import sum_amounts
from .services.calendar_picker import CalendarPicker, build_month_grid
from .services.filtering import filter_records
from .sync import LiveCollectionSync, SyncState, SyncStatus

__all__ = [
    "BaseConfig",
    "CalendarPicker",
    "DateRange",
    "DevConfig",
    "FilterState",
    "LiveCollectionSync",
    "Record",
    "SyncState",
    "SyncStatus",
    "build_month_grid",
    "filter_records",
    "sum_amounts",
]
