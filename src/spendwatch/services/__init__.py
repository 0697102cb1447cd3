"""Service module exports."""

from . import (
    aggregation,
    calendar_picker,
    coercion,
    entries,
    export_csv,
    filtering,
    ledger_service,
)

__all__ = [
    "aggregation",
    "calendar_picker",
    "coercion",
    "entries",
    "export_csv",
    "filtering",
    "ledger_service",
]
