"""Model exports."""

from .expenditure import Expenditure
from .record import DateRange, FilterState, Record

__all__ = [
    "DateRange",
    "Expenditure",
    "FilterState",
    "Record",
]
