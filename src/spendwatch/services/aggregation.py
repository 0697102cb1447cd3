"""Totals over filtered expenditure lists."""

from __future__ import annotations

import math
from typing import Any, Iterable


def _safe_amount(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value) if math.isfinite(value) else 0.0


def sum_amounts(records: Iterable[Any]) -> float:
    """Add up ``amount`` across records, counting missing or invalid amounts as 0."""

    return sum((_safe_amount(getattr(record, "amount", None)) for record in records), 0.0)
