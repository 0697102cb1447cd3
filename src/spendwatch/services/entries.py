"""Entry-time validation for new expenditures."""

from __future__ import annotations

import math
from typing import Any, Optional

from ..errors import EntryValidationError


class _ServerTimestamp:
    """Sentinel asking the store to assign the creation time."""

    _instance: Optional["_ServerTimestamp"] = None

    def __new__(cls) -> "_ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


def _clean_optional(value: Optional[str]) -> Optional[str]:
    cleaned = (value or "").strip()
    return cleaned or None


def parse_entry_amount(raw: Any) -> float:
    """Parse the amount typed for a new entry; must be a positive number."""

    try:
        amount = float(str(raw).strip()) if raw is not None else 0.0
    except ValueError as exc:
        raise EntryValidationError("Enter a valid amount") from exc
    if not math.isfinite(amount) or amount <= 0:
        raise EntryValidationError("Enter a valid amount")
    return amount


def build_entry_fields(
    item: str,
    amount: Any,
    vendor: Optional[str] = "",
    notes: Optional[str] = "",
) -> dict[str, Any]:
    """Validate form input and return the field mapping for ``create``."""

    name = (item or "").strip()
    if not name:
        raise EntryValidationError("Item name is required")
    return {
        "item": name,
        "amount": parse_entry_amount(amount),
        "vendor": _clean_optional(vendor),
        "notes": _clean_optional(notes),
        "createdAt": SERVER_TIMESTAMP,
    }
