"""Defensive conversion of remote payloads into validated ``Record`` objects."""

from __future__ import annotations

import logging
import math
import warnings
from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional

from ..errors import CoercionWarning
from ..models.record import Record

logger = logging.getLogger("spendwatch.coercion")


def _warn(field: str, value: Any, record_id: Optional[str]) -> None:
    message = f"Could not coerce {field}={value!r} on record {record_id or '?'}; using default"
    logger.warning(message, extra={"field": field, "record_id": record_id})
    warnings.warn(message, CoercionWarning, stacklevel=3)


def coerce_amount(value: Any, *, record_id: Optional[str] = None) -> float:
    """Return a finite float amount, 0.0 when missing or unparsable."""

    if value is None:
        return 0.0
    number: Optional[float] = None
    if isinstance(value, bool):
        number = None
    elif isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except (OverflowError, ValueError, ArithmeticError):
            # ints beyond float range, signalling Decimal NaN
            number = None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            number = None
    if number is None or not math.isfinite(number):
        _warn("amount", value, record_id)
        return 0.0
    return number


def _to_local_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _from_epoch(seconds: float, nanos: float = 0) -> datetime:
    return datetime.fromtimestamp(seconds + nanos / 1e9)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Return a naive local datetime, or ``None`` for pending/unparsable values.

    Accepts datetimes (aware ones are converted to local time), dates, ISO
    strings, epoch seconds, and ``{"seconds": ..., "nanoseconds": ...}``
    style timestamp payloads or objects exposing ``to_datetime()``.
    Never warns; see ``coerce_timestamp`` for the reporting variant.
    """

    if value is None:
        return None
    try:
        if isinstance(value, datetime):
            return _to_local_naive(value)
        if isinstance(value, date):
            return datetime.combine(value, datetime.min.time())
        if isinstance(value, str):
            text = value.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            return _to_local_naive(datetime.fromisoformat(text))
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return _from_epoch(value)
        if isinstance(value, Mapping) and "seconds" in value:
            return _from_epoch(float(value["seconds"]), float(value.get("nanoseconds", 0)))
        to_datetime = getattr(value, "to_datetime", None)
        if callable(to_datetime):
            return _to_local_naive(to_datetime())
        seconds = getattr(value, "seconds", None)
        if seconds is not None:
            return _from_epoch(float(seconds), float(getattr(value, "nanoseconds", 0) or 0))
    except (TypeError, ValueError, OverflowError, OSError):
        pass
    return None


def coerce_timestamp(value: Any, *, record_id: Optional[str] = None) -> Optional[datetime]:
    """Like ``parse_timestamp`` but reports unparsable values as ``CoercionWarning``."""

    timestamp = parse_timestamp(value)
    if timestamp is None and value is not None:
        _warn("createdAt", value, record_id)
    return timestamp


def coerce_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def coerce_record(raw: Mapping[str, Any]) -> Optional[Record]:
    """Build a ``Record`` from a remote mapping.

    Returns ``None`` only when the mapping has no usable id; every other
    defect is defaulted and reported as a ``CoercionWarning``.
    """

    raw_id = raw.get("id")
    if raw_id is None or str(raw_id) == "":
        logger.warning("Dropping remote record without id", extra={"keys": sorted(raw)})
        return None
    record_id = str(raw_id)
    return Record(
        id=record_id,
        item=coerce_text(raw.get("item")) or "",
        amount=coerce_amount(raw.get("amount"), record_id=record_id),
        vendor=coerce_text(raw.get("vendor")),
        notes=coerce_text(raw.get("notes")),
        created_at=coerce_timestamp(raw.get("createdAt"), record_id=record_id),
    )
