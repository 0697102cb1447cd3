"""CSV export helpers for filtered ledgers."""

from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path
from typing import Iterable

from ..models.record import Record

HEADERS = ["id", "created_at", "item", "amount", "vendor", "notes"]


def _serialize_value(value):
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def export_records_csv(*, records: Iterable[Record], output_path: Path) -> Path:
    """Write records to CSV at `output_path` with deterministic columns.

    Returns the path written.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Use newline='' for csv on Windows
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=HEADERS, quoting=csv.QUOTE_MINIMAL)
        writer.writeheader()
        for record in records:
            writer.writerow({name: _serialize_value(getattr(record, name)) for name in HEADERS})

    return output_path
