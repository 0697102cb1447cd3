"""SQLModel definition backing the local expenditures store."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import ClassVar, Optional

from sqlmodel import Field, SQLModel


def _new_id() -> str:
    return uuid.uuid4().hex


class Expenditure(SQLModel, table=True):
    """A stored expenditure row as the sync layer sees it (untrusted shape).

    ``amount`` and ``created_at`` are nullable on purpose: rows written by other
    clients may be incomplete and the sync boundary coerces them.
    """

    __tablename__: ClassVar[str] = "expenditure"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=64)
    item: str = Field(default="", max_length=255)
    amount: Optional[float] = Field(default=None)
    vendor: Optional[str] = Field(default=None, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=1024)
    created_at: Optional[datetime] = Field(default=None, index=True)

    def to_payload(self) -> dict[str, object]:
        """Return the remote field mapping delivered to subscribers."""

        return {
            "id": self.id,
            "item": self.item,
            "amount": self.amount,
            "vendor": self.vendor,
            "notes": self.notes,
            "createdAt": self.created_at,
        }
