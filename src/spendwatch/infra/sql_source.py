"""SQLModel-backed expenditures store exposed as an ordered live collection."""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..errors import SyncConnectionError
from ..models.expenditure import Expenditure
from ..services.entries import SERVER_TIMESTAMP
from ..sync.sources import ErrorCallback, OrderDirection, Payload, SnapshotCallback

logger = logging.getLogger("spendwatch.sql_source")

FIELD_COLUMNS = {
    "id": "id",
    "item": "item",
    "amount": "amount",
    "vendor": "vendor",
    "notes": "notes",
    "createdAt": "created_at",
}


@dataclass
class _Subscription:
    order_field: str
    direction: OrderDirection
    on_snapshot: SnapshotCallback
    on_error: ErrorCallback
    last: Optional[list[Payload]] = field(default=None)


class SQLModelCollectionSource:
    """Serve the ``expenditure`` table as a push-based ordered collection.

    Mutations made through this object refresh subscribers immediately; writes
    made by other processes are picked up by ``refresh`` (see ``SnapshotPoller``).
    A subscriber only hears about a refresh when its ordered snapshot changed.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        collection: str = "expenditures",
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.session_factory = session_factory
        self.collection = collection
        self._clock = clock
        self._subscriptions: dict[int, _Subscription] = {}
        self._handles = itertools.count(1)
        self._lock = threading.RLock()

    def _check_collection(self, collection: str) -> None:
        if collection != self.collection:
            raise KeyError(f"Unknown collection: {collection}")

    def _column(self, field_name: str):
        try:
            return getattr(Expenditure, FIELD_COLUMNS[field_name])
        except KeyError as exc:
            raise ValueError(f"Unknown field: {field_name}") from exc

    def fetch(
        self, order_field: str = "createdAt", direction: OrderDirection = "desc"
    ) -> list[Payload]:
        """Query the ordered snapshot; NULL order values count as the newest."""

        column = self._column(order_field)
        if direction == "desc":
            ordering = (column.is_(None).desc(), column.desc(), Expenditure.id)  # type: ignore
        else:
            ordering = (column.is_(None).asc(), column.asc(), Expenditure.id)  # type: ignore
        with self.session_factory() as session:
            rows = session.exec(select(Expenditure).order_by(*ordering)).all()
            return [row.to_payload() for row in rows]

    def subscribe(
        self,
        collection: str,
        order_field: str,
        direction: OrderDirection,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> int:
        """Register a listener and deliver the current snapshot immediately."""

        self._check_collection(collection)
        with self._lock:
            try:
                payloads = self.fetch(order_field, direction)
            except SQLAlchemyError as exc:
                raise SyncConnectionError(f"cannot read {collection!r}: {exc}") from exc
            handle = next(self._handles)
            self._subscriptions[handle] = _Subscription(
                order_field, direction, on_snapshot, on_error, last=payloads
            )
            on_snapshot(list(payloads))
        logger.info("Subscriber added", extra={"handle": handle, "order_field": order_field})
        return handle

    def unsubscribe(self, handle: Any) -> None:
        with self._lock:
            if self._subscriptions.pop(handle, None) is not None:
                logger.info("Subscriber removed", extra={"handle": handle})

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def refresh(self) -> int:
        """Re-query for every subscriber and push changed snapshots.

        Returns the number of subscribers notified.
        """

        notified = 0
        with self._lock:
            for handle, sub in list(self._subscriptions.items()):
                if handle not in self._subscriptions:
                    continue
                try:
                    payloads = self.fetch(sub.order_field, sub.direction)
                except SQLAlchemyError as exc:
                    self._subscriptions.pop(handle, None)
                    logger.error("Refresh failed", extra={"handle": handle, "error": str(exc)})
                    error = SyncConnectionError(f"cannot read {self.collection!r}: {exc}")
                    error.__cause__ = exc
                    sub.on_error(error)
                    continue
                if payloads == sub.last:
                    continue
                sub.last = payloads
                sub.on_snapshot(list(payloads))
                notified += 1
        return notified

    def _apply_fields(self, row: Expenditure, fields: Mapping[str, Any]) -> None:
        for name, value in fields.items():
            if name == "id":
                continue
            if name not in FIELD_COLUMNS:
                raise ValueError(f"Unknown field: {name}")
            if value is SERVER_TIMESTAMP:
                value = self._clock()
            setattr(row, FIELD_COLUMNS[name], value)

    def create(self, collection: str, fields: Mapping[str, Any]) -> str:
        """Insert a row; a missing ``createdAt`` is stamped with the store clock."""

        self._check_collection(collection)
        row = Expenditure()
        if fields.get("id"):
            row.id = str(fields["id"])
        self._apply_fields(row, fields)
        if "createdAt" not in fields:
            row.created_at = self._clock()
        with self.session_factory() as session:
            session.add(row)
            session.commit()
            record_id = row.id
        logger.info("Expenditure created", extra={"record_id": record_id})
        self.refresh()
        return record_id

    def update(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> None:
        self._check_collection(collection)
        with self.session_factory() as session:
            row = session.get(Expenditure, record_id)
            if row is None:
                raise KeyError(record_id)
            self._apply_fields(row, fields)
            session.add(row)
            session.commit()
        logger.info("Expenditure updated", extra={"record_id": record_id})
        self.refresh()

    def delete(self, collection: str, record_id: str) -> bool:
        self._check_collection(collection)
        with self.session_factory() as session:
            row = session.get(Expenditure, record_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
        logger.info("Expenditure deleted", extra={"record_id": record_id})
        self.refresh()
        return True
