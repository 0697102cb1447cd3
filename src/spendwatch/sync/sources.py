"""Collaborator interfaces for the remote collection plus an in-memory store."""

from __future__ import annotations

import itertools
import logging
import threading
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Iterable, Literal, Optional, Protocol

from ..errors import SyncConnectionError
from ..services.coercion import parse_timestamp
from ..services.entries import SERVER_TIMESTAMP

logger = logging.getLogger("spendwatch.sources")

Payload = Mapping[str, Any]
OrderDirection = Literal["asc", "desc"]
SnapshotCallback = Callable[[list[Payload]], None]
ErrorCallback = Callable[[BaseException], None]

TIMESTAMP_FIELDS = frozenset({"createdAt"})


class CollectionSource(Protocol):
    """Ordered live collection: pushes the full ordered list on every change."""

    def subscribe(
        self,
        collection: str,
        order_field: str,
        direction: OrderDirection,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Any:  # pragma: no cover - interface
        ...

    def unsubscribe(self, handle: Any) -> None:  # pragma: no cover - interface
        ...


class MutationCollaborator(Protocol):
    """CRUD against the remote collection; results come back through the stream."""

    def create(self, collection: str, fields: Mapping[str, Any]) -> str:  # pragma: no cover
        ...

    def update(
        self, collection: str, record_id: str, fields: Mapping[str, Any]
    ) -> None:  # pragma: no cover
        ...

    def delete(self, collection: str, record_id: str) -> bool:  # pragma: no cover
        """Remove a document; returns False when it did not exist."""
        ...


def order_payloads(
    payloads: Iterable[Payload], order_field: str, direction: OrderDirection
) -> list[Payload]:
    """Sort payloads by ``order_field``; missing values count as the newest.

    Timestamp fields are compared after parsing, so mixed shapes (datetimes,
    ISO strings, ``{"seconds": ...}`` mappings) order together. Unparsable
    timestamps sort with the pending ones.
    """

    def key(payload: Payload) -> tuple[bool, Any]:
        value = payload.get(order_field)
        if order_field in TIMESTAMP_FIELDS:
            value = parse_timestamp(value)
            return (value is None, value or datetime.min)
        return (value is None, value if value is not None else "")

    return sorted(payloads, key=key, reverse=(direction == "desc"))


@dataclass
class _Subscription:
    order_field: str
    direction: OrderDirection
    on_snapshot: SnapshotCallback
    on_error: ErrorCallback


class InMemoryCollectionSource:
    """Process-local collection implementing both collaborator protocols.

    Every mutation pushes a freshly ordered snapshot to each subscriber before
    the mutating call returns. ``defer_timestamps`` leaves server-assigned
    creation times empty until ``resolve_pending`` runs, mimicking a store that
    acknowledges writes before stamping them.
    """

    def __init__(
        self,
        collection: str = "expenditures",
        *,
        clock: Callable[[], datetime] = datetime.now,
        defer_timestamps: bool = False,
    ) -> None:
        self.collection = collection
        self.reachable = True
        self._clock = clock
        self._defer_timestamps = defer_timestamps
        self._docs: dict[str, dict[str, Any]] = {}
        self._subscriptions: dict[int, _Subscription] = {}
        self._handles = itertools.count(1)
        self._lock = threading.RLock()

    def _check_collection(self, collection: str) -> None:
        if collection != self.collection:
            raise KeyError(f"Unknown collection: {collection}")

    def _stamp(self, fields: Mapping[str, Any], *, creating: bool) -> dict[str, Any]:
        doc = {key: value for key, value in fields.items() if key != "id"}
        wants_stamp = doc.get("createdAt") is SERVER_TIMESTAMP or (
            creating and "createdAt" not in doc
        )
        if wants_stamp:
            doc["createdAt"] = None if self._defer_timestamps else self._clock()
        return doc

    def snapshot(
        self, order_field: str = "createdAt", direction: OrderDirection = "desc"
    ) -> list[Payload]:
        """Return copies of every document in stream order."""

        with self._lock:
            docs = [{"id": doc_id, **doc} for doc_id, doc in self._docs.items()]
        return order_payloads(docs, order_field, direction)

    def _broadcast(self) -> None:
        with self._lock:
            for handle, sub in list(self._subscriptions.items()):
                if handle not in self._subscriptions:
                    continue
                sub.on_snapshot(self.snapshot(sub.order_field, sub.direction))

    def subscribe(
        self,
        collection: str,
        order_field: str,
        direction: OrderDirection,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> int:
        """Register a listener and deliver the current snapshot immediately."""

        if not self.reachable:
            raise SyncConnectionError(f"collection {collection!r} is unreachable")
        self._check_collection(collection)
        with self._lock:
            handle = next(self._handles)
            self._subscriptions[handle] = _Subscription(
                order_field, direction, on_snapshot, on_error
            )
            on_snapshot(self.snapshot(order_field, direction))
        return handle

    def unsubscribe(self, handle: Any) -> None:
        with self._lock:
            self._subscriptions.pop(handle, None)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def create(self, collection: str, fields: Mapping[str, Any]) -> str:
        self._check_collection(collection)
        record_id = str(fields.get("id") or uuid.uuid4().hex)
        with self._lock:
            self._docs[record_id] = self._stamp(fields, creating=True)
            self._broadcast()
        return record_id

    def update(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> None:
        self._check_collection(collection)
        with self._lock:
            if record_id not in self._docs:
                raise KeyError(record_id)
            self._docs[record_id].update(self._stamp(fields, creating=False))
            self._broadcast()

    def delete(self, collection: str, record_id: str) -> bool:
        self._check_collection(collection)
        with self._lock:
            if self._docs.pop(record_id, None) is None:
                return False
            self._broadcast()
        return True

    def load(self, payloads: Iterable[Payload]) -> None:
        """Replace the whole collection with raw payloads (ids taken from ``id``)."""

        with self._lock:
            self._docs = {
                str(payload["id"]): {k: v for k, v in payload.items() if k != "id"}
                for payload in payloads
            }
            self._broadcast()

    def resolve_pending(self) -> int:
        """Stamp documents still waiting for a creation time; returns how many."""

        with self._lock:
            pending = [doc for doc in self._docs.values() if doc.get("createdAt") is None]
            for doc in pending:
                doc["createdAt"] = self._clock()
            if pending:
                self._broadcast()
        return len(pending)

    def fail(self, exc: Optional[BaseException] = None) -> None:
        """Break every open stream with ``exc`` and drop the subscriptions."""

        error = exc or SyncConnectionError(f"stream for {self.collection!r} was interrupted")
        with self._lock:
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()
        logger.warning("Failing %d subscription(s)", len(subscriptions), extra={"error": str(error)})
        for sub in subscriptions:
            sub.on_error(error)
