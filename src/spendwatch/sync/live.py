"""Live synchronization of a remote ordered collection into a local snapshot."""

from __future__ import annotations

import enum
import itertools
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from ..errors import SyncConnectionError
from ..models.record import Record
from ..services.coercion import coerce_record
from .sources import CollectionSource, OrderDirection

logger = logging.getLogger("spendwatch.sync")

SnapshotObserver = Callable[[tuple[Record, ...]], None]
ErrorObserver = Callable[[SyncConnectionError], None]


class SyncStatus(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    LIVE = "live"
    ERROR = "error"
    STOPPED = "stopped"


@dataclass(frozen=True)
class SyncState:
    """Everything downstream consumers may read about the local cache."""

    status: SyncStatus = SyncStatus.IDLE
    records: tuple[Record, ...] = ()
    error: Optional[SyncConnectionError] = None
    version: int = 0
    updated_at: Optional[datetime] = None

    @property
    def is_loading(self) -> bool:
        return self.status is SyncStatus.LOADING

    @property
    def has_error(self) -> bool:
        return self.status is SyncStatus.ERROR


@dataclass(frozen=True)
class SubscriptionHandle:
    """Returned by ``start``; identifies one subscription generation."""

    generation: int
    collection: str
    order_key: str
    direction: OrderDirection
    source_handle: Any = field(default=None, compare=False)


@dataclass(frozen=True)
class _Observer:
    on_snapshot: SnapshotObserver
    on_error: Optional[ErrorObserver]


def _unique_records(payloads: Iterable[Mapping[str, Any]]) -> tuple[Record, ...]:
    seen: set[str] = set()
    records: list[Record] = []
    for payload in payloads:
        record = coerce_record(payload)
        if record is None:
            continue
        if record.id in seen:
            logger.warning("Duplicate record id in snapshot", extra={"record_id": record.id})
            continue
        seen.add(record.id)
        records.append(record)
    return tuple(records)


class LiveCollectionSync:
    """Bridge a push-based remote stream into an always-current local snapshot.

    Each delivery replaces the snapshot wholesale and notifies every observer
    before the next delivery is accepted. ``stop`` waits for an in-flight
    delivery, and nothing is delivered for a subscription after it returns.
    A stream failure moves the sync to ``ERROR`` and keeps the last snapshot.
    """

    def __init__(
        self,
        source: CollectionSource,
        collection: str = "expenditures",
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._source = source
        self._collection = collection
        self._clock = clock
        self._lock = threading.RLock()
        self._state = SyncState()
        self._observers: dict[int, _Observer] = {}
        self._tokens = itertools.count(1)
        self._generations = itertools.count(1)
        self._active: Optional[SubscriptionHandle] = None

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def records(self) -> tuple[Record, ...]:
        return self._state.records

    @property
    def is_running(self) -> bool:
        return self._active is not None

    def register(
        self, on_snapshot: SnapshotObserver, on_error: Optional[ErrorObserver] = None
    ) -> int:
        """Add an observer; returns the token used to deregister it."""

        with self._lock:
            token = next(self._tokens)
            self._observers[token] = _Observer(on_snapshot, on_error)
        return token

    def deregister(self, token: int) -> None:
        with self._lock:
            self._observers.pop(token, None)

    def _is_current(self, generation: int) -> bool:
        return self._active is not None and self._active.generation == generation

    def start(
        self, order_key: str = "createdAt", direction: OrderDirection = "desc"
    ) -> SubscriptionHandle:
        """Subscribe to the source; connection failures go to the error observers."""

        if self._active is not None:
            self.stop(self._active)

        with self._lock:
            handle = SubscriptionHandle(
                generation=next(self._generations),
                collection=self._collection,
                order_key=order_key,
                direction=direction,
            )
            self._active = handle
            self._state = replace(self._state, status=SyncStatus.LOADING, error=None)
            generation = handle.generation

        logger.info(
            "Subscribing",
            extra={"collection": self._collection, "order_key": order_key, "direction": direction},
        )
        try:
            source_handle = self._source.subscribe(
                self._collection,
                order_key,
                direction,
                lambda payloads: self._deliver(generation, payloads),
                lambda exc: self._fail(generation, exc),
            )
        except Exception as exc:  # noqa: BLE001 - reported through observers
            self._fail(generation, exc)
            return handle

        with self._lock:
            handle = replace(handle, source_handle=source_handle)
            if self._is_current(generation):
                self._active = handle
                return handle
        # The subscription failed or was stopped while subscribing.
        self._source.unsubscribe(source_handle)
        return handle

    def stop(self, handle: Optional[SubscriptionHandle] = None) -> None:
        """Unsubscribe; idempotent and safe to call from inside an observer."""

        with self._lock:
            active = self._active
            if active is None:
                return
            if handle is not None and handle.generation != active.generation:
                return
            self._active = None
            if self._state.status is not SyncStatus.ERROR:
                self._state = replace(self._state, status=SyncStatus.STOPPED)
        if active.source_handle is not None:
            self._source.unsubscribe(active.source_handle)
        logger.info("Unsubscribed", extra={"collection": self._collection})

    def _deliver(self, generation: int, payloads: Iterable[Mapping[str, Any]]) -> None:
        with self._lock:
            if not self._is_current(generation):
                logger.debug("Discarding snapshot for inactive subscription")
                return
            records = _unique_records(payloads)
            self._state = SyncState(
                status=SyncStatus.LIVE,
                records=records,
                error=None,
                version=self._state.version + 1,
                updated_at=self._clock(),
            )
            logger.debug(
                "Snapshot applied",
                extra={"records": len(records), "version": self._state.version},
            )
            for token, observer in list(self._observers.items()):
                if not self._is_current(generation):
                    break
                try:
                    observer.on_snapshot(records)
                except Exception:
                    logger.exception(
                        "Snapshot observer failed",
                        extra={"collection": self._collection, "observer": token},
                    )

    def _fail(self, generation: int, exc: BaseException) -> None:
        with self._lock:
            if not self._is_current(generation):
                logger.debug("Discarding error for inactive subscription", extra={"error": str(exc)})
                return
            active = self._active
            self._active = None
            if isinstance(exc, SyncConnectionError):
                error = exc
            else:
                error = SyncConnectionError(f"{self._collection}: {exc}")
                error.__cause__ = exc
            self._state = replace(self._state, status=SyncStatus.ERROR, error=error)
            observers = list(self._observers.values())
        logger.error(
            "Sync failed",
            extra={"collection": self._collection, "error": str(error)},
        )
        if active is not None and active.source_handle is not None:
            self._source.unsubscribe(active.source_handle)
        for observer in observers:
            if observer.on_error is not None:
                observer.on_error(error)
