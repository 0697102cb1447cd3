from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy.exc import OperationalError

from spendwatch.errors import SyncConnectionError
from spendwatch.models import Expenditure
from spendwatch.services.entries import build_entry_fields
from spendwatch.sync.live import LiveCollectionSync, SyncStatus


def _seed(session_factory, rows):
    with session_factory() as session:
        for row in rows:
            session.add(row)
        session.commit()


def test_fetch_orders_desc_with_pending_first(sql_source, session_factory):
    _seed(
        session_factory,
        [
            Expenditure(id="old", item="Old", amount=1, created_at=datetime(2024, 1, 1)),
            Expenditure(id="pending", item="Pending", amount=2, created_at=None),
            Expenditure(id="new", item="New", amount=3, created_at=datetime(2024, 2, 1)),
        ],
    )

    assert [p["id"] for p in sql_source.fetch("createdAt", "desc")] == ["pending", "new", "old"]
    assert [p["id"] for p in sql_source.fetch("createdAt", "asc")] == ["old", "new", "pending"]


def test_fetch_rejects_unknown_field(sql_source):
    with pytest.raises(ValueError):
        sql_source.fetch("price", "desc")


def test_create_stamps_server_timestamp_and_notifies(sql_source, clock):
    sync = LiveCollectionSync(sql_source)
    snapshots = []
    sync.register(snapshots.append)
    sync.start()

    record_id = sql_source.create("expenditures", build_entry_fields("Paper", "500", "ABC"))

    assert len(snapshots) == 2
    (record,) = sync.records
    assert record.id == record_id
    assert record.amount == 500.0
    assert record.vendor == "ABC"
    assert record.created_at == datetime(2024, 1, 1, 9, 0)


def test_update_and_delete_flow_through_stream(sql_source):
    sync = LiveCollectionSync(sql_source)
    sync.start()
    record_id = sql_source.create("expenditures", {"item": "Ink", "amount": 200})

    sql_source.update("expenditures", record_id, {"notes": "Black"})
    assert sync.records[0].notes == "Black"

    assert sql_source.delete("expenditures", record_id) is True
    assert sync.records == ()
    assert sql_source.delete("expenditures", record_id) is False
    assert sync.state.status is SyncStatus.LIVE


def test_update_missing_row_raises(sql_source):
    with pytest.raises(KeyError):
        sql_source.update("expenditures", "missing", {"item": "x"})


def test_unknown_collection_and_field(sql_source):
    with pytest.raises(KeyError):
        sql_source.create("orders", {"item": "x"})
    with pytest.raises(ValueError):
        sql_source.create("expenditures", {"price": 3})


def test_refresh_only_pushes_changes(sql_source, session_factory):
    sync = LiveCollectionSync(sql_source)
    snapshots = []
    sync.register(snapshots.append)
    sync.start()

    assert sql_source.refresh() == 0
    # Simulates a write from another process that bypasses this source
    _seed(session_factory, [Expenditure(id="ext", item="External", amount=7, created_at=datetime(2024, 5, 1))])
    assert sql_source.refresh() == 1
    assert [r.id for r in sync.records] == ["ext"]
    assert len(snapshots) == 2


def test_subscribe_failure_is_connection_error(sql_source, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(sql_source, "fetch", broken)
    with pytest.raises(SyncConnectionError):
        sql_source.subscribe("expenditures", "createdAt", "desc", lambda p: None, lambda e: None)

    sync = LiveCollectionSync(sql_source)
    errors = []
    sync.register(lambda records: None, errors.append)
    sync.start()
    assert sync.state.has_error
    assert len(errors) == 1


def test_refresh_failure_reports_and_drops_subscriber(sql_source, monkeypatch):
    sync = LiveCollectionSync(sql_source)
    errors = []
    sync.register(lambda records: None, errors.append)
    sync.start()
    sql_source.create("expenditures", {"item": "Paper", "amount": 5})

    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(sql_source, "fetch", broken)
    sql_source.refresh()

    assert len(errors) == 1
    assert sync.state.has_error
    assert [r.item for r in sync.records] == ["Paper"]
    assert sql_source.subscriber_count == 0


def test_stop_unsubscribes(sql_source):
    sync = LiveCollectionSync(sql_source)
    handle = sync.start()
    assert sql_source.subscriber_count == 1
    sync.stop(handle)
    assert sql_source.subscriber_count == 0
