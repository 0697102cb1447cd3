"""Pytest configuration and shared fixtures for SpendWatch tests.

Provides record factories, an in-memory collection source, and an isolated
SQLite session factory so tests never touch a real data directory.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Callable, Iterator

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from spendwatch.infra.sql_source import SQLModelCollectionSource
from spendwatch.models import Expenditure, Record  # noqa: F401 - registers the table
from spendwatch.sync.sources import InMemoryCollectionSource


def assert_float_equal(actual: float, expected: float, tolerance: float = 1e-9) -> None:
    """Assert two floats are equal within tolerance."""
    assert abs(actual - expected) <= tolerance, f"{actual} != {expected} (±{tolerance})"


class FakeClock:
    """Deterministic clock advancing one minute per call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 9, 0)):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(minutes=1)
        return value


# =============================================================================
# Record Fixtures
# =============================================================================


@pytest.fixture
def record_factory() -> Callable[..., Record]:
    """Factory for in-memory ``Record`` instances with sensible defaults."""

    counter = {"n": 0}

    def _create_record(
        item: str = "Test item",
        amount: float = 100.0,
        vendor: str | None = None,
        notes: str | None = None,
        created_at: datetime | None = datetime(2024, 1, 5, 12, 0),
        record_id: str | None = None,
    ) -> Record:
        counter["n"] += 1
        return Record(
            id=record_id or f"rec-{counter['n']}",
            item=item,
            amount=amount,
            vendor=vendor,
            notes=notes,
            created_at=created_at,
        )

    return _create_record


@pytest.fixture
def sample_snapshot(record_factory) -> tuple[Record, ...]:
    """The two-record ledger used by the end-to-end scenarios (newest first)."""

    return (
        record_factory(
            item="Ink", amount=200, vendor="XYZ", created_at=datetime(2024, 3, 10, 15, 30), record_id="ink"
        ),
        record_factory(
            item="Paper", amount=500, vendor="ABC", created_at=datetime(2024, 3, 5, 9, 0), record_id="paper"
        ),
    )


# =============================================================================
# Source Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_source(clock) -> InMemoryCollectionSource:
    """In-memory collection named ``expenditures`` driven by the fake clock."""

    return InMemoryCollectionSource("expenditures", clock=clock)


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated in-memory SQLite database for each test."""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine) -> Callable[[], Iterator[Session]]:
    """Session factory matching the repository pattern (context manager per call)."""

    @contextmanager
    def session_context():
        session = Session(db_engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return session_context


@pytest.fixture
def sql_source(session_factory, clock) -> SQLModelCollectionSource:
    return SQLModelCollectionSource(session_factory, "expenditures", clock=clock)


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def app_config(monkeypatch, tmp_path):
    """BaseConfig pointed at a temporary data directory and database."""

    from spendwatch.config import BaseConfig

    monkeypatch.setenv("SPENDWATCH_DATA_DIR", str(tmp_path / "instance"))
    monkeypatch.setenv("SPENDWATCH_DATABASE_URL", f"sqlite:///{tmp_path / 'spendwatch.db'}")
    return BaseConfig()
