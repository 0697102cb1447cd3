"""SQLite engine and sessions for the local expenditures store."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, ContextManager, Iterator, Tuple

from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from ..config import BaseConfig

logger = logging.getLogger("spendwatch.database")

SessionFactory = Callable[[], ContextManager[Session]]

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def create_db_engine(config: BaseConfig) -> Engine:
    """Build the engine for ``config.DATABASE_URL``.

    In-memory SQLite is pinned to a single connection; otherwise the poller
    thread and the CLI would each see an empty database of their own.
    """
    engine_options = config.sqlalchemy_engine_options()
    if config.DATABASE_URL in IN_MEMORY_URLS:
        engine_options["poolclass"] = StaticPool
    return create_engine(config.DATABASE_URL, **engine_options)


def init_database(engine: Engine) -> None:
    """Create the ``expenditure`` table if it is missing."""
    from ..models.expenditure import Expenditure

    SQLModel.metadata.create_all(engine, tables=[Expenditure.__table__])


def create_session_factory(engine: Engine) -> SessionFactory:
    """Return a context-manager factory that commits on success, rolls back on error.

    Sessions keep attributes loaded after commit so rows can be turned into
    payloads once the session is closed.
    """

    @contextmanager
    def factory() -> Iterator[Session]:
        session = Session(engine, expire_on_commit=False)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return factory


def bootstrap_database(config: BaseConfig | None = None) -> Tuple[Engine, SessionFactory]:
    """Engine, schema and session factory in one step, as the CLI needs them."""

    cfg = config or BaseConfig()
    engine = create_db_engine(cfg)
    init_database(engine)
    logger.info("Expenditure store ready", extra={"url": engine.url.render_as_string(hide_password=True)})
    return engine, create_session_factory(engine)
