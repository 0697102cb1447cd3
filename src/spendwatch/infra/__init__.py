"""Concrete storage adapters."""

from .database import bootstrap_database, create_db_engine, create_session_factory, init_database
from .sql_source import SQLModelCollectionSource

__all__ = [
    "SQLModelCollectionSource",
    "bootstrap_database",
    "create_db_engine",
    "create_session_factory",
    "init_database",
]
