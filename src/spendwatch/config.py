"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    """Read a positive float from the environment, keeping the default on bad input."""

    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "SpendWatch"
    DB_FILENAME = "spendwatch.db"
    ORDER_FIELD = "createdAt"
    ORDER_DIRECTION = "desc"

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("SPENDWATCH_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("SPENDWATCH_DATABASE_URL", self._build_sqlite_url())
        self.COLLECTION_NAME = os.getenv("SPENDWATCH_COLLECTION", "expenditures")
        self.POLL_INTERVAL_SECONDS = _env_float("SPENDWATCH_POLL_INTERVAL", 2.0)
        self.CURRENCY_SYMBOL = os.getenv("SPENDWATCH_CURRENCY_SYMBOL", "₹")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite store and logs live."""

        data_root = os.getenv("SPENDWATCH_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations fall back to per-user storage.
            fallback_path = Path.home() / f".{self.APP_NAME.lower()}"
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside DATA_DIR."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            # The poller thread reads through the same engine.
            connect_args["check_same_thread"] = False
        return {"connect_args": connect_args}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestingConfig(BaseConfig):
    """Configuration for tests: in-memory database, quiet console."""

    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DEV_MODE = False
        self.DATABASE_URL = "sqlite://"
