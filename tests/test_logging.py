"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys

import pytest

from spendwatch.logging_config import JSONFormatter, get_logger, setup_logging


@pytest.fixture
def configured(app_config):
    """Run setup_logging and detach its handlers afterwards."""

    def _setup(dev_mode: bool = True) -> logging.Logger:
        app_config.DEV_MODE = dev_mode
        return setup_logging(app_config)

    yield _setup
    package_logger = logging.getLogger("spendwatch")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()


def _record(**overrides) -> logging.LogRecord:
    record = logging.LogRecord(
        name="spendwatch.sync",
        level=overrides.get("level", logging.INFO),
        pathname="live.py",
        lineno=42,
        msg=overrides.get("msg", "Snapshot applied"),
        args=(),
        exc_info=overrides.get("exc_info"),
    )
    record.module = "live"
    record.funcName = "_deliver"
    return record


def test_json_formatter():
    """JSONFormatter emits the standard fields."""
    log_data = json.loads(JSONFormatter().format(_record()))

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "spendwatch.sync"
    assert log_data["message"] == "Snapshot applied"
    assert log_data["module"] == "live"
    assert log_data["function"] == "_deliver"
    assert log_data["line"] == 42
    assert "timestamp" in log_data
    assert "extra" not in log_data


def test_json_formatter_with_extra_and_exception():
    try:
        raise ConnectionError("stream dropped")
    except ConnectionError:
        exc_info = sys.exc_info()

    record = _record(level=logging.ERROR, msg="Sync failed", exc_info=exc_info)
    record.collection = "expenditures"
    log_data = json.loads(JSONFormatter().format(record))

    assert log_data["extra"] == {"collection": "expenditures"}
    assert log_data["exception"]["type"] == "ConnectionError"
    assert "stream dropped" in log_data["exception"]["message"]
    assert log_data["exception"]["traceback"]


def test_setup_logging_writes_json_file(configured, app_config):
    logger = configured()

    assert logger.name == "spendwatch"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 2  # Console + File

    get_logger("sync").warning("Sync failed", extra={"collection": "expenditures"})
    for handler in logger.handlers:
        handler.flush()

    log_file = app_config.DATA_DIR / "logs" / "spendwatch.log"
    lines = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines() if line]
    assert lines[0]["message"] == "Logging initialized"
    assert lines[-1]["logger"] == "spendwatch.sync"
    assert lines[-1]["extra"]["collection"] == "expenditures"


def test_setup_logging_is_idempotent(configured):
    configured()
    logger = configured()
    assert len(logger.handlers) == 2


def test_get_logger():
    assert get_logger("sync").name == "spendwatch.sync"
    assert get_logger("cli") is logging.getLogger("spendwatch.cli")


@pytest.mark.parametrize("dev_mode", [True, False])
def test_logging_levels_by_mode(configured, dev_mode):
    logger = configured(dev_mode)
    console = [
        h
        for h in logger.handlers
        if isinstance(h, logging.StreamHandler)
        and not isinstance(h, logging.handlers.RotatingFileHandler)
    ]
    assert len(console) == 1
    assert console[0].level == (logging.INFO if dev_mode else logging.WARNING)
