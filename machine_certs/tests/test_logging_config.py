"""Tests for JSON logging configuration."""

import json
import logging

from machine_certs.lib.logging_config import LOG_FORMAT, LOGGER, CustomJsonFormatter, _setup_logger


def _json_handlers() -> list[logging.Handler]:
    return [h for h in LOGGER.handlers if isinstance(h.formatter, CustomJsonFormatter)]


def test_logger_has_single_json_handler() -> None:
    """Package logger writes through one JSON handler and does not propagate."""
    assert LOGGER.name == "machine_certs"
    assert LOGGER.propagate is False
    assert len(_json_handlers()) == 1


def test_setup_is_idempotent() -> None:
    """Setting up again returns the same logger without a second JSON handler."""
    assert _setup_logger() is LOGGER
    assert len(_json_handlers()) == 1


def test_formatter_keeps_only_focused_fields() -> None:
    """Formatted records carry level and message, not module or process noise."""
    formatter = CustomJsonFormatter(fmt=LOG_FORMAT, timestamp=True)
    record = logging.LogRecord(
        name="machine_certs",
        level=logging.INFO,
        pathname=__file__,
        lineno=42,
        msg="created %s",
        args=("ca.pem",),
        exc_info=None,
        func="bootstrap",
    )

    data = json.loads(formatter.format(record))

    assert data["level"] == "INFO"
    assert data["message"] == "created ca.pem"
    assert data["funcName"] == "bootstrap"
    assert data["lineno"] == 42
    assert "timestamp" in data
    assert "module" not in data
    assert "name" not in data
