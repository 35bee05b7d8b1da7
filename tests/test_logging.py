"""Tests for structured logging functionality."""

from __future__ import annotations

import json
import logging
import logging.handlers

import pytest

from timedeposit.logging_config import JSONFormatter, get_logger, setup_logging


def _record(**kwargs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="timedeposit.settlement",
        level=kwargs.pop("level", logging.INFO),
        pathname="settlement.py",
        lineno=42,
        msg=kwargs.pop("msg", "Settlement run finished"),
        args=(),
        exc_info=kwargs.pop("exc_info", None),
    )
    for key, value in kwargs.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    formatted = JSONFormatter().format(_record(processed=3, as_of="2026-02-05"))
    log_data = json.loads(formatted)

    assert log_data["level"] == "INFO"
    assert log_data["logger"] == "timedeposit.settlement"
    assert log_data["message"] == "Settlement run finished"
    assert log_data["line"] == 42
    assert log_data["extra"] == {"processed": 3, "as_of": "2026-02-05"}
    assert "timestamp" in log_data


def test_json_formatter_with_exception():
    try:
        raise ValueError("ledger offline")
    except ValueError:
        import sys

        exc_info = sys.exc_info()

    log_data = json.loads(JSONFormatter().format(_record(level=logging.ERROR, exc_info=exc_info)))

    assert log_data["exception"]["type"] == "ValueError"
    assert "ledger offline" in log_data["exception"]["message"]
    assert log_data["exception"]["traceback"]


def test_setup_logging_writes_json_file(config):
    config.DEV_MODE = True
    logger = setup_logging(config)

    assert logger.name == "timedeposit"
    assert len(logger.handlers) == 2  # Console + File

    get_logger("settlement").info("Investment settled", extra={"investment_id": "abc"})

    log_file = config.DATA_DIR / "logs" / "timedeposit.log"
    assert log_file.exists()
    entries = [json.loads(line) for line in log_file.read_text().splitlines() if line.strip()]
    settled = [entry for entry in entries if entry["message"] == "Investment settled"]
    assert settled[0]["investment_id"] == "abc"
    assert "extra" not in settled[0]
    assert settled[0]["logger"] == "timedeposit.settlement"


def test_setup_logging_is_idempotent(config):
    setup_logging(config)
    logger = setup_logging(config)
    assert len(logger.handlers) == 2


def test_get_logger_namespaces():
    assert get_logger("lifecycle").name == "timedeposit.lifecycle"
    assert get_logger("settlement") is not get_logger("lifecycle")


@pytest.mark.parametrize("dev_mode", [True, False])
def test_console_level_by_mode(config, dev_mode):
    config.DEV_MODE = dev_mode
    logger = setup_logging(config)

    console = [
        handler
        for handler in logger.handlers
        if isinstance(handler, logging.StreamHandler)
        and not isinstance(handler, logging.handlers.RotatingFileHandler)
    ]
    assert console[0].level == (logging.INFO if dev_mode else logging.WARNING)


def test_json_formatter_lifts_correlation_keys():
    formatted = JSONFormatter().format(
        _record(msg="Investment settled", investment_id="abc", amount="1002.28")
    )
    log_data = json.loads(formatted)

    assert log_data["investment_id"] == "abc"
    assert log_data["extra"] == {"amount": "1002.28"}
