# tests/unit/infrastructure/test_logger.py
from __future__ import annotations

import json
import logging
import sys
from decimal import Decimal

import pytest

from menu_audit.infrastructure.logging.logger import (
    JsonFormatter,
    configure_root_logging,
    get_json_logger,
)


def _record(msg: str, level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("menu_audit.test", level, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_stable_keys() -> None:
    payload = json.loads(JsonFormatter().format(_record("price_ledger.append.ok")))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "menu_audit.test"
    assert payload["message"] == "price_ledger.append.ok"
    assert "ts" in payload


def test_formatter_merges_extras_and_stringifies_non_json_values() -> None:
    line = JsonFormatter().format(
        _record("price_ledger.append.ok", product_id="prod-1", price=Decimal("9.90")),
    )
    payload = json.loads(line)

    assert payload["product_id"] == "prod-1"
    assert payload["price"] == "9.90"
    assert "args" not in payload
    assert "levelno" not in payload


def test_formatter_includes_exception_info() -> None:
    try:
        raise ValueError("bad row")
    except ValueError:
        record = logging.LogRecord(
            "menu_audit.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
        )

    payload = json.loads(JsonFormatter().format(record))

    assert payload["exc_type"] == "ValueError"
    assert payload["exc_message"] == "bad row"


@pytest.fixture
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_root_logging_is_idempotent(_restore_root_logger) -> None:
    root = _restore_root_logger
    configure_root_logging("WARNING")
    configure_root_logging("WARNING")

    json_handlers = [h for h in root.handlers if isinstance(h.formatter, JsonFormatter)]
    assert len(json_handlers) == 1
    assert root.level == logging.WARNING


def test_get_json_logger_propagates() -> None:
    log = get_json_logger("menu_audit.some.module")
    assert log.name == "menu_audit.some.module"
    assert log.propagate is True
