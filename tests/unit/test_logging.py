from __future__ import annotations

import json
import logging

from indexbench.utils.logging import JsonFormatter, _json_formatter, configure_logging

EXPECTED_ROWS = 10_000
EXPECTED_BATCH_SIZE = 1000


def _record(msg: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


def test_json_formatter_promotes_standard_extra_fields() -> None:
    record = _record()
    record.rows = EXPECTED_ROWS
    record.configuration = "name_index"

    payload = json.loads(_json_formatter(record))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "test.logger"
    assert payload["message"] == "hello"
    assert payload["rows"] == EXPECTED_ROWS
    assert payload["configuration"] == "name_index"
    assert "pathname" not in payload
    assert "lineno" not in payload


def test_json_formatter_supports_legacy_nested_extra_field() -> None:
    record = _record()
    record.extra = {"batch_size": EXPECTED_BATCH_SIZE}

    payload = json.loads(_json_formatter(record))

    assert payload["batch_size"] == EXPECTED_BATCH_SIZE
    assert "extra" not in payload


def test_json_formatter_stringifies_unserializable_values() -> None:
    record = _record()
    record.path = object()

    payload = json.loads(JsonFormatter().format(record))

    assert payload["path"].startswith("<object object")


def test_configure_logging_keeps_existing_module_loggers() -> None:
    module_logger = logging.getLogger("indexbench.generator")

    configure_logging(level="DEBUG", json_logs=True)

    assert module_logger.disabled is False
    assert logging.getLogger("indexbench").level == logging.DEBUG
    configure_logging(level="WARNING")
