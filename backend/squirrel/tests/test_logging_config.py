import json
import logging
import sys

from squirrel.logging_config import StructuredFormatter, configure_logging


def _record(msg, exc_info=None, **extra):
    record = logging.LogRecord("squirrel.test", logging.WARNING, __file__, 1, msg, (), exc_info)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_one_json_object_with_extras():
    line = StructuredFormatter().format(_record("Stock movement rejected", item_id=7, kind="ISSUE"))
    payload = json.loads(line)

    assert "\n" not in line
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "squirrel.test"
    assert payload["message"] == "Stock movement rejected"
    assert payload["item_id"] == 7
    assert payload["kind"] == "ISSUE"
    assert "time" in payload


def test_formatter_includes_error_and_trace():
    try:
        raise ValueError("bad row")
    except ValueError:
        line = StructuredFormatter().format(_record("failed", exc_info=sys.exc_info()))
    payload = json.loads(line)
    assert payload["error"] == "bad row"
    assert "ValueError" in payload["trace"]


def test_configure_logging_is_idempotent():
    logger = configure_logging("debug")
    configure_logging("warning")
    json_handlers = [h for h in logger.handlers if isinstance(h.formatter, StructuredFormatter)]

    assert len(json_handlers) == 1
    assert logger.level == logging.WARNING
    assert logger.propagate is False
