from __future__ import annotations

import json
import logging
import sys

from teletrader.core.logging import JsonFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("teletrader.test", logging.WARNING, __file__, 1, "unauthorized_access", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_known_extras() -> None:
    line = JsonFormatter().format(_record(event="unauthorized_access", username="mallory", chat_id=5, other="x"))
    payload = json.loads(line)
    assert payload["level"] == "WARNING"
    assert payload["msg"] == "unauthorized_access"
    assert payload["username"] == "mallory"
    assert payload["chat_id"] == 5
    assert "other" not in payload
    assert "exc" not in payload


def test_json_formatter_attaches_traceback() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record(event="dispatch_failed")
        record.exc_info = sys.exc_info()
    payload = json.loads(JsonFormatter().format(record))
    assert "RuntimeError: boom" in payload["exc"]
