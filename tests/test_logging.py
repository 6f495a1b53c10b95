"""
test_logging.py — Tests for the structured log formatters.

Run with:
    pytest tests/test_logging.py -v
"""

from __future__ import annotations

import json
import logging

from smsroute.core.logging_config import (
    JSONFormatter,
    PrettyFormatter,
    get_request_context,
    set_request_context,
)


def _make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "smsroute.factory", logging.WARNING, __file__, 10,
        "SMS via '%s' failed", ("twilio",), None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:

    def test_message_and_extras(self):
        entry = json.loads(JSONFormatter().format(
            _make_record(sender="twilio", phone="+1555", attempt=1, unrelated="x")
        ))

        assert entry["level"] == "WARNING"
        assert entry["logger"] == "smsroute.factory"
        assert entry["message"] == "SMS via 'twilio' failed"
        assert entry["sender"] == "twilio"
        assert entry["phone"] == "+1555"
        assert entry["attempt"] == 1
        assert "unrelated" not in entry

    def test_request_context_attached(self):
        set_request_context(request_id="abc123")
        try:
            entry = json.loads(JSONFormatter().format(_make_record()))
        finally:
            set_request_context()

        assert entry["context"] == {"request_id": "abc123"}
        assert get_request_context() == {}


class TestPrettyFormatter:

    def test_contains_logger_and_message(self):
        text = PrettyFormatter().format(_make_record())
        assert "smsroute.factory: SMS via 'twilio' failed" in text
        assert "WARNING" in text
