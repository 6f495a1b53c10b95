"""
test_manager.py — Tests for the SMS sender registry.

Covers:
    • register / unregister / has / all_names ordering
    • Stored config merged under call-time options
    • Failure translation (unknown name, False return, raised errors)
    • Default sender resolution
    • Concurrent registration and dispatch

Run with:
    pytest tests/test_manager.py -v
"""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from smsroute.core.errors import (
    SenderRaisedError,
    SenderReportedFailureError,
    SmsDeliveryError,
    SmsError,
    UnregisteredSenderError,
)
from smsroute.manager import SmsManager
from smsroute.senders.base import FunctionSender, SmsSender


def _make_sender(result=True, side_effect=None) -> MagicMock:
    """MagicMock that satisfies the SmsSender contract."""
    sender = MagicMock(spec=SmsSender)
    sender.send.return_value = result
    sender.send.side_effect = side_effect
    return sender


# ═══════════════════════════════════════════════════════════════════════════
# Section 1: Registration
# ═══════════════════════════════════════════════════════════════════════════

class TestRegistration:

    def test_register_and_has(self):
        manager = SmsManager()
        manager.register("test", _make_sender())

        assert manager.has("test")
        assert "test" in manager
        assert not manager.has("Test")  # case-sensitive

    def test_unregister(self):
        manager = SmsManager()
        manager.register("test", _make_sender())
        manager.unregister("test")

        assert not manager.has("test")
        assert len(manager) == 0

    def test_unregister_missing_is_noop(self):
        SmsManager().unregister("missing")

    def test_last_write_wins(self):
        manager = SmsManager()
        old, new = _make_sender(), _make_sender()
        manager.register("twilio", old)
        manager.register("twilio", new)

        assert manager.all() == {"twilio": new}

    def test_all_names_insertion_order(self):
        manager = SmsManager()
        for name in ("vonage", "twilio", "log"):
            manager.register(name, _make_sender())

        assert manager.all_names() == ["vonage", "twilio", "log"]

    def test_rejects_blank_name(self):
        with pytest.raises(ValueError):
            SmsManager().register("", _make_sender())

    def test_rejects_non_sender(self):
        with pytest.raises(TypeError):
            SmsManager().register("x", object())  # type: ignore[arg-type]

    def test_stored_config_is_copied(self):
        manager = SmsManager()
        config = {"from": "+15550001"}
        manager.register("twilio", _make_sender(), config)
        config["from"] = "changed"

        assert manager.registration("twilio").config["from"] == "+15550001"


# ═══════════════════════════════════════════════════════════════════════════
# Section 2: Dispatch
# ═══════════════════════════════════════════════════════════════════════════

class TestSend:

    def test_register_and_send(self):
        manager = SmsManager()
        sender = _make_sender()
        manager.register("test", sender)

        assert manager.send("test", "+10000000000", "hello") is True
        sender.send.assert_called_once_with("+10000000000", "hello", {})

    def test_dispatch_alias(self):
        manager = SmsManager()
        manager.register("test", _make_sender())

        assert manager.dispatch("test", "+1", "hello") is True

    def test_unknown_sender(self):
        with pytest.raises(UnregisteredSenderError) as exc_info:
            SmsManager().send("missing", "+100", "x")

        assert isinstance(exc_info.value, SmsDeliveryError)
        assert exc_info.value.message == "SMS sender 'missing' is not registered."
        assert exc_info.value.sender == "missing"

    def test_call_config_overrides_stored(self):
        manager = SmsManager()
        sender = _make_sender()
        manager.register("twilio", sender, {"from": "+15550001", "region": "us1"})

        manager.send("twilio", "+1", "hi", {"region": "eu1", "priority": "high"})

        sender.send.assert_called_once_with(
            "+1", "hi", {"from": "+15550001", "region": "eu1", "priority": "high"}
        )

    def test_false_return_is_failure(self):
        manager = SmsManager()
        manager.register("twilio", _make_sender(result=False))

        with pytest.raises(SenderReportedFailureError) as exc_info:
            manager.send("twilio", "+1", "hi")

        assert exc_info.value.message == "SMS sending via 'twilio' reported failure."
        assert exc_info.value.__cause__ is None

    def test_truthy_non_true_is_failure(self):
        manager = SmsManager()
        manager.register("twilio", _make_sender(result="queued"))

        with pytest.raises(SenderReportedFailureError):
            manager.send("twilio", "+1", "hi")

    def test_raised_exception_wrapped(self):
        manager = SmsManager()
        cause = ConnectionError("gateway timeout")
        manager.register("twilio", _make_sender(side_effect=cause))

        with pytest.raises(SenderRaisedError) as exc_info:
            manager.send("twilio", "+1", "hi")

        err = exc_info.value
        assert err.message == "SMS sending failed: gateway timeout"
        assert err.__cause__ is cause
        assert err.cause is cause
        assert err.details["cause"] == "ConnectionError: gateway timeout"

    def test_delivery_error_passes_through(self):
        manager = SmsManager()
        original = SmsDeliveryError("carrier rejected number")
        manager.register("twilio", _make_sender(side_effect=original))

        with pytest.raises(SmsDeliveryError) as exc_info:
            manager.send("twilio", "+1", "hi")

        assert exc_info.value is original

    def test_other_sms_error_is_wrapped(self):
        manager = SmsManager()
        original = SmsError("quota exceeded")
        manager.register("twilio", _make_sender(side_effect=original))

        with pytest.raises(SenderRaisedError) as exc_info:
            manager.send("twilio", "+1", "hi")

        err = exc_info.value
        assert err.sender == "twilio"
        assert err.__cause__ is original
        assert "quota exceeded" in err.message

    def test_function_sender(self):
        manager = SmsManager()
        seen = []
        manager.register(
            "fn",
            FunctionSender(lambda to, msg, cfg: seen.append((to, msg, cfg)) or True),
            {"a": 1},
        )

        assert manager.send("fn", "+1", "hi", {"b": 2}) is True
        assert seen == [("+1", "hi", {"a": 1, "b": 2})]


# ═══════════════════════════════════════════════════════════════════════════
# Section 3: Default Sender
# ═══════════════════════════════════════════════════════════════════════════

class TestDefaultSenderName:

    def test_configured_default_registered(self):
        manager = SmsManager(default_sender="twilio")
        manager.register("vonage", _make_sender())
        manager.register("twilio", _make_sender())

        assert manager.default_sender_name() == "twilio"

    def test_configured_default_missing_uses_first(self):
        manager = SmsManager(default_sender="plivo")
        manager.register("vonage", _make_sender())
        manager.register("twilio", _make_sender())

        assert manager.default_sender_name() == "vonage"

    def test_argument_overrides_attribute(self):
        manager = SmsManager(default_sender="vonage")
        manager.register("vonage", _make_sender())
        manager.register("twilio", _make_sender())

        assert manager.default_sender_name("twilio") == "twilio"

    def test_empty_registry(self):
        assert SmsManager(default_sender="log").default_sender_name() is None


# ═══════════════════════════════════════════════════════════════════════════
# Section 4: Concurrency
# ═══════════════════════════════════════════════════════════════════════════

class TestConcurrency:

    def test_register_while_dispatching(self):
        manager = SmsManager()
        manager.register("stable", _make_sender())
        errors = []

        def churn():
            for i in range(200):
                manager.register(f"tmp{i}", _make_sender())
                manager.unregister(f"tmp{i}")

        def dispatch():
            try:
                for _ in range(200):
                    manager.send("stable", "+1", "hi")
                    manager.all_names()
            except Exception as exc:  # pragma: no cover - reported below
                errors.append(exc)

        threads = [threading.Thread(target=churn), threading.Thread(target=dispatch)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert manager.all_names() == ["stable"]
