"""
test_api.py — Tests for the SMS HTTP endpoints.

Run with:
    pytest tests/test_api.py -v
"""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from smsroute.bootstrap import get_factory, reset_factory
from smsroute.core.errors import SmsDeliveryError
from smsroute.factory import SmsFactory
from smsroute.main import app
from smsroute.manager import SmsManager
from smsroute.senders.base import SmsSender


class _StubSender(SmsSender):
    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def send(self, to, message, config=None):
        self.calls.append((to, message, dict(config or {})))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def senders():
    return {
        "twilio": _StubSender(),
        "vonage": _StubSender(error=SmsDeliveryError("carrier down")),
        "log": _StubSender(),
    }


@pytest.fixture
def client(senders):
    manager = SmsManager(default_sender="twilio")
    for name, sender in senders.items():
        manager.register(name, sender)
    factory = SmsFactory(manager, None, {
        "default": "twilio",
        "by_prefix": {"20": ["vonage", "twilio"], "1": ["twilio", "vonage"]},
    })

    app.dependency_overrides[get_factory] = lambda: factory
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
    reset_factory()


class TestRoutePreview:

    def test_route(self, client):
        resp = client.get("/api/v1/sms/route", params={"phone": "+201234567890"})

        assert resp.status_code == 200
        assert resp.json() == {
            "phone": "+201234567890",
            "senders": ["vonage", "twilio", "log"],
            "selected": "vonage",
        }

    def test_phone_required(self, client):
        assert client.get("/api/v1/sms/route").status_code == 422


class TestSend:

    def test_send_with_failover(self, client, senders):
        resp = client.post("/api/v1/sms/send", json={
            "phone": "+201234567890",
            "message": "Hello",
            "config": {"priority": "high"},
        })

        assert resp.status_code == 200
        assert resp.json() == {"sent": True, "phone": "+201234567890", "sender": None}
        assert len(senders["vonage"].calls) == 1
        assert senders["twilio"].calls == [("+201234567890", "Hello", {"priority": "high"})]
        assert senders["log"].calls == []

    def test_send_named_sender(self, client, senders):
        resp = client.post("/api/v1/sms/send", json={
            "phone": "+201234567890", "message": "Hello", "sender": "log",
        })

        assert resp.status_code == 200
        assert resp.json()["sender"] == "log"
        assert senders["vonage"].calls == []

    def test_send_default_alias(self, client, senders):
        resp = client.post("/api/v1/sms/send", json={
            "phone": "+999", "message": "Hello", "sender": "default",
        })

        assert resp.json()["sender"] == "twilio"
        assert len(senders["twilio"].calls) == 1

    def test_unknown_named_sender(self, client):
        resp = client.post("/api/v1/sms/send", json={
            "phone": "+1", "message": "Hello", "sender": "plivo",
        })

        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "UNREGISTERED_SENDER"

    def test_all_failed(self, client, senders):
        for sender in senders.values():
            sender.error = SmsDeliveryError("down")

        resp = client.post("/api/v1/sms/send", json={"phone": "+1555", "message": "Hello"})

        assert resp.status_code == 502
        error = resp.json()["error"]
        assert error["code"] == "ALL_SENDERS_FAILED"
        assert error["message"] == (
            "All SMS senders failed: twilio: down; vonage: down; log: down"
        )
        assert [a["sender"] for a in error["details"]["attempts"]] == ["twilio", "vonage", "log"]

    def test_no_available_sender(self):
        factory = SmsFactory(SmsManager(), None, {})
        app.dependency_overrides[get_factory] = lambda: factory
        try:
            resp = TestClient(app).post(
                "/api/v1/sms/send", json={"phone": "+1", "message": "Hello"},
            )
        finally:
            app.dependency_overrides.clear()

        assert resp.status_code == 503
        assert resp.json()["error"]["code"] == "NO_AVAILABLE_SENDER"

    def test_empty_message_rejected(self, client):
        resp = client.post("/api/v1/sms/send", json={"phone": "+1", "message": ""})
        assert resp.status_code == 422


class TestSenders:

    def test_list(self, client):
        resp = client.get("/api/v1/sms/senders")

        assert resp.json() == {
            "senders": ["twilio", "vonage", "log"],
            "default_sender": "twilio",
        }


class TestHealth:

    def test_live(self):
        assert TestClient(app).get("/health/live").json() == {"status": "alive"}

    def test_ready(self):
        reset_factory()
        body = TestClient(app).get("/health/ready").json()

        assert body["status"] == "ready"
        assert "log" in body["senders"]
        assert body["sender_config_issues"] == []


class TestRequestMiddleware:

    def test_request_id_echoed(self, client):
        resp = client.get("/api/v1/sms/senders", headers={"X-Request-ID": "abc123"})

        assert resp.status_code == 200
        assert resp.headers["X-Request-ID"] == "abc123"

    def test_request_id_generated_when_absent(self, client):
        resp = client.get("/api/v1/sms/senders")

        request_id = resp.headers["X-Request-ID"]
        assert len(request_id) == 16
        int(request_id, 16)

    def test_process_time_header(self, client):
        resp = client.get("/health/live")
        assert resp.headers["X-Process-Time"].endswith("ms")

    def test_client_error_logged_as_warning(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="smsroute.core.middleware"):
            client.get("/api/v1/sms/route")

        records = [r for r in caplog.records if r.name == "smsroute.core.middleware"]
        assert records[-1].levelno == logging.WARNING
        assert "/api/v1/sms/route" in records[-1].getMessage()

    def test_health_checks_not_logged(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="smsroute.core.middleware"):
            client.get("/health/live")

        assert not [r for r in caplog.records if r.name == "smsroute.core.middleware"]
