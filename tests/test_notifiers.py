"""
Tests for the email / SMS adapters and notifier wiring.
"""

import json
import smtplib

import httpx
import pytest

from fleet_compliance.config.settings import Settings
from fleet_compliance.core.interfaces.notifier import Channel
from fleet_compliance.infrastructure.notifications import email_notifier as email_module
from fleet_compliance.infrastructure.notifications.email_notifier import SmtpEmailNotifier
from fleet_compliance.infrastructure.notifications.factory import build_notifiers
from fleet_compliance.infrastructure.notifications.log_notifier import LoggingNotifier
from fleet_compliance.infrastructure.notifications.sms_notifier import (
    HttpSmsNotifier,
    format_phone_number,
)
from fleet_compliance.infrastructure.notifications.templates import render_email_html


# ── SMS ──


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0712 345 678", "254712345678"),
        ("+254712345678", "254712345678"),
        ("712345678", "254712345678"),
        ("254712345678", "254712345678"),
        ("", ""),
    ],
)
def test_format_phone_number(raw, expected):
    assert format_phone_number(raw) == expected


def _sms_notifier(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpSmsNotifier(
        api_url="https://sms.test/v1/send/message",
        api_token="secret",
        sender_id="TRUK LTD",
        client=client,
    )


def test_sms_posts_json_with_bearer_token():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["auth"] = request.headers["Authorization"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"status": True, "responseCode": "0200"})

    result = _sms_notifier(handler).send("0712345678", "Vehicle Deactivated", "Hello,\n\nbody")

    assert result.success is True
    assert captured["auth"] == "Bearer secret"
    assert captured["body"]["phone"] == "254712345678"
    assert captured["body"]["senderID"] == "TRUK LTD"
    assert captured["body"]["message"].startswith("Vehicle Deactivated\n")


def test_sms_gateway_error_status_is_failure():
    result = _sms_notifier(lambda request: httpx.Response(500, text="oops")).send("0712345678", "s", "b")
    assert result.success is False
    assert "500" in result.error


def test_sms_gateway_refusal_in_body_is_failure():
    handler = lambda request: httpx.Response(200, json={"status": False, "message": "Insufficient balance"})
    result = _sms_notifier(handler).send("0712345678", "s", "b")
    assert result.success is False
    assert "Insufficient balance" in result.error


def test_sms_transport_error_is_failure():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    result = _sms_notifier(handler).send("0712345678", "s", "b")
    assert result.success is False
    assert "transport failure" in result.error


def test_sms_unconfigured():
    result = HttpSmsNotifier(api_url="https://sms.test", api_token="", sender_id="X").send("07", "s", "b")
    assert result.success is False


# ── Email ──


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.messages = []
        self.logged_in = False
        self.tls = False
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.tls = True

    def login(self, username, password):
        self.logged_in = True

    def send_message(self, message):
        self.messages.append(message)
        return {}


def _email_notifier():
    return SmtpEmailNotifier(
        host="smtp.test",
        username="bot@fleet.test",
        password="pw",
        from_address="noreply@fleet.test",
        sender_name="TRUK LTD",
    )


def test_email_builds_multipart_message():
    message = _email_notifier().build_message("ops@acme.test", "Subject", "Hello Acme,\n\nYour <license> expired.")
    assert message["To"] == "ops@acme.test"
    assert message["From"] == "TRUK LTD <noreply@fleet.test>"
    html = message.get_body(preferencelist=("html",)).get_content()
    assert "&lt;license&gt;" in html
    assert "TRUK LTD" in html


def test_email_send_uses_tls_and_login(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(email_module.smtplib, "SMTP", FakeSMTP)

    result = _email_notifier().send("ops@acme.test", "Subject", "Hello,\n\nbody")

    assert result.success is True
    server = FakeSMTP.instances[0]
    assert server.tls and server.logged_in
    assert server.messages[0]["Subject"] == "Subject"


def test_email_smtp_error_is_failure(monkeypatch):
    class BrokenSMTP(FakeSMTP):
        def send_message(self, message):
            raise smtplib.SMTPRecipientsRefused({"ops@acme.test": (550, b"no such user")})

    monkeypatch.setattr(email_module.smtplib, "SMTP", BrokenSMTP)
    result = _email_notifier().send("ops@acme.test", "Subject", "body")
    assert result.success is False
    assert "SMTP failure" in result.error


def test_email_unconfigured():
    assert SmtpEmailNotifier(host="").send("ops@acme.test", "s", "b").success is False


def test_render_email_html_splits_greeting():
    html = render_email_html("Subj", "Hello Acme,\n\nLine one", "TRUK LTD")
    assert "<p>Hello Acme,</p>" in html
    assert "Line one" in html


# ── Wiring ──


def test_dry_run_uses_logging_notifiers():
    notifiers = build_notifiers(Settings(notifications_dry_run=True))
    assert all(isinstance(n, LoggingNotifier) for n in notifiers)
    assert {n.channel for n in notifiers} == {Channel.EMAIL, Channel.SMS}


def test_unconfigured_providers_are_left_out():
    assert build_notifiers(Settings(smtp_host="", sms_api_token="", notifications_dry_run=False)) == []


def test_configured_providers():
    notifiers = build_notifiers(Settings(smtp_host="smtp.test", sms_api_token="tok", notifications_dry_run=False))
    assert [n.channel for n in notifiers] == [Channel.EMAIL, Channel.SMS]
