"""
Tests for message rendering and channel dispatch.
"""

from datetime import datetime

from conftest import RecordingNotifier
from fleet_compliance.core.entities.company import Company
from fleet_compliance.core.entities.driver import Driver
from fleet_compliance.core.interfaces.notifier import Channel
from fleet_compliance.core.use_cases.dispatch_notification import (
    NotificationDispatcher,
    TemplateKind,
    render,
)

PAYLOAD = {
    "entity_label": "Driver",
    "entity_name": "Jane Doe",
    "entity_id": "d1",
    "document_name": "Driver License",
    "days": 7,
    "expiry_date": datetime(2025, 1, 17),
    "cutoff_days": 30,
}


def test_render_expiring():
    subject, body = render(TemplateKind.EXPIRING, {**PAYLOAD, "recipient_name": "Acme"})
    assert subject == "Driver License Expiring Soon for Driver"
    assert body.startswith("Hello Acme,\n\n")
    assert "Driver Jane Doe (d1) Driver License expires in 7 days (on Fri Jan 17 2025)" in body


def test_render_singular_day_and_grace():
    _, body = render(TemplateKind.GRACE_PERIOD, {**PAYLOAD, "days": 1})
    assert "expired 1 day ago" in body
    assert body.startswith("Hello,")


def test_render_deactivated_mentions_cutoff():
    subject, body = render(TemplateKind.DEACTIVATED, PAYLOAD)
    assert subject == "Driver Deactivated"
    assert "more than 30 days" in body


def test_render_subscription_expiring():
    subject, body = render(
        TemplateKind.SUBSCRIPTION_EXPIRING,
        {"plan_name": "Pro", "days": 3, "expiry_date": datetime(2025, 1, 13)},
    )
    assert subject == "Subscription Expiring Soon"
    assert "Your Pro subscription expires in 3 days" in body


def test_missing_channel_is_reported_as_failure():
    dispatcher = NotificationDispatcher([RecordingNotifier(Channel.EMAIL)])
    result = dispatcher.notify(Channel.SMS, "0712345678", TemplateKind.EXPIRED, PAYLOAD)
    assert result.success is False
    assert "No notifier configured" in result.error


def test_notifier_exception_becomes_failed_result():
    dispatcher = NotificationDispatcher([RecordingNotifier(Channel.EMAIL, raises=ConnectionError("refused"))])
    result = dispatcher.notify(Channel.EMAIL, "ops@acme.test", TemplateKind.EXPIRED, PAYLOAD)
    assert result.success is False
    assert result.error == "refused"


def test_notify_company_uses_every_contact(email_notifier, sms_notifier, dispatcher):
    company = Company(id="c1", name="Acme", transporter_id="u1",
                      contact_email="ops@acme.test", contact_phone="0712345678")

    result = dispatcher.notify_company(company, TemplateKind.EXPIRING, PAYLOAD)

    assert result.success is True
    assert [r.channel for r in result.results] == [Channel.EMAIL, Channel.SMS]
    assert email_notifier.sent[0][2].startswith("Hello Acme,")
    assert sms_notifier.sent[0][0] == "0712345678"


def test_notify_company_fails_when_every_channel_fails():
    dispatcher = NotificationDispatcher([
        RecordingNotifier(Channel.EMAIL, fail=True),
        RecordingNotifier(Channel.SMS, fail=True),
    ])
    company = Company(id="c1", name="Acme", transporter_id="u1",
                      contact_email="ops@acme.test", contact_phone="0712345678")

    result = dispatcher.notify_company(company, TemplateKind.EXPIRED, PAYLOAD)

    assert result.success is False
    assert len(result.errors) == 2


def test_notify_driver_emails_driver(email_notifier, dispatcher):
    driver = Driver(id="d1", company_id="c1", name="Jane Doe", email="jane@drivers.test")

    result = dispatcher.notify_driver(driver, TemplateKind.EXPIRED, PAYLOAD)

    assert result.success is True
    recipient, subject, body = email_notifier.sent[0]
    assert recipient == "jane@drivers.test"
    assert subject == "Driver License Expired for Driver"
    assert body.startswith("Hello Jane Doe,")


def test_notify_driver_without_email(dispatcher, email_notifier):
    driver = Driver(id="d1", company_id="c1", name="Jane Doe")
    assert dispatcher.notify_driver(driver, TemplateKind.EXPIRED, PAYLOAD) is None
    assert email_notifier.sent == []
