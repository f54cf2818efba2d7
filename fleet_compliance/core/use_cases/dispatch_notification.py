"""
Use Case: Dispatch Notification

Turns a classified event into a subject/body and hands it to the
channel's notifier. Company contacts get every notice; drivers with an
email also get a copy of notices about their own documents. Delivery failures are reported, never hidden, so the
caller only records a notification as sent after a confirmed dispatch.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from fleet_compliance.core.entities.company import Company
from fleet_compliance.core.interfaces.notifier import Channel, INotifier

logger = logging.getLogger(__name__)


class TemplateKind(str, Enum):
    EXPIRING = "expiring"
    EXPIRED = "expired"
    GRACE_PERIOD = "grace_period"
    DEACTIVATED = "deactivated"
    SUBSCRIPTION_EXPIRING = "subscription_expiring"
    SUBSCRIPTION_EXPIRED = "subscription_expired"


# (subject, message) per kind; formatted with the event payload
TEMPLATES = {
    TemplateKind.EXPIRING: (
        "{document_name} Expiring Soon for {entity_label}",
        "{subject_line} {document_name} expires in {days_text} (on {expiry_text}). "
        "Please renew it to avoid service interruption.",
    ),
    TemplateKind.EXPIRED: (
        "{document_name} Expired for {entity_label}",
        "{subject_line} {document_name} has expired. "
        "Please renew it immediately to continue using our services.",
    ),
    TemplateKind.GRACE_PERIOD: (
        "Urgent: {document_name} Renewal Required for {entity_label}",
        "{subject_line} {document_name} expired {days_text} ago. Renew now to avoid deactivation.",
    ),
    TemplateKind.DEACTIVATED: (
        "{entity_label} Deactivated",
        "{subject_line} has been deactivated because {document_name} has been expired for more "
        "than {cutoff_days} days. Please renew documents and contact support.",
    ),
    TemplateKind.SUBSCRIPTION_EXPIRING: (
        "Subscription Expiring Soon",
        "Your {plan_name} subscription expires in {days_text} (on {expiry_text}). "
        "Renew it to keep managing your drivers and vehicles.",
    ),
    TemplateKind.SUBSCRIPTION_EXPIRED: (
        "Subscription Expired",
        "Your {plan_name} subscription has expired. "
        "Renew it to continue adding drivers and vehicles.",
    ),
}


@dataclass
class DispatchResult:
    """Outcome of one channel send."""
    channel: Channel
    recipient: str
    success: bool
    error: str | None = None


@dataclass
class CompanyDispatchResult:
    """Outcome of fanning one event out to a company's contacts."""
    results: list[DispatchResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return any(r.success for r in self.results)

    @property
    def errors(self) -> list[str]:
        return [f"{r.channel.value}:{r.recipient}: {r.error}" for r in self.results if not r.success]


def _days_text(days) -> str:
    if days is None:
        return ""
    return "1 day" if days == 1 else f"{days} days"


def render(template_kind: TemplateKind, payload: dict) -> tuple[str, str]:
    """Build (subject, body) for an event."""
    subject_tpl, message_tpl = TEMPLATES[TemplateKind(template_kind)]
    values = {
        "entity_label": "",
        "entity_name": "",
        "entity_id": "",
        "document_name": "Document",
        "plan_name": "",
        "cutoff_days": 30,
        **payload,
    }
    expiry = payload.get("expiry_date")
    values["expiry_text"] = expiry.strftime("%a %b %d %Y") if expiry else "unknown date"
    values["days_text"] = _days_text(payload.get("days"))
    values["subject_line"] = (
        f"{values['entity_label']} {values['entity_name']} ({values['entity_id']})".strip()
    )

    subject = subject_tpl.format(**values)
    message = message_tpl.format(**values)
    greeting = f"Hello {payload['recipient_name']}," if payload.get("recipient_name") else "Hello,"
    return subject, f"{greeting}\n\n{message}"


class NotificationDispatcher:
    """
    Routes rendered messages to per-channel notifiers.

    A channel without a configured notifier counts as a failed dispatch.
    """

    def __init__(self, notifiers: list[INotifier]):
        self._notifiers: dict[Channel, INotifier] = {n.channel: n for n in notifiers}

    @property
    def channels(self) -> list[Channel]:
        return list(self._notifiers)

    def notify(
        self,
        channel: Channel,
        recipient: str,
        template_kind: TemplateKind,
        payload: dict,
    ) -> DispatchResult:
        notifier = self._notifiers.get(channel)
        if notifier is None:
            return DispatchResult(channel, recipient, False, f"No notifier configured for {channel.value}")

        subject, body = render(template_kind, payload)
        try:
            outcome = notifier.send(recipient, subject, body)
        except Exception as e:
            logger.exception(f"{channel.value} notifier raised for {recipient}")
            return DispatchResult(channel, recipient, False, str(e))

        if not outcome.success:
            logger.warning(f"{channel.value} dispatch to {recipient} failed: {outcome.error}")
        return DispatchResult(channel, recipient, outcome.success, outcome.error)

    def notify_company(
        self, company: Company, template_kind: TemplateKind, payload: dict
    ) -> CompanyDispatchResult:
        """Send to every contact channel of the company."""
        payload = {"recipient_name": company.name, **payload}
        result = CompanyDispatchResult()
        if company.contact_email:
            result.results.append(self.notify(Channel.EMAIL, company.contact_email, template_kind, payload))
        if company.contact_phone:
            result.results.append(self.notify(Channel.SMS, company.contact_phone, template_kind, payload))

        if result.success:
            logger.info(f"Notification '{template_kind.value}' sent to company {company.id}")
        return result

    def notify_driver(self, driver, template_kind: TemplateKind, payload: dict) -> DispatchResult | None:
        """Copy of a document notice for the driver, by email. None when the driver has no email."""
        if not driver.email:
            return None
        payload = {**payload, "recipient_name": driver.name}
        return self.notify(Channel.EMAIL, driver.email, template_kind, payload)
