"""
Use Case: Run Subscription Sweep

Daily pass over active subscribers:
  - end_date reached → deactivate (is_active=False, status=expired) and
    tell the transporter's companies;
  - days remaining exactly in the reminder thresholds → one reminder per
    threshold, deduplicated through the notification ledger.
"""

import logging
from datetime import date, datetime

from fleet_compliance.core.entities.document import DocumentType, EntityKind, NotificationKind
from fleet_compliance.core.entities.subscription import SubscriberStatus
from fleet_compliance.core.entities.sweep_result import SubscriptionSweepSummary
from fleet_compliance.core.errors import ComplianceError
from fleet_compliance.core.interfaces.company_store import ICompanyStore
from fleet_compliance.core.interfaces.notification_ledger import INotificationLedger
from fleet_compliance.core.interfaces.subscriber_store import ISubscriberStore
from fleet_compliance.core.use_cases.classify_document import days_until, to_naive_utc, utcnow
from fleet_compliance.core.use_cases.dispatch_notification import (
    NotificationDispatcher,
    TemplateKind,
)

logger = logging.getLogger(__name__)


class RunSubscriptionSweepUseCase:

    def __init__(
        self,
        subscriber_store: ISubscriberStore,
        company_store: ICompanyStore,
        ledger: INotificationLedger,
        dispatcher: NotificationDispatcher,
        reminder_days=(7, 3, 1),
    ):
        self._subscribers = subscriber_store
        self._companies = company_store
        self._ledger = ledger
        self._dispatcher = dispatcher
        self._reminder_days = frozenset(reminder_days)

    def execute(self, reference_date: datetime | date | None = None) -> SubscriptionSweepSummary:
        ref = to_naive_utc(reference_date) if reference_date else utcnow()
        summary = SubscriptionSweepSummary(reference_date=ref)

        for subscriber in self._subscribers.list_active():
            try:
                self._process(subscriber, ref, summary)
            except ComplianceError as e:
                logger.error(f"Subscriber {subscriber.subscriber_id}: {e}")
                summary.errors.append(f"{subscriber.subscriber_id}: {e}")

        logger.info(
            f"Subscription sweep done: {summary.expired} expired, {summary.reminders_sent} reminders"
        )
        return summary

    def _process(self, subscriber, ref: datetime, summary: SubscriptionSweepSummary):
        days_left = days_until(subscriber.end_date, ref)
        plan = self._subscribers.get_plan(subscriber.plan_id)
        payload = {
            "plan_name": plan.name if plan else subscriber.plan_id,
            "days": days_left,
            "expiry_date": to_naive_utc(subscriber.end_date),
        }

        if days_left <= 0:
            self._subscribers.update(
                subscriber.subscriber_id,
                {"is_active": False, "status": SubscriberStatus.EXPIRED},
            )
            summary.expired += 1
            logger.info(f"Subscription {subscriber.subscriber_id} of user {subscriber.user_id} expired")
            self._notify(subscriber.user_id, TemplateKind.SUBSCRIPTION_EXPIRED, payload)
            return

        if days_left not in self._reminder_days:
            return

        key = (
            EntityKind.SUBSCRIBER,
            subscriber.subscriber_id,
            DocumentType.SUBSCRIPTION,
            NotificationKind.SUBSCRIPTION_EXPIRING,
            days_left,
        )
        if not self._ledger.claim(*key):
            return
        if self._notify(subscriber.user_id, TemplateKind.SUBSCRIPTION_EXPIRING, payload):
            summary.reminders_sent += 1
        else:
            self._ledger.release(*key)
            summary.errors.append(f"{subscriber.subscriber_id}: reminder for {days_left} days not delivered")

    def _notify(self, user_id: str, template: TemplateKind, payload: dict) -> bool:
        delivered = False
        for company in self._companies.get_by_transporter(user_id):
            if not company.has_contact:
                continue
            if self._dispatcher.notify_company(company, template, payload).success:
                delivered = True
        return delivered
