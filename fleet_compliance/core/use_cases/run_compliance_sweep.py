"""
Use Case: Run Compliance Sweep

Walks every company's drivers and vehicles, classifies each regulated
document and acts on the stage:

  EXPIRING_SOON(d) → "expiring" notice, once per threshold d
  EXPIRED          → "expired" notice, once
  GRACE_PERIOD(d)  → "grace period" notice, once per threshold d
  DEACTIVATABLE    → suspend driver / put vehicle in maintenance, then a
                     "deactivated" notice, retried until delivered

Companies are processed independently on a thread pool; each task returns
a CompanySweepResult and one company's failure never aborts the others.
Dedup goes through the notification ledger: a key is claimed before the
dispatch and released again if no channel confirmed delivery, so the
notice is retried on the next run. Companies without any contact are
still classified and deactivated; their notices are held back and
reported as errors.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime

from fleet_compliance.core.entities.company import Company
from fleet_compliance.core.entities.document import (
    ComplianceDocument,
    EntityKind,
    NotificationKind,
)
from fleet_compliance.core.entities.stage import DocumentStage, StageKind
from fleet_compliance.core.entities.sweep_result import CompanySweepResult, SweepSummary
from fleet_compliance.core.errors import (
    ComplianceError,
    PersistenceError,
    SweepTimeoutError,
    TransportError,
)
from fleet_compliance.core.interfaces.company_store import ICompanyStore
from fleet_compliance.core.interfaces.driver_store import IDriverStore
from fleet_compliance.core.interfaces.notification_ledger import INotificationLedger
from fleet_compliance.core.interfaces.vehicle_store import IVehicleStore
from fleet_compliance.core.use_cases.classify_document import (
    DocumentClassifier,
    to_naive_utc,
    utcnow,
)
from fleet_compliance.core.use_cases.dispatch_notification import (
    NotificationDispatcher,
    TemplateKind,
)

logger = logging.getLogger(__name__)

# stage → (ledger kind, template)
_NOTICES = {
    StageKind.EXPIRING_SOON: (NotificationKind.EXPIRING, TemplateKind.EXPIRING),
    StageKind.EXPIRED: (NotificationKind.EXPIRED, TemplateKind.EXPIRED),
    StageKind.GRACE_PERIOD: (NotificationKind.GRACE_PERIOD, TemplateKind.GRACE_PERIOD),
}


class RunComplianceSweepUseCase:
    """
    Use Case: one full compliance sweep across all companies.

    Dependency Injection: stores, ledger and dispatcher come through the
    constructor. The classifier defaults to the standard thresholds.
    """

    def __init__(
        self,
        company_store: ICompanyStore,
        driver_store: IDriverStore,
        vehicle_store: IVehicleStore,
        ledger: INotificationLedger,
        dispatcher: NotificationDispatcher,
        classifier: DocumentClassifier | None = None,
        max_workers: int = 4,
        company_timeout_seconds: float = 120.0,
    ):
        self._companies = company_store
        self._drivers = driver_store
        self._vehicles = vehicle_store
        self._ledger = ledger
        self._dispatcher = dispatcher
        self._classifier = classifier or DocumentClassifier()
        self._max_workers = max(1, max_workers)
        self._timeout = company_timeout_seconds

    def execute(self, reference_date: datetime | date | None = None) -> SweepSummary:
        """
        Run the sweep.

        Args:
            reference_date: "Today" for classification. Defaults to now (UTC).

        Returns:
            SweepSummary aggregating every company's result.
        """
        ref = to_naive_utc(reference_date) if reference_date else utcnow()
        t_start = time.perf_counter()

        companies = self._companies.get_all()
        logger.info(f"Starting compliance sweep for {len(companies)} companies (ref={ref.date()})")

        summary = SweepSummary(reference_date=ref)
        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="sweep") as pool:
            futures = [(c, pool.submit(self.process_company, c, ref)) for c in companies]
            for company, future in futures:
                try:
                    result = future.result()
                except Exception as e:
                    logger.exception(f"Compliance sweep crashed for company {company.id}")
                    result = CompanySweepResult(company_id=company.id, error=str(e))
                summary.add(result)

        summary.total_latency_ms = round((time.perf_counter() - t_start) * 1000, 2)
        logger.info(
            f"Compliance sweep done: {summary.notifications_sent} notifications, "
            f"{summary.deactivated} deactivated, {summary.companies_failed} failed companies"
        )
        return summary

    def process_company(self, company: Company, reference_date: datetime) -> CompanySweepResult:
        """Process one company. Only unexpected errors escape."""
        t0 = time.perf_counter()
        result = CompanySweepResult(company_id=company.id)

        if not company.has_contact:
            logger.warning(f"Company {company.id} has no contact email or phone, notices will be held back")

        deadline = time.monotonic() + self._timeout
        try:
            drivers = self._drivers.get_by_company(company.id)
            vehicles = self._vehicles.get_by_company(company.id)
            for entity in [*drivers, *vehicles]:
                self._process_entity(company, entity, reference_date, result, deadline)
        except SweepTimeoutError as e:
            logger.warning(f"Company {company.id}: {e}")
            result.error = str(e)
        except ComplianceError as e:
            logger.error(f"Company {company.id} failed: {e}")
            result.error = str(e)

        result.latency_ms = round((time.perf_counter() - t0) * 1000, 2)
        return result

    # ── Per entity ─────────────────────────────────────────

    def _process_entity(self, company, entity, ref: datetime, result: CompanySweepResult, deadline: float):
        lapsed = []
        for doc_type, doc in entity.documents.items():
            if time.monotonic() > deadline:
                raise SweepTimeoutError(
                    f"timed out after {self._timeout}s, remaining documents deferred to next run"
                )
            if doc.expiry_date is None:
                continue

            stage = self._classifier.classify(doc.expiry_date, ref)
            if stage.kind == StageKind.DEACTIVATABLE:
                lapsed.append((doc, stage))
                continue
            if stage.kind not in _NOTICES:
                continue

            kind, template = _NOTICES[stage.kind]
            threshold = 0 if kind == NotificationKind.EXPIRED else stage.days
            try:
                if self._notify_once(company, entity, doc, kind, threshold, template, stage):
                    result.notifications_sent += 1
            except (TransportError, PersistenceError) as e:
                logger.warning(f"{entity.entity_label} {entity.id} {doc_type.value}: {e}")
                result.errors.append(f"{entity.entity_label} {entity.id} {doc_type.value}: {e}")

        if lapsed:
            try:
                self._deactivate(company, entity, lapsed, result)
            except (TransportError, PersistenceError) as e:
                logger.warning(f"{entity.entity_label} {entity.id} deactivation: {e}")
                result.errors.append(f"{entity.entity_label} {entity.id} deactivation: {e}")

    def _notify_once(
        self,
        company: Company,
        entity,
        doc: ComplianceDocument,
        kind: NotificationKind,
        threshold: int,
        template: TemplateKind,
        stage: DocumentStage,
    ) -> bool:
        if doc.notification_history.has_fired(kind, threshold):
            return False
        if not company.has_contact:
            raise TransportError(f"company {company.id} has no contact email or phone")
        if not self._ledger.claim(entity.kind, entity.id, doc.document_type, kind, threshold):
            # Another sweep got there first
            return False

        payload = self._payload(entity, doc, stage)
        dispatch = self._dispatcher.notify_company(company, template, payload)
        if not dispatch.success:
            self._ledger.release(entity.kind, entity.id, doc.document_type, kind, threshold)
            raise TransportError("; ".join(dispatch.errors) or "no delivery channel available")
        doc.notification_history.mark(kind, threshold)

        if entity.kind == EntityKind.DRIVER:
            driver_copy = self._dispatcher.notify_driver(entity, template, payload)
            if driver_copy is not None and not driver_copy.success:
                logger.warning(f"Driver {entity.id} copy of '{template.value}' not delivered: {driver_copy.error}")
        return True

    def _deactivate(self, company: Company, entity, lapsed: list, result: CompanySweepResult):
        """Status change once, then the deactivation notice through the ledger until delivered."""
        doc, stage = lapsed[0]
        if not entity.is_deactivated:
            cutoff = self._classifier.deactivation_after_days
            reason = f"{doc.display_name} expired for more than {cutoff} days"
            patch = {"status": entity.deactivated_status, "suspension_reason": reason}

            if entity.kind == EntityKind.DRIVER:
                self._drivers.update(entity.id, patch)
            else:
                self._vehicles.update(entity.id, patch)
            entity.status = entity.deactivated_status
            entity.suspension_reason = reason
            result.deactivated += 1
            logger.info(f"{entity.entity_label} {entity.id} of company {company.id} deactivated: {reason}")

        if any(d.notification_history.has_fired(NotificationKind.DEACTIVATED) for d, _ in lapsed):
            return
        if self._notify_once(company, entity, doc, NotificationKind.DEACTIVATED, 0, TemplateKind.DEACTIVATED, stage):
            result.notifications_sent += 1

    def _payload(self, entity, doc: ComplianceDocument, stage: DocumentStage) -> dict:
        return {
            "entity_label": entity.entity_label,
            "entity_name": getattr(entity, "name", None) or getattr(entity, "registration", ""),
            "entity_id": entity.id,
            "document_name": doc.display_name,
            "days": stage.days,
            "expiry_date": doc.expiry_date,
            "cutoff_days": self._classifier.deactivation_after_days,
        }
