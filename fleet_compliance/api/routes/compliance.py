"""
Routes: entitlement checks, sweep triggers, subscriptions, documents.

Use cases are built from lazily created SQL stores and the configured
notifiers. Tests swap them through app.dependency_overrides.
"""

import logging
from dataclasses import dataclass

from fastapi import APIRouter, Depends

from fleet_compliance.api.schemas.responses import (
    ApproveDocumentRequest,
    AssignDriverRequest,
    AssignmentResponse,
    CompanySweepResponse,
    ComplianceSummaryResponse,
    DocumentAlertResponse,
    DocumentResponse,
    EntitlementResponse,
    EntityDocumentsResponse,
    PlanResponse,
    RenewDocumentRequest,
    SubscriptionStatusResponse,
    SubscriptionSweepResponse,
    SweepRequest,
    SweepResponse,
    UsageResponse,
)
from fleet_compliance.config.settings import get_settings
from fleet_compliance.core.entities.document import DocumentType, EntityKind
from fleet_compliance.core.entities.subscription import ResourceType
from fleet_compliance.core.interfaces.company_store import ICompanyStore
from fleet_compliance.core.interfaces.driver_store import IDriverStore
from fleet_compliance.core.interfaces.notification_ledger import INotificationLedger
from fleet_compliance.core.interfaces.subscriber_store import ISubscriberStore
from fleet_compliance.core.interfaces.vehicle_store import IVehicleStore
from fleet_compliance.core.use_cases.assign_driver import AssignDriverUseCase
from fleet_compliance.core.use_cases.check_entitlement import CheckEntitlementUseCase
from fleet_compliance.core.use_cases.classify_document import DocumentClassifier
from fleet_compliance.core.use_cases.compliance_summary import GetComplianceSummaryUseCase
from fleet_compliance.core.use_cases.dispatch_notification import NotificationDispatcher
from fleet_compliance.core.use_cases.manage_documents import (
    ApproveDocumentUseCase,
    RenewDocumentUseCase,
)
from fleet_compliance.core.use_cases.run_compliance_sweep import RunComplianceSweepUseCase
from fleet_compliance.core.use_cases.run_subscription_sweep import RunSubscriptionSweepUseCase
from fleet_compliance.core.use_cases.subscription_status import GetSubscriptionStatusUseCase
from fleet_compliance.infrastructure.db.repository import (
    SqlCompanyStore,
    SqlDriverStore,
    SqlNotificationLedger,
    SqlSubscriberStore,
    SqlVehicleStore,
)
from fleet_compliance.infrastructure.notifications.factory import build_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter()


@dataclass
class Stores:
    companies: ICompanyStore
    drivers: IDriverStore
    vehicles: IVehicleStore
    subscribers: ISubscriberStore
    ledger: INotificationLedger


# Lazy singletons
_stores = None
_dispatcher = None


def get_stores() -> Stores:
    global _stores
    if _stores is None:
        _stores = Stores(
            companies=SqlCompanyStore(),
            drivers=SqlDriverStore(),
            vehicles=SqlVehicleStore(),
            subscribers=SqlSubscriberStore(),
            ledger=SqlNotificationLedger(),
        )
    return _stores


def get_dispatcher() -> NotificationDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = build_dispatcher()
    return _dispatcher


def get_classifier() -> DocumentClassifier:
    settings = get_settings()
    return DocumentClassifier(
        expiring_thresholds=settings.expiring_thresholds,
        grace_thresholds=settings.grace_thresholds,
        deactivation_after_days=settings.deactivation_after_days,
    )


# ── Entitlements ──


@router.get("/companies/{company_id}/entitlements/{resource_type}", response_model=EntitlementResponse)
def check_entitlement(company_id: str, resource_type: ResourceType, stores: Stores = Depends(get_stores)):
    """Can this company add one more driver / vehicle under its plan?"""
    use_case = CheckEntitlementUseCase(stores.companies, stores.drivers, stores.vehicles, stores.subscribers)
    decision = use_case.can_add(resource_type, company_id)
    return EntitlementResponse(
        company_id=company_id,
        resource_type=resource_type.value,
        allowed=decision.allowed,
        reason=decision.reason,
        current_count=decision.current_count,
        max_allowed=decision.max_allowed,
        remaining=decision.remaining,
    )


# ── Sweeps ──


@router.post("/compliance/sweep", response_model=SweepResponse)
def run_compliance_sweep(
    request: SweepRequest | None = None,
    stores: Stores = Depends(get_stores),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    classifier: DocumentClassifier = Depends(get_classifier),
):
    """Run one compliance sweep across every company (scheduler trigger)."""
    settings = get_settings()
    use_case = RunComplianceSweepUseCase(
        company_store=stores.companies,
        driver_store=stores.drivers,
        vehicle_store=stores.vehicles,
        ledger=stores.ledger,
        dispatcher=dispatcher,
        classifier=classifier,
        max_workers=settings.sweep_max_workers,
        company_timeout_seconds=settings.sweep_company_timeout_seconds,
    )
    summary = use_case.execute(request.reference_date if request else None)
    return SweepResponse(
        reference_date=summary.reference_date,
        companies_processed=summary.companies_processed,
        companies_failed=summary.companies_failed,
        notifications_sent=summary.notifications_sent,
        deactivated=summary.deactivated,
        total_latency_ms=summary.total_latency_ms,
        results=[
            CompanySweepResponse(
                company_id=r.company_id,
                notifications_sent=r.notifications_sent,
                deactivated=r.deactivated,
                errors=r.errors,
                error=r.error,
                latency_ms=r.latency_ms,
            )
            for r in summary.results
        ],
    )


@router.post("/subscriptions/sweep", response_model=SubscriptionSweepResponse)
def run_subscription_sweep(
    request: SweepRequest | None = None,
    stores: Stores = Depends(get_stores),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    """Expire overdue subscriptions and send renewal reminders."""
    use_case = RunSubscriptionSweepUseCase(
        subscriber_store=stores.subscribers,
        company_store=stores.companies,
        ledger=stores.ledger,
        dispatcher=dispatcher,
        reminder_days=get_settings().subscription_reminder_days,
    )
    summary = use_case.execute(request.reference_date if request else None)
    return SubscriptionSweepResponse(
        reference_date=summary.reference_date,
        expired=summary.expired,
        reminders_sent=summary.reminders_sent,
        errors=summary.errors,
    )


# ── Subscriptions & dashboard ──


@router.get("/subscriptions/{user_id}", response_model=SubscriptionStatusResponse)
def get_subscription_status(user_id: str, stores: Stores = Depends(get_stores)):
    use_case = GetSubscriptionStatusUseCase(stores.companies, stores.drivers, stores.vehicles, stores.subscribers)
    status = use_case.execute(user_id)
    if not status.has_subscription:
        return SubscriptionStatusResponse(has_subscription=False, message=status.message)

    subscriber = status.subscriber
    plan = None
    if status.plan is not None:
        plan = PlanResponse(
            id=status.plan.id,
            name=status.plan.name,
            max_drivers=status.plan.max_drivers,
            max_vehicles=status.plan.max_vehicles,
            features=status.plan.features,
            price=status.plan.price,
            billing_cycle=status.plan.billing_cycle.value,
        )
    return SubscriptionStatusResponse(
        has_subscription=True,
        message=status.message,
        subscriber_id=subscriber.subscriber_id,
        status=subscriber.status.value,
        start_date=subscriber.start_date,
        end_date=subscriber.end_date,
        days_remaining=status.days_remaining,
        plan=plan,
        usage={k: UsageResponse(current=u.current, max=u.max, unlimited=u.unlimited) for k, u in status.usage.items()},
    )


@router.get("/companies/{company_id}/compliance-summary", response_model=ComplianceSummaryResponse)
def get_compliance_summary(
    company_id: str,
    stores: Stores = Depends(get_stores),
    classifier: DocumentClassifier = Depends(get_classifier),
):
    """Expired documents and those expiring within the summary window."""
    use_case = GetComplianceSummaryUseCase(
        stores.companies,
        stores.drivers,
        stores.vehicles,
        classifier=classifier,
        window_days=get_settings().summary_window_days,
    )
    summary = use_case.execute(company_id)
    return ComplianceSummaryResponse(
        company_id=company_id,
        expired=[DocumentAlertResponse(**vars(a)) for a in summary.expired],
        expiring_soon=[DocumentAlertResponse(**vars(a)) for a in summary.expiring_soon],
    )


# ── Documents ──


def _documents_response(entity) -> EntityDocumentsResponse:
    return EntityDocumentsResponse(
        entity_kind=entity.kind.value,
        entity_id=entity.id,
        status=entity.status.value,
        documents=[
            DocumentResponse(document_type=doc_type.value, **doc.to_dict())
            for doc_type, doc in entity.documents.items()
        ],
    )


@router.put("/documents/{entity_kind}/{entity_id}/{document_type}", response_model=EntityDocumentsResponse)
def renew_document(
    entity_kind: EntityKind,
    entity_id: str,
    document_type: DocumentType,
    request: RenewDocumentRequest,
    stores: Stores = Depends(get_stores),
):
    """Upload a renewed document; restarts its notification lifecycle."""
    use_case = RenewDocumentUseCase(stores.drivers, stores.vehicles, stores.ledger)
    entity = use_case.execute(entity_kind, entity_id, document_type, request.url, request.expiry_date)
    return _documents_response(entity)


@router.post(
    "/documents/{entity_kind}/{entity_id}/{document_type}/approve",
    response_model=EntityDocumentsResponse,
)
def approve_document(
    entity_kind: EntityKind,
    entity_id: str,
    document_type: DocumentType,
    request: ApproveDocumentRequest,
    stores: Stores = Depends(get_stores),
):
    use_case = ApproveDocumentUseCase(stores.drivers, stores.vehicles)
    entity = use_case.execute(entity_kind, entity_id, document_type, request.verified_by)
    return _documents_response(entity)


# ── Assignment ──


@router.post("/vehicles/{vehicle_id}/assign", response_model=AssignmentResponse)
def assign_driver(vehicle_id: str, request: AssignDriverRequest, stores: Stores = Depends(get_stores)):
    use_case = AssignDriverUseCase(stores.drivers, stores.vehicles)
    vehicle = use_case.execute(vehicle_id, request.driver_id)
    return AssignmentResponse(
        vehicle_id=vehicle.id,
        driver_id=vehicle.assigned_driver_id,
        registration=vehicle.registration,
    )
