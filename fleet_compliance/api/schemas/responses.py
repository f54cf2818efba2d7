"""
Pydantic schemas: request and response models for the API.
"""

from datetime import date, datetime

from pydantic import BaseModel


class EntitlementResponse(BaseModel):
    company_id: str
    resource_type: str
    allowed: bool
    reason: str | None = None
    current_count: int
    max_allowed: int | None = None
    remaining: int | None = None


class SweepRequest(BaseModel):
    reference_date: date | None = None


class CompanySweepResponse(BaseModel):
    company_id: str
    notifications_sent: int
    deactivated: int
    errors: list[str]
    error: str | None = None
    latency_ms: float


class SweepResponse(BaseModel):
    reference_date: datetime
    companies_processed: int
    companies_failed: int
    notifications_sent: int
    deactivated: int
    total_latency_ms: float
    results: list[CompanySweepResponse]


class SubscriptionSweepResponse(BaseModel):
    reference_date: datetime
    expired: int
    reminders_sent: int
    errors: list[str]


class UsageResponse(BaseModel):
    current: int
    max: int
    unlimited: bool


class PlanResponse(BaseModel):
    id: str
    name: str
    max_drivers: int
    max_vehicles: int
    features: list[str]
    price: float
    billing_cycle: str


class SubscriptionStatusResponse(BaseModel):
    has_subscription: bool
    message: str = ""
    subscriber_id: str | None = None
    status: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    days_remaining: int = 0
    plan: PlanResponse | None = None
    usage: dict[str, UsageResponse] = {}


class DocumentAlertResponse(BaseModel):
    category: str
    entity_id: str
    entity_name: str
    document_type: str
    document_name: str
    expiry_date: datetime
    days: int
    stage: str


class ComplianceSummaryResponse(BaseModel):
    company_id: str
    expired: list[DocumentAlertResponse]
    expiring_soon: list[DocumentAlertResponse]


class RenewDocumentRequest(BaseModel):
    url: str
    expiry_date: datetime


class ApproveDocumentRequest(BaseModel):
    verified_by: str


class DocumentResponse(BaseModel):
    document_type: str
    url: str
    expiry_date: datetime | None = None
    approved: bool
    verified_by: str | None = None
    verified_at: datetime | None = None


class EntityDocumentsResponse(BaseModel):
    entity_kind: str
    entity_id: str
    status: str
    documents: list[DocumentResponse]


class AssignDriverRequest(BaseModel):
    driver_id: str


class AssignmentResponse(BaseModel):
    vehicle_id: str
    driver_id: str
    registration: str
