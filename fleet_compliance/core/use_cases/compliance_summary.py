"""
Use Case: Compliance Summary

Lists a company's expired documents and those expiring within a window,
for the fleet dashboard.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from fleet_compliance.core.errors import NotFoundError
from fleet_compliance.core.interfaces.company_store import ICompanyStore
from fleet_compliance.core.interfaces.driver_store import IDriverStore
from fleet_compliance.core.interfaces.vehicle_store import IVehicleStore
from fleet_compliance.core.use_cases.classify_document import (
    DocumentClassifier,
    days_until,
    to_naive_utc,
    utcnow,
)


@dataclass
class DocumentAlert:
    category: str          # "driver" | "vehicle"
    entity_id: str
    entity_name: str
    document_type: str
    document_name: str
    expiry_date: datetime
    days: int              # days remaining, or days overdue for expired entries
    stage: str


@dataclass
class ComplianceSummary:
    company_id: str
    expired: list[DocumentAlert] = field(default_factory=list)
    expiring_soon: list[DocumentAlert] = field(default_factory=list)


class GetComplianceSummaryUseCase:

    def __init__(
        self,
        company_store: ICompanyStore,
        driver_store: IDriverStore,
        vehicle_store: IVehicleStore,
        classifier: DocumentClassifier | None = None,
        window_days: int = 30,
    ):
        self._companies = company_store
        self._drivers = driver_store
        self._vehicles = vehicle_store
        self._classifier = classifier or DocumentClassifier()
        self._window = window_days

    def execute(self, company_id: str, reference_date: datetime | date | None = None) -> ComplianceSummary:
        if self._companies.get(company_id) is None:
            raise NotFoundError("Company", company_id)
        ref = to_naive_utc(reference_date) if reference_date else utcnow()

        summary = ComplianceSummary(company_id=company_id)
        entities = [*self._drivers.get_by_company(company_id), *self._vehicles.get_by_company(company_id)]
        for entity in entities:
            name = getattr(entity, "name", None) or getattr(entity, "registration", "")
            for doc_type, doc in entity.documents.items():
                if doc.expiry_date is None:
                    continue
                days_left = days_until(doc.expiry_date, ref)
                if days_left > self._window:
                    continue
                stage = self._classifier.classify(doc.expiry_date, ref)
                alert = DocumentAlert(
                    category=entity.kind.value,
                    entity_id=entity.id,
                    entity_name=name,
                    document_type=doc_type.value,
                    document_name=doc.display_name,
                    expiry_date=doc.expiry_date,
                    days=abs(days_left),
                    stage=stage.kind.value,
                )
                if days_left <= 0:
                    summary.expired.append(alert)
                else:
                    summary.expiring_soon.append(alert)

        summary.expired.sort(key=lambda a: a.days, reverse=True)
        summary.expiring_soon.sort(key=lambda a: a.days)
        return summary
