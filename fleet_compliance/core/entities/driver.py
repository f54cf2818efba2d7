"""
Entity: Driver

A company driver and its four regulated documents.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from fleet_compliance.core.entities.document import (
    ComplianceDocument,
    DocumentType,
    EntityKind,
)


class DriverStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    SUSPENDED = "Suspended"
    RENEWAL = "Renewal"


@dataclass
class Driver:
    """Domain entity: Driver."""
    id: str
    company_id: str
    name: str
    email: str | None = None
    phone: str | None = None
    status: DriverStatus = DriverStatus.PENDING
    documents: dict[DocumentType, ComplianceDocument] = field(default_factory=dict)
    assigned_vehicle_id: str | None = None
    suspension_reason: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    kind = EntityKind.DRIVER
    entity_label = "Driver"
    deactivated_status = DriverStatus.SUSPENDED

    @property
    def license(self) -> ComplianceDocument | None:
        return self.documents.get(DocumentType.DRIVER_LICENSE)

    @property
    def is_deactivated(self) -> bool:
        return self.status == DriverStatus.SUSPENDED

    @property
    def can_be_assigned(self) -> bool:
        lic = self.license
        return self.status == DriverStatus.APPROVED and lic is not None and lic.approved
