"""
Entity: Vehicle

A company vehicle with its insurance document.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from fleet_compliance.core.entities.document import (
    ComplianceDocument,
    DocumentType,
    EntityKind,
)


class VehicleStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    MAINTENANCE = "Maintenance"


@dataclass
class Vehicle:
    """Domain entity: Vehicle."""
    id: str
    company_id: str
    registration: str
    status: VehicleStatus = VehicleStatus.PENDING
    insurance: ComplianceDocument | None = None
    assigned_driver_id: str | None = None
    availability: bool = True
    suspension_reason: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    kind = EntityKind.VEHICLE
    entity_label = "Vehicle"
    deactivated_status = VehicleStatus.MAINTENANCE

    @property
    def documents(self) -> dict[DocumentType, ComplianceDocument]:
        """Same shape as Driver.documents so the sweep can treat both alike."""
        if self.insurance is None:
            return {}
        return {DocumentType.INSURANCE: self.insurance}

    @property
    def is_deactivated(self) -> bool:
        return self.status == VehicleStatus.MAINTENANCE
