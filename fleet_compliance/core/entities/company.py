"""
Entity: Company

A transport company owned by a transporter. Owns drivers and vehicles.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class CompanyStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


@dataclass
class Company:
    """Domain entity: Company."""
    id: str
    name: str
    transporter_id: str                  # owning transporter's user id
    registration_number: str = ""
    contact_email: str | None = None
    contact_phone: str | None = None
    status: CompanyStatus = CompanyStatus.PENDING
    rejection_reason: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def has_contact(self) -> bool:
        return bool(self.contact_email or self.contact_phone)
