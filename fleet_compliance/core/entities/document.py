"""
Entity: Compliance Document

A regulated document (license, ID, insurance...) attached to a driver or
vehicle, plus the record of which expiry notifications already went out.
Pure model, no framework or database dependency.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class EntityKind(str, Enum):
    DRIVER = "driver"
    VEHICLE = "vehicle"
    SUBSCRIBER = "subscriber"


class DocumentType(str, Enum):
    ID_DOCUMENT = "id_document"
    DRIVER_LICENSE = "driver_license"
    GOOD_CONDUCT_CERT = "good_conduct_cert"
    GOODS_SERVICE_LICENSE = "goods_service_license"
    INSURANCE = "insurance"
    SUBSCRIPTION = "subscription"

    @property
    def display_name(self) -> str:
        return DOCUMENT_NAMES.get(self, "Document")


DOCUMENT_NAMES = {
    DocumentType.ID_DOCUMENT: "ID Document",
    DocumentType.DRIVER_LICENSE: "Driver License",
    DocumentType.GOOD_CONDUCT_CERT: "Good Conduct Certificate",
    DocumentType.GOODS_SERVICE_LICENSE: "Goods Service License",
    DocumentType.INSURANCE: "Vehicle Insurance",
    DocumentType.SUBSCRIPTION: "Subscription",
}

DRIVER_DOCUMENT_TYPES = (
    DocumentType.ID_DOCUMENT,
    DocumentType.DRIVER_LICENSE,
    DocumentType.GOOD_CONDUCT_CERT,
    DocumentType.GOODS_SERVICE_LICENSE,
)
VEHICLE_DOCUMENT_TYPES = (DocumentType.INSURANCE,)


class NotificationKind(str, Enum):
    """Ledger stage names. Threshold is 0 for one-shot kinds."""
    EXPIRING = "expiring"
    EXPIRED = "expired"
    GRACE_PERIOD = "grace_period"
    DEACTIVATED = "deactivated"
    SUBSCRIPTION_EXPIRING = "subscription_expiring"


@dataclass
class NotificationHistory:
    """Thresholds that already fired for one document."""
    expiring_days_sent: set[int] = field(default_factory=set)
    expired_sent: bool = False
    grace_days_sent: set[int] = field(default_factory=set)
    deactivated_sent: bool = False

    def has_fired(self, kind: NotificationKind, threshold: int = 0) -> bool:
        if kind == NotificationKind.EXPIRING:
            return threshold in self.expiring_days_sent
        if kind == NotificationKind.GRACE_PERIOD:
            return threshold in self.grace_days_sent
        if kind == NotificationKind.EXPIRED:
            return self.expired_sent
        if kind == NotificationKind.DEACTIVATED:
            return self.deactivated_sent
        return False

    def mark(self, kind: NotificationKind, threshold: int = 0) -> None:
        if kind == NotificationKind.EXPIRING:
            self.expiring_days_sent.add(threshold)
        elif kind == NotificationKind.GRACE_PERIOD:
            self.grace_days_sent.add(threshold)
        elif kind == NotificationKind.EXPIRED:
            self.expired_sent = True
        elif kind == NotificationKind.DEACTIVATED:
            self.deactivated_sent = True

    def is_empty(self) -> bool:
        return not (
            self.expiring_days_sent or self.expired_sent or self.grace_days_sent or self.deactivated_sent
        )


@dataclass
class ComplianceDocument:
    """Domain entity: a regulated document."""
    document_type: DocumentType
    url: str = ""
    expiry_date: datetime | None = None
    approved: bool = False
    verified_by: str | None = None
    verified_at: datetime | None = None
    notification_history: NotificationHistory = field(default_factory=NotificationHistory)

    @property
    def display_name(self) -> str:
        return self.document_type.display_name

    def to_dict(self) -> dict:
        """Serializable form, without the notification history."""
        return {
            "url": self.url,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "approved": self.approved,
            "verified_by": self.verified_by,
            "verified_at": self.verified_at.isoformat() if self.verified_at else None,
        }

    @classmethod
    def from_dict(cls, document_type: DocumentType, data: dict | None) -> "ComplianceDocument":
        data = data or {}
        return cls(
            document_type=document_type,
            url=data.get("url") or "",
            expiry_date=_parse_dt(data.get("expiry_date")),
            approved=bool(data.get("approved", False)),
            verified_by=data.get("verified_by"),
            verified_at=_parse_dt(data.get("verified_at")),
        )


def _parse_dt(value) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)
