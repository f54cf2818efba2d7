"""
Database Models (SQLAlchemy).

Tables:
  - companies, drivers, vehicles: fleet entities (documents as JSON)
  - plans, subscribers: subscription data
  - notification_ledger: one row per notification already sent,
    unique per (entity_kind, entity_id, document_type, stage, threshold)
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Column, String, Float, Integer, Boolean, DateTime, JSON,
    ForeignKey, Index, UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def _uuid() -> str:
    return str(uuid.uuid4())


class CompanyRecord(Base):
    __tablename__ = "companies"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(200), nullable=False)
    registration_number = Column(String(100), default="")
    contact_email = Column(String(200), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    transporter_id = Column(String(36), nullable=False, index=True)
    status = Column(String(20), default="Pending", index=True)
    rejection_reason = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Company {self.id} {self.name!r} [{self.status}]>"


class DriverRecord(Base):
    __tablename__ = "drivers"

    id = Column(String(36), primary_key=True, default=_uuid)
    company_id = Column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=True)
    status = Column(String(20), default="Pending", index=True)
    # {"driver_license": {"url", "expiry_date", "approved", "verified_by", "verified_at"}, ...}
    documents = Column(JSON, default=dict)
    assigned_vehicle_id = Column(String(36), nullable=True)
    suspension_reason = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Driver {self.id} {self.name!r} [{self.status}]>"


class VehicleRecord(Base):
    __tablename__ = "vehicles"

    id = Column(String(36), primary_key=True, default=_uuid)
    company_id = Column(String(36), ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    registration = Column(String(50), nullable=False)
    status = Column(String(20), default="Pending", index=True)
    insurance = Column(JSON, nullable=True)
    assigned_driver_id = Column(String(36), nullable=True, index=True)
    availability = Column(Boolean, default=True)
    suspension_reason = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Vehicle {self.id} {self.registration} [{self.status}]>"


class PlanRecord(Base):
    __tablename__ = "plans"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(100), nullable=False)
    max_drivers = Column(Integer, default=0)        # -1 = unlimited
    max_vehicles = Column(Integer, default=0)       # -1 = unlimited
    features = Column(JSON, default=list)
    trial_days = Column(Integer, default=0)
    price = Column(Float, default=0.0)
    billing_cycle = Column(String(20), default="monthly")


class SubscriberRecord(Base):
    __tablename__ = "subscribers"

    subscriber_id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    plan_id = Column(String(36), ForeignKey("plans.id"), nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False, index=True)
    is_active = Column(Boolean, default=True, index=True)
    status = Column(String(20), default="active")
    current_usage = Column(JSON, default=dict)


class NotificationLedgerRecord(Base):
    """Idempotency key for a sent notification."""
    __tablename__ = "notification_ledger"
    __table_args__ = (
        UniqueConstraint(
            "entity_kind", "entity_id", "document_type", "stage", "threshold",
            name="uq_notification_key",
        ),
        Index("ix_ledger_document", "entity_kind", "entity_id", "document_type"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    entity_kind = Column(String(20), nullable=False)
    entity_id = Column(String(36), nullable=False)
    document_type = Column(String(40), nullable=False)
    stage = Column(String(40), nullable=False)
    threshold = Column(Integer, nullable=False, default=0)
    sent_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return (
            f"<Ledger {self.entity_kind}:{self.entity_id} {self.document_type} "
            f"{self.stage}({self.threshold})>"
        )
