"""
SQL Stores: SQLAlchemy implementations of the store contracts.

Handles:
  - Record ↔ entity mapping (documents stored as JSON)
  - Partial updates with PersistenceError wrapping
  - Notification ledger with atomic claims (unique-constraint insert)
"""

import logging
from collections import defaultdict
from enum import Enum

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fleet_compliance.core.entities.company import Company, CompanyStatus
from fleet_compliance.core.entities.document import (
    ComplianceDocument,
    DocumentType,
    EntityKind,
    NotificationHistory,
    NotificationKind,
)
from fleet_compliance.core.entities.driver import Driver, DriverStatus
from fleet_compliance.core.entities.subscription import (
    BillingCycle,
    Plan,
    Subscriber,
    SubscriberStatus,
)
from fleet_compliance.core.entities.vehicle import Vehicle, VehicleStatus
from fleet_compliance.core.errors import NotFoundError, PersistenceError
from fleet_compliance.core.interfaces.company_store import ICompanyStore
from fleet_compliance.core.interfaces.driver_store import IDriverStore
from fleet_compliance.core.interfaces.notification_ledger import INotificationLedger
from fleet_compliance.core.interfaces.subscriber_store import ISubscriberStore
from fleet_compliance.core.interfaces.vehicle_store import IVehicleStore
from fleet_compliance.infrastructure.db.database import get_db
from fleet_compliance.infrastructure.db.models import (
    CompanyRecord,
    DriverRecord,
    NotificationLedgerRecord,
    PlanRecord,
    SubscriberRecord,
    VehicleRecord,
)

logger = logging.getLogger(__name__)


def _column_value(value):
    if isinstance(value, Enum):
        return value.value
    return value


def _apply_patch(record, patch: dict, json_fields: dict):
    """Copy patch values onto a record. json_fields maps key → serializer."""
    for key, value in patch.items():
        if key in json_fields:
            setattr(record, key, json_fields[key](value))
        elif hasattr(record, key) and key != "id":
            setattr(record, key, _column_value(value))
        else:
            raise PersistenceError(f"Unknown field '{key}' for {record.__tablename__}")


def _documents_to_json(documents: dict) -> dict:
    return {DocumentType(k).value: d.to_dict() for k, d in documents.items()}


def _document_to_json(document: ComplianceDocument | None) -> dict | None:
    return document.to_dict() if document is not None else None


class _SqlStore:
    def __init__(self, session_factory=None):
        self._factory = session_factory

    def _session(self):
        return get_db(self._factory)


# ── Companies ──────────────────────────────────────────────


class SqlCompanyStore(_SqlStore, ICompanyStore):

    def get_all(self) -> list[Company]:
        with self._session() as db:
            return [self._to_entity(r) for r in db.query(CompanyRecord).order_by(CompanyRecord.created_at).all()]

    def get(self, company_id: str) -> Company | None:
        with self._session() as db:
            record = db.get(CompanyRecord, company_id)
            return self._to_entity(record) if record else None

    def get_by_transporter(self, transporter_id: str) -> list[Company]:
        with self._session() as db:
            records = db.query(CompanyRecord).filter_by(transporter_id=transporter_id).all()
            return [self._to_entity(r) for r in records]

    def add(self, company: Company) -> Company:
        with self._session() as db:
            db.add(CompanyRecord(
                id=company.id,
                name=company.name,
                registration_number=company.registration_number,
                contact_email=company.contact_email,
                contact_phone=company.contact_phone,
                transporter_id=company.transporter_id,
                status=company.status.value,
                rejection_reason=company.rejection_reason,
                created_at=company.created_at,
                updated_at=company.updated_at,
            ))
        logger.info(f"Saved company {company.id} ({company.name})")
        return company

    @staticmethod
    def _to_entity(r: CompanyRecord) -> Company:
        return Company(
            id=r.id,
            name=r.name,
            transporter_id=r.transporter_id,
            registration_number=r.registration_number or "",
            contact_email=r.contact_email,
            contact_phone=r.contact_phone,
            status=CompanyStatus(r.status),
            rejection_reason=r.rejection_reason,
            created_at=r.created_at,
            updated_at=r.updated_at,
        )


# ── Drivers ────────────────────────────────────────────────


class SqlDriverStore(_SqlStore, IDriverStore):

    def get_by_company(self, company_id: str) -> list[Driver]:
        with self._session() as db:
            records = db.query(DriverRecord).filter_by(company_id=company_id).order_by(DriverRecord.created_at).all()
            histories = _load_histories(db, EntityKind.DRIVER, [r.id for r in records])
            return [self._to_entity(r, histories) for r in records]

    def get(self, driver_id: str) -> Driver | None:
        with self._session() as db:
            record = db.get(DriverRecord, driver_id)
            if record is None:
                return None
            return self._to_entity(record, _load_histories(db, EntityKind.DRIVER, [record.id]))

    def count_by_company(self, company_id: str) -> int:
        with self._session() as db:
            return db.query(func.count(DriverRecord.id)).filter_by(company_id=company_id).scalar() or 0

    def update(self, driver_id: str, patch: dict) -> Driver:
        try:
            with self._session() as db:
                record = db.get(DriverRecord, driver_id)
                if record is None:
                    raise NotFoundError("Driver", driver_id)
                _apply_patch(record, patch, {"documents": _documents_to_json})
                db.flush()
                return self._to_entity(record, _load_histories(db, EntityKind.DRIVER, [record.id]))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Driver {driver_id} update failed: {e}") from e

    def add(self, driver: Driver) -> Driver:
        with self._session() as db:
            db.add(DriverRecord(
                id=driver.id,
                company_id=driver.company_id,
                name=driver.name,
                email=driver.email,
                phone=driver.phone,
                status=driver.status.value,
                documents=_documents_to_json(driver.documents),
                assigned_vehicle_id=driver.assigned_vehicle_id,
                suspension_reason=driver.suspension_reason,
                created_at=driver.created_at,
                updated_at=driver.updated_at,
            ))
        return driver

    @staticmethod
    def _to_entity(r: DriverRecord, histories: dict) -> Driver:
        documents = {}
        for key, data in (r.documents or {}).items():
            doc_type = DocumentType(key)
            doc = ComplianceDocument.from_dict(doc_type, data)
            doc.notification_history = histories.get((r.id, doc_type), NotificationHistory())
            documents[doc_type] = doc
        return Driver(
            id=r.id,
            company_id=r.company_id,
            name=r.name,
            email=r.email,
            phone=r.phone,
            status=DriverStatus(r.status),
            documents=documents,
            assigned_vehicle_id=r.assigned_vehicle_id,
            suspension_reason=r.suspension_reason,
            created_at=r.created_at,
            updated_at=r.updated_at,
        )


# ── Vehicles ───────────────────────────────────────────────


class SqlVehicleStore(_SqlStore, IVehicleStore):

    def get_by_company(self, company_id: str) -> list[Vehicle]:
        with self._session() as db:
            records = db.query(VehicleRecord).filter_by(company_id=company_id).order_by(VehicleRecord.created_at).all()
            histories = _load_histories(db, EntityKind.VEHICLE, [r.id for r in records])
            return [self._to_entity(r, histories) for r in records]

    def get(self, vehicle_id: str) -> Vehicle | None:
        with self._session() as db:
            record = db.get(VehicleRecord, vehicle_id)
            if record is None:
                return None
            return self._to_entity(record, _load_histories(db, EntityKind.VEHICLE, [record.id]))

    def count_by_company(self, company_id: str) -> int:
        with self._session() as db:
            return db.query(func.count(VehicleRecord.id)).filter_by(company_id=company_id).scalar() or 0

    def get_by_assigned_driver(self, driver_id: str) -> Vehicle | None:
        with self._session() as db:
            record = db.query(VehicleRecord).filter_by(assigned_driver_id=driver_id).first()
            if record is None:
                return None
            return self._to_entity(record, _load_histories(db, EntityKind.VEHICLE, [record.id]))

    def update(self, vehicle_id: str, patch: dict) -> Vehicle:
        try:
            with self._session() as db:
                record = db.get(VehicleRecord, vehicle_id)
                if record is None:
                    raise NotFoundError("Vehicle", vehicle_id)
                _apply_patch(record, patch, {"insurance": _document_to_json})
                db.flush()
                return self._to_entity(record, _load_histories(db, EntityKind.VEHICLE, [record.id]))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Vehicle {vehicle_id} update failed: {e}") from e

    def add(self, vehicle: Vehicle) -> Vehicle:
        with self._session() as db:
            db.add(VehicleRecord(
                id=vehicle.id,
                company_id=vehicle.company_id,
                registration=vehicle.registration,
                status=vehicle.status.value,
                insurance=_document_to_json(vehicle.insurance),
                assigned_driver_id=vehicle.assigned_driver_id,
                availability=vehicle.availability,
                suspension_reason=vehicle.suspension_reason,
                created_at=vehicle.created_at,
                updated_at=vehicle.updated_at,
            ))
        return vehicle

    @staticmethod
    def _to_entity(r: VehicleRecord, histories: dict) -> Vehicle:
        insurance = None
        if r.insurance:
            insurance = ComplianceDocument.from_dict(DocumentType.INSURANCE, r.insurance)
            insurance.notification_history = histories.get(
                (r.id, DocumentType.INSURANCE), NotificationHistory()
            )
        return Vehicle(
            id=r.id,
            company_id=r.company_id,
            registration=r.registration,
            status=VehicleStatus(r.status),
            insurance=insurance,
            assigned_driver_id=r.assigned_driver_id,
            availability=bool(r.availability),
            suspension_reason=r.suspension_reason,
            created_at=r.created_at,
            updated_at=r.updated_at,
        )


# ── Subscribers & plans ────────────────────────────────────


class SqlSubscriberStore(_SqlStore, ISubscriberStore):

    def get_active_by_user(self, user_id: str) -> Subscriber | None:
        with self._session() as db:
            record = (
                db.query(SubscriberRecord)
                .filter_by(user_id=user_id, is_active=True)
                .order_by(SubscriberRecord.end_date.desc())
                .first()
            )
            return self._to_entity(record) if record else None

    def get_plan(self, plan_id: str) -> Plan | None:
        with self._session() as db:
            r = db.get(PlanRecord, plan_id)
            if r is None:
                return None
            return Plan(
                id=r.id,
                name=r.name,
                max_drivers=r.max_drivers,
                max_vehicles=r.max_vehicles,
                features=list(r.features or []),
                trial_days=r.trial_days or 0,
                price=r.price or 0.0,
                billing_cycle=BillingCycle(r.billing_cycle),
            )

    def list_active(self) -> list[Subscriber]:
        with self._session() as db:
            return [self._to_entity(r) for r in db.query(SubscriberRecord).filter_by(is_active=True).all()]

    def update(self, subscriber_id: str, patch: dict) -> Subscriber:
        try:
            with self._session() as db:
                record = db.get(SubscriberRecord, subscriber_id)
                if record is None:
                    raise NotFoundError("Subscriber", subscriber_id)
                _apply_patch(record, patch, {})
                db.flush()
                return self._to_entity(record)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Subscriber {subscriber_id} update failed: {e}") from e

    def add_plan(self, plan: Plan) -> Plan:
        with self._session() as db:
            db.add(PlanRecord(
                id=plan.id,
                name=plan.name,
                max_drivers=plan.max_drivers,
                max_vehicles=plan.max_vehicles,
                features=list(plan.features),
                trial_days=plan.trial_days,
                price=plan.price,
                billing_cycle=plan.billing_cycle.value,
            ))
        return plan

    def add(self, subscriber: Subscriber) -> Subscriber:
        """Insert a subscriber. An active one deactivates the user's previous active record."""
        with self._session() as db:
            if subscriber.is_active:
                db.query(SubscriberRecord).filter_by(user_id=subscriber.user_id, is_active=True).update(
                    {"is_active": False, "status": SubscriberStatus.CANCELLED.value}
                )
            db.add(SubscriberRecord(
                subscriber_id=subscriber.subscriber_id,
                user_id=subscriber.user_id,
                plan_id=subscriber.plan_id,
                start_date=subscriber.start_date,
                end_date=subscriber.end_date,
                is_active=subscriber.is_active,
                status=subscriber.status.value,
                current_usage=dict(subscriber.current_usage),
            ))
        return subscriber

    @staticmethod
    def _to_entity(r: SubscriberRecord) -> Subscriber:
        return Subscriber(
            subscriber_id=r.subscriber_id,
            user_id=r.user_id,
            plan_id=r.plan_id,
            start_date=r.start_date,
            end_date=r.end_date,
            is_active=bool(r.is_active),
            status=SubscriberStatus(r.status),
            current_usage=dict(r.current_usage or {}),
        )


# ── Notification ledger ────────────────────────────────────


def _load_histories(db, entity_kind: EntityKind, entity_ids: list[str]) -> dict:
    """(entity_id, DocumentType) → NotificationHistory for a batch of entities."""
    if not entity_ids:
        return {}
    rows = (
        db.query(NotificationLedgerRecord)
        .filter(
            NotificationLedgerRecord.entity_kind == entity_kind.value,
            NotificationLedgerRecord.entity_id.in_(entity_ids),
        )
        .all()
    )
    histories = defaultdict(NotificationHistory)
    for row in rows:
        histories[(row.entity_id, DocumentType(row.document_type))].mark(
            NotificationKind(row.stage), row.threshold
        )
    return dict(histories)


class SqlNotificationLedger(_SqlStore, INotificationLedger):

    def claim(self, entity_kind, entity_id, document_type, stage, threshold=0) -> bool:
        try:
            with self._session() as db:
                db.add(NotificationLedgerRecord(
                    entity_kind=EntityKind(entity_kind).value,
                    entity_id=entity_id,
                    document_type=DocumentType(document_type).value,
                    stage=NotificationKind(stage).value,
                    threshold=threshold,
                ))
            return True
        except IntegrityError:
            logger.debug(f"Notification {entity_kind}:{entity_id} {document_type} {stage}({threshold}) already claimed")
            return False
        except SQLAlchemyError as e:
            raise PersistenceError(f"Ledger claim failed for {entity_kind}:{entity_id}: {e}") from e

    def release(self, entity_kind, entity_id, document_type, stage, threshold=0) -> None:
        try:
            with self._session() as db:
                db.query(NotificationLedgerRecord).filter_by(
                    entity_kind=EntityKind(entity_kind).value,
                    entity_id=entity_id,
                    document_type=DocumentType(document_type).value,
                    stage=NotificationKind(stage).value,
                    threshold=threshold,
                ).delete()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Ledger release failed for {entity_kind}:{entity_id}: {e}") from e

    def clear(self, entity_kind, entity_id, document_type) -> int:
        try:
            with self._session() as db:
                return db.query(NotificationLedgerRecord).filter_by(
                    entity_kind=EntityKind(entity_kind).value,
                    entity_id=entity_id,
                    document_type=DocumentType(document_type).value,
                ).delete()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Ledger clear failed for {entity_kind}:{entity_id}: {e}") from e

    def history(self, entity_kind, entity_id, document_type) -> NotificationHistory:
        with self._session() as db:
            histories = _load_histories(db, EntityKind(entity_kind), [entity_id])
            return histories.get((entity_id, DocumentType(document_type)), NotificationHistory())
