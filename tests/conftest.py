"""
Pytest configuration and fixtures for the fleet compliance engine.

In-memory fakes for every port, so use cases run without a database or
network. Repository tests build their own SQLite database under tmp_path.
"""

import copy
import threading
from datetime import datetime, timedelta

import pytest

from fleet_compliance.core.entities.company import Company, CompanyStatus
from fleet_compliance.core.entities.document import (
    DRIVER_DOCUMENT_TYPES,
    ComplianceDocument,
    DocumentType,
    NotificationHistory,
    NotificationKind,
)
from fleet_compliance.core.entities.driver import Driver, DriverStatus
from fleet_compliance.core.entities.subscription import Plan, Subscriber
from fleet_compliance.core.entities.vehicle import Vehicle, VehicleStatus
from fleet_compliance.core.errors import NotFoundError
from fleet_compliance.core.interfaces.company_store import ICompanyStore
from fleet_compliance.core.interfaces.driver_store import IDriverStore
from fleet_compliance.core.interfaces.notification_ledger import INotificationLedger
from fleet_compliance.core.interfaces.notifier import Channel, INotifier, NotifierResult
from fleet_compliance.core.interfaces.subscriber_store import ISubscriberStore
from fleet_compliance.core.interfaces.vehicle_store import IVehicleStore
from fleet_compliance.core.use_cases.dispatch_notification import NotificationDispatcher

REFERENCE_DATE = datetime(2025, 1, 10, 9, 0, 0)


def days_from_ref(days: int) -> datetime:
    return REFERENCE_DATE + timedelta(days=days)


# ── Fakes ──


class InMemoryCompanyStore(ICompanyStore):
    def __init__(self):
        self.items: dict[str, Company] = {}

    def add(self, company: Company) -> Company:
        self.items[company.id] = company
        return company

    def get_all(self):
        return [copy.deepcopy(c) for c in self.items.values()]

    def get(self, company_id):
        c = self.items.get(company_id)
        return copy.deepcopy(c) if c else None

    def get_by_transporter(self, transporter_id):
        return [copy.deepcopy(c) for c in self.items.values() if c.transporter_id == transporter_id]


class _InMemoryEntityStore:
    def __init__(self):
        self.items = {}
        self.updates: list[tuple[str, dict]] = []

    def add(self, entity):
        self.items[entity.id] = entity
        return entity

    def get_by_company(self, company_id):
        return [copy.deepcopy(e) for e in self.items.values() if e.company_id == company_id]

    def get(self, entity_id):
        e = self.items.get(entity_id)
        return copy.deepcopy(e) if e else None

    def count_by_company(self, company_id):
        return sum(1 for e in self.items.values() if e.company_id == company_id)

    def update(self, entity_id, patch):
        entity = self.items.get(entity_id)
        if entity is None:
            raise NotFoundError("Entity", entity_id)
        for key, value in patch.items():
            setattr(entity, key, copy.deepcopy(value))
        self.updates.append((entity_id, patch))
        return copy.deepcopy(entity)


class InMemoryDriverStore(_InMemoryEntityStore, IDriverStore):
    pass


class InMemoryVehicleStore(_InMemoryEntityStore, IVehicleStore):
    def get_by_assigned_driver(self, driver_id):
        for v in self.items.values():
            if v.assigned_driver_id == driver_id:
                return copy.deepcopy(v)
        return None


class InMemorySubscriberStore(ISubscriberStore):
    def __init__(self):
        self.subscribers: dict[str, Subscriber] = {}
        self.plans: dict[str, Plan] = {}

    def add(self, subscriber: Subscriber) -> Subscriber:
        self.subscribers[subscriber.subscriber_id] = subscriber
        return subscriber

    def add_plan(self, plan: Plan) -> Plan:
        self.plans[plan.id] = plan
        return plan

    def get_active_by_user(self, user_id):
        for s in self.subscribers.values():
            if s.user_id == user_id and s.is_active:
                return copy.deepcopy(s)
        return None

    def get_plan(self, plan_id):
        return self.plans.get(plan_id)

    def list_active(self):
        return [copy.deepcopy(s) for s in self.subscribers.values() if s.is_active]

    def update(self, subscriber_id, patch):
        subscriber = self.subscribers[subscriber_id]
        for key, value in patch.items():
            setattr(subscriber, key, value)
        return copy.deepcopy(subscriber)


class InMemoryLedger(INotificationLedger):
    def __init__(self):
        self.keys: set[tuple] = set()
        self._lock = threading.Lock()

    @staticmethod
    def _key(entity_kind, entity_id, document_type, stage, threshold):
        return (entity_kind.value, entity_id, document_type.value, stage.value, threshold)

    def claim(self, entity_kind, entity_id, document_type, stage, threshold=0):
        key = self._key(entity_kind, entity_id, document_type, stage, threshold)
        with self._lock:
            if key in self.keys:
                return False
            self.keys.add(key)
            return True

    def release(self, entity_kind, entity_id, document_type, stage, threshold=0):
        with self._lock:
            self.keys.discard(self._key(entity_kind, entity_id, document_type, stage, threshold))

    def clear(self, entity_kind, entity_id, document_type):
        prefix = (entity_kind.value, entity_id, document_type.value)
        with self._lock:
            matching = {k for k in self.keys if k[:3] == prefix}
            self.keys -= matching
        return len(matching)

    def history(self, entity_kind, entity_id, document_type):
        history = NotificationHistory()
        prefix = (entity_kind.value, entity_id, document_type.value)
        for key in self.keys:
            if key[:3] == prefix:
                history.mark(NotificationKind(key[3]), key[4])
        return history


class RecordingNotifier(INotifier):
    """Notifier that records messages; can be told to fail or raise."""

    def __init__(self, channel: Channel, fail: bool = False, raises: Exception | None = None):
        self.channel = channel
        self.fail = fail
        self.raises = raises
        self.sent: list[tuple[str, str, str]] = []
        self._lock = threading.Lock()

    def send(self, recipient, subject, body, html=None):
        if self.raises is not None:
            raise self.raises
        if self.fail:
            return NotifierResult(False, "provider rejected message")
        with self._lock:
            self.sent.append((recipient, subject, body))
        return NotifierResult(True)


# ── Fixtures ──


@pytest.fixture
def companies():
    return InMemoryCompanyStore()


@pytest.fixture
def drivers():
    return InMemoryDriverStore()


@pytest.fixture
def vehicles():
    return InMemoryVehicleStore()


@pytest.fixture
def subscribers():
    return InMemorySubscriberStore()


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def email_notifier():
    return RecordingNotifier(Channel.EMAIL)


@pytest.fixture
def sms_notifier():
    return RecordingNotifier(Channel.SMS)


@pytest.fixture
def dispatcher(email_notifier, sms_notifier):
    return NotificationDispatcher([email_notifier, sms_notifier])


@pytest.fixture
def make_company(companies):
    def _make(company_id="c1", transporter_id="u1", email="ops@acme.test", phone="0712345678", **kwargs):
        return companies.add(Company(
            id=company_id,
            name=kwargs.pop("name", f"Company {company_id}"),
            transporter_id=transporter_id,
            contact_email=email,
            contact_phone=phone,
            status=kwargs.pop("status", CompanyStatus.APPROVED),
            **kwargs,
        ))
    return _make


@pytest.fixture
def make_driver(drivers):
    def _make(driver_id="d1", company_id="c1", expiry=None, status=DriverStatus.APPROVED, approved=True, **kwargs):
        """Driver whose four documents share one expiry date (default: far future)."""
        expiry = expiry or days_from_ref(365)
        documents = {
            t: ComplianceDocument(document_type=t, url=f"https://files.test/{driver_id}/{t.value}",
                                  expiry_date=expiry, approved=approved)
            for t in DRIVER_DOCUMENT_TYPES
        }
        documents.update(kwargs.pop("documents", {}))
        return drivers.add(Driver(
            id=driver_id,
            company_id=company_id,
            name=kwargs.pop("name", f"Driver {driver_id}"),
            status=status,
            documents=documents,
            **kwargs,
        ))
    return _make


@pytest.fixture
def make_vehicle(vehicles):
    def _make(vehicle_id="v1", company_id="c1", expiry=None, status=VehicleStatus.APPROVED, **kwargs):
        expiry = expiry or days_from_ref(365)
        return vehicles.add(Vehicle(
            id=vehicle_id,
            company_id=company_id,
            registration=kwargs.pop("registration", f"KAA {vehicle_id.upper()}"),
            status=status,
            insurance=ComplianceDocument(
                document_type=DocumentType.INSURANCE,
                url=f"https://files.test/{vehicle_id}/insurance",
                expiry_date=expiry,
                approved=True,
            ),
            **kwargs,
        ))
    return _make


@pytest.fixture
def sql_session_factory(tmp_path):
    """Fresh SQLite file database with all tables."""
    from fleet_compliance.infrastructure.db.database import build_session_factory

    return build_session_factory(f"sqlite:///{tmp_path / 'fleet.db'}")
