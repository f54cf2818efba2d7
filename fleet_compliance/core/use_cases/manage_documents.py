"""
Use Case: Manage Documents

Renewal (re-upload) and admin approval of driver/vehicle documents.

Renewal is the only backward lifecycle transition: it replaces the expiry
date, clears the document's notification history and puts the document
back into review.
"""

import logging
from datetime import date, datetime

from fleet_compliance.core.entities.document import (
    DRIVER_DOCUMENT_TYPES,
    ComplianceDocument,
    DocumentType,
    EntityKind,
    NotificationHistory,
)
from fleet_compliance.core.entities.driver import DriverStatus
from fleet_compliance.core.errors import NotFoundError
from fleet_compliance.core.interfaces.driver_store import IDriverStore
from fleet_compliance.core.interfaces.notification_ledger import INotificationLedger
from fleet_compliance.core.interfaces.vehicle_store import IVehicleStore
from fleet_compliance.core.use_cases.classify_document import to_naive_utc, utcnow

logger = logging.getLogger(__name__)


class _DocumentUseCase:
    """Shared entity/document lookup."""

    def __init__(self, driver_store: IDriverStore, vehicle_store: IVehicleStore):
        self._drivers = driver_store
        self._vehicles = vehicle_store

    def _load(self, entity_kind: EntityKind, entity_id: str):
        entity_kind = EntityKind(entity_kind)
        if entity_kind == EntityKind.DRIVER:
            entity = self._drivers.get(entity_id)
        elif entity_kind == EntityKind.VEHICLE:
            entity = self._vehicles.get(entity_id)
        else:
            raise ValueError(f"Documents are not tracked for {entity_kind.value}")
        if entity is None:
            raise NotFoundError(entity_kind.value.capitalize(), entity_id)
        return entity

    @staticmethod
    def _check_type(entity_kind: EntityKind, document_type: DocumentType):
        allowed = DRIVER_DOCUMENT_TYPES if entity_kind == EntityKind.DRIVER else (DocumentType.INSURANCE,)
        if document_type not in allowed:
            raise ValueError(f"{document_type.value} is not a {entity_kind.value} document")

    def _save_document(self, entity, document: ComplianceDocument, extra: dict | None = None):
        patch = dict(extra or {})
        if entity.kind == EntityKind.DRIVER:
            documents = dict(entity.documents)
            documents[document.document_type] = document
            patch["documents"] = documents
            return self._drivers.update(entity.id, patch)
        patch["insurance"] = document
        return self._vehicles.update(entity.id, patch)


class RenewDocumentUseCase(_DocumentUseCase):
    """Use Case: a fresh document upload resets the lifecycle."""

    def __init__(self, driver_store: IDriverStore, vehicle_store: IVehicleStore, ledger: INotificationLedger):
        super().__init__(driver_store, vehicle_store)
        self._ledger = ledger

    def execute(
        self,
        entity_kind: EntityKind,
        entity_id: str,
        document_type: DocumentType,
        url: str,
        expiry_date: datetime | date,
    ):
        entity_kind = EntityKind(entity_kind)
        document_type = DocumentType(document_type)
        self._check_type(entity_kind, document_type)
        entity = self._load(entity_kind, entity_id)

        document = ComplianceDocument(
            document_type=document_type,
            url=url,
            expiry_date=to_naive_utc(expiry_date),
            approved=False,
            notification_history=NotificationHistory(),
        )
        # the new document must never inherit the old thresholds, even if the save fails
        cleared = self._ledger.clear(entity_kind, entity_id, document_type)

        extra = {"status": DriverStatus.RENEWAL} if entity_kind == EntityKind.DRIVER else None
        updated = self._save_document(entity, document, extra)
        logger.info(
            f"{document.display_name} renewed for {entity_kind.value} {entity_id} "
            f"(expires {document.expiry_date.date()}, {cleared} notification records cleared)"
        )
        return updated


class ApproveDocumentUseCase(_DocumentUseCase):
    """Use Case: admin approves one document."""

    def execute(
        self,
        entity_kind: EntityKind,
        entity_id: str,
        document_type: DocumentType,
        verified_by: str,
        now: datetime | None = None,
    ):
        entity_kind = EntityKind(entity_kind)
        document_type = DocumentType(document_type)
        self._check_type(entity_kind, document_type)
        entity = self._load(entity_kind, entity_id)

        document = entity.documents.get(document_type)
        if document is None:
            raise NotFoundError(document_type.display_name, f"of {entity_kind.value} {entity_id}")

        document.approved = True
        document.verified_by = verified_by
        document.verified_at = now or utcnow()

        extra = {}
        if entity_kind == EntityKind.DRIVER and entity.status == DriverStatus.RENEWAL:
            if all(d.approved for d in entity.documents.values()):
                extra["status"] = DriverStatus.APPROVED

        logger.info(f"{document.display_name} of {entity_kind.value} {entity_id} approved by {verified_by}")
        return self._save_document(entity, document, extra)
