"""
Contract: Notification Ledger

Idempotency table of notifications already sent, keyed by
(entity_kind, entity_id, document_type, stage, threshold).
"""

from abc import ABC, abstractmethod

from fleet_compliance.core.entities.document import (
    DocumentType,
    EntityKind,
    NotificationHistory,
    NotificationKind,
)


class INotificationLedger(ABC):
    """
    Port: Notification Ledger

    claim() must be atomic: of two concurrent claims for the same key,
    exactly one returns True.
    """

    @abstractmethod
    def claim(
        self,
        entity_kind: EntityKind,
        entity_id: str,
        document_type: DocumentType,
        stage: NotificationKind,
        threshold: int = 0,
    ) -> bool:
        """
        Record a notification key if it is not present yet.

        Returns:
            True if this call inserted the key, False if it already existed.
        """
        ...

    @abstractmethod
    def release(
        self,
        entity_kind: EntityKind,
        entity_id: str,
        document_type: DocumentType,
        stage: NotificationKind,
        threshold: int = 0,
    ) -> None:
        """Undo a claim whose dispatch failed."""
        ...

    @abstractmethod
    def clear(self, entity_kind: EntityKind, entity_id: str, document_type: DocumentType) -> int:
        """Forget every key for one document. Returns the number removed."""
        ...

    @abstractmethod
    def history(
        self, entity_kind: EntityKind, entity_id: str, document_type: DocumentType
    ) -> NotificationHistory:
        """Current notification history for one document."""
        ...
