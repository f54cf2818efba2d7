"""
Contract: Driver Store

Persistence for drivers and their documents.
"""

from abc import ABC, abstractmethod

from fleet_compliance.core.entities.driver import Driver


class IDriverStore(ABC):
    """
    Port: Driver Store

    Implementations populate each document's notification_history
    when loading drivers.
    """

    @abstractmethod
    def get_by_company(self, company_id: str) -> list[Driver]:
        """Return all drivers of a company."""
        ...

    @abstractmethod
    def get(self, driver_id: str) -> Driver | None:
        """Fetch a driver, or None if missing."""
        ...

    @abstractmethod
    def count_by_company(self, company_id: str) -> int:
        """Live count of the company's drivers (not cached)."""
        ...

    @abstractmethod
    def update(self, driver_id: str, patch: dict) -> Driver:
        """
        Apply a partial update.

        Args:
            driver_id: Driver identifier.
            patch: Field name → new value. "documents" maps document
                   type → ComplianceDocument.

        Returns:
            The updated driver.

        Raises:
            NotFoundError: driver does not exist.
            PersistenceError: the write failed.
        """
        ...
