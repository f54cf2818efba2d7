"""
Contract: Company Store

Read access to companies. Backed by any persistence layer.
"""

from abc import ABC, abstractmethod

from fleet_compliance.core.entities.company import Company


class ICompanyStore(ABC):
    """
    Port: Company Store

    No business logic, only lookups.
    """

    @abstractmethod
    def get_all(self) -> list[Company]:
        """Return every company, regardless of status."""
        ...

    @abstractmethod
    def get(self, company_id: str) -> Company | None:
        """
        Fetch a single company.

        Args:
            company_id: Company identifier.

        Returns:
            The company, or None if it does not exist.
        """
        ...

    @abstractmethod
    def get_by_transporter(self, transporter_id: str) -> list[Company]:
        """Return the companies owned by a transporter."""
        ...
