"""
Contract: Vehicle Store

Persistence for vehicles and their insurance document.
"""

from abc import ABC, abstractmethod

from fleet_compliance.core.entities.vehicle import Vehicle


class IVehicleStore(ABC):
    """Port: Vehicle Store"""

    @abstractmethod
    def get_by_company(self, company_id: str) -> list[Vehicle]:
        ...

    @abstractmethod
    def get(self, vehicle_id: str) -> Vehicle | None:
        ...

    @abstractmethod
    def count_by_company(self, company_id: str) -> int:
        ...

    @abstractmethod
    def get_by_assigned_driver(self, driver_id: str) -> Vehicle | None:
        """Vehicle currently assigned to the driver, if any."""
        ...

    @abstractmethod
    def update(self, vehicle_id: str, patch: dict) -> Vehicle:
        """
        Apply a partial update ("insurance" takes a ComplianceDocument).

        Raises:
            NotFoundError: vehicle does not exist.
            PersistenceError: the write failed.
        """
        ...
