"""
Use Case: Assign Driver

Links a driver to a vehicle. A driver may drive at most one vehicle and
must be approved with an approved license.
"""

import logging

from fleet_compliance.core.entities.vehicle import VehicleStatus
from fleet_compliance.core.errors import AssignmentError, NotFoundError
from fleet_compliance.core.interfaces.driver_store import IDriverStore
from fleet_compliance.core.interfaces.vehicle_store import IVehicleStore

logger = logging.getLogger(__name__)


class AssignDriverUseCase:

    def __init__(self, driver_store: IDriverStore, vehicle_store: IVehicleStore):
        self._drivers = driver_store
        self._vehicles = vehicle_store

    def execute(self, vehicle_id: str, driver_id: str):
        vehicle = self._vehicles.get(vehicle_id)
        if vehicle is None:
            raise NotFoundError("Vehicle", vehicle_id)
        driver = self._drivers.get(driver_id)
        if driver is None:
            raise NotFoundError("Driver", driver_id)

        if driver.company_id != vehicle.company_id:
            raise AssignmentError("Driver and vehicle belong to different companies")
        if not driver.can_be_assigned:
            raise AssignmentError(
                f"Driver {driver_id} must be Approved with an approved license (status={driver.status.value})"
            )
        if vehicle.status == VehicleStatus.MAINTENANCE:
            raise AssignmentError(f"Vehicle {vehicle_id} is under maintenance")

        current = self._vehicles.get_by_assigned_driver(driver_id)
        if current is not None and current.id != vehicle_id:
            raise AssignmentError(f"Driver {driver_id} is already assigned to vehicle {current.id}")
        if vehicle.assigned_driver_id and vehicle.assigned_driver_id != driver_id:
            raise AssignmentError(
                f"Vehicle {vehicle_id} is already assigned to driver {vehicle.assigned_driver_id}"
            )

        updated = self._vehicles.update(vehicle_id, {"assigned_driver_id": driver_id})
        self._drivers.update(driver_id, {"assigned_vehicle_id": vehicle_id})
        logger.info(f"Driver {driver_id} assigned to vehicle {vehicle_id}")
        return updated
