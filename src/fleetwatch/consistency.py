"""Cross-entity consistency checks.

Derives, from the shared :class:`~fleetwatch.state.store.EntityStore`,
whether trucks and drivers are referenced by active trips, how a truck's
status should be displayed, and which driver a truck resolves to. All
operations are read-only and fail soft: unexpected data degrades to
"no match" instead of raising.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from fleetwatch._constants import UNASSIGNED
from fleetwatch._normalize import same_id
from fleetwatch.models import Driver, DriverStatus, Truck, TruckStatus
from fleetwatch.state.store import EntityStore

_logger = logging.getLogger(__name__)

EntityRole = Literal["truck", "driver"]

_ASSIGN_BLOCKING_DRIVER_STATUSES: frozenset[DriverStatus] = frozenset(
    {DriverStatus.DRIVING, DriverStatus.OFF_DUTY, DriverStatus.INACTIVE, DriverStatus.PENDING}
)
_BUSY_TRUCK_STATUSES: frozenset[TruckStatus] = frozenset({TruckStatus.INTRANSIT, TruckStatus.PENDING})


@dataclass(frozen=True, slots=True)
class DeletionCheck:
    """Outcome of a deletion gate; ``reason`` is suitable as a button title."""

    allowed: bool
    reason: str


class ConsistencyEvaluator:
    """Read-only derivations over the entity store."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    # ------------------------------------------------------------------
    # Trip references
    # ------------------------------------------------------------------

    def is_entity_active_in_trips(self, entity_id: str, role: EntityRole) -> bool:
        """Whether a non-terminal trip references *entity_id* in *role*.

        Driver references match either ``driver_id`` or the legacy
        ``driver`` field.
        """
        try:
            for trip in self._store.trips:
                if trip.is_terminal:
                    continue
                if role == "truck":
                    if same_id(trip.truck_id, entity_id):
                        return True
                elif role == "driver":
                    if same_id(trip.driver_id, entity_id) or same_id(trip.driver, entity_id):
                        return True
                else:
                    _logger.debug("Unknown entity role %r", role)
                    return False
        except Exception:
            _logger.exception("Trip scan failed for %s %s", role, entity_id)
            return False
        return False

    # ------------------------------------------------------------------
    # Display helpers
    # ------------------------------------------------------------------

    def normalize_display_status(self, truck: Truck, drivers: Iterable[Driver] | None = None) -> TruckStatus:
        """Status to display for *truck*.

        An ``assigned`` truck to which no driver resolves (driver field empty
        or ``"Unassigned"``, or naming nobody in *drivers*) displays as
        ``available``. Never writes back to the store.
        """
        if truck.status == TruckStatus.ASSIGNED and self.resolve_driver_for_truck(truck, drivers) is None:
            return TruckStatus.AVAILABLE
        return truck.status

    def resolve_driver_for_truck(self, truck: Truck, drivers: Iterable[Driver] | None = None) -> Driver | None:
        """Find the driver of *truck*.

        A driver whose ``assigned_vehicle`` is the truck id wins over one
        whose name or id matches ``truck.driver``. Within each tier the first
        driver in iteration order wins.
        """
        try:
            candidates = tuple(self._store.drivers if drivers is None else drivers)
            for driver in candidates:
                if same_id(driver.assigned_vehicle, truck.id):
                    return driver
            if not truck.has_driver:
                return None
            for driver in candidates:
                if driver.name == truck.driver or same_id(driver.id, truck.driver):
                    return driver
        except Exception:
            _logger.exception("Driver resolution failed for truck %s", truck.id)
        return None

    def describe_assigned_vehicle(self, driver: Driver) -> str:
        """Label for the driver's vehicle; dangling references show the raw id."""
        if not driver.assigned_vehicle:
            return UNASSIGNED
        truck = self._store.get_truck(driver.assigned_vehicle)
        if truck is None:
            return driver.assigned_vehicle
        return f"{truck.name} ({truck.id} - {truck.plate_number})"

    def describe_truck_driver(self, truck: Truck) -> str:
        """Label for the truck's driver column."""
        driver = self.resolve_driver_for_truck(truck)
        if driver is not None:
            return driver.name
        if self.normalize_display_status(truck) == TruckStatus.AVAILABLE:
            return UNASSIGNED
        return truck.driver or UNASSIGNED

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def check_truck_deletion(self, truck: Truck) -> DeletionCheck:
        if self.is_entity_active_in_trips(truck.id, "truck"):
            return DeletionCheck(False, "Cannot delete: truck is scheduled")
        if truck.status == TruckStatus.INTRANSIT:
            return DeletionCheck(False, "Cannot delete while In Transit")
        return DeletionCheck(True, "Delete truck")

    def check_driver_deletion(self, driver: Driver) -> DeletionCheck:
        if self.is_entity_active_in_trips(driver.id, "driver"):
            return DeletionCheck(False, "Cannot delete: driver has scheduled trips")
        if driver.status == DriverStatus.DRIVING:
            return DeletionCheck(False, "Cannot delete while Driving")
        return DeletionCheck(True, "Delete driver")

    def available_vehicles(self) -> list[Truck]:
        """Trucks that can take a driver: available, or assigned without one."""
        return [
            truck
            for truck in self._store.trucks
            if truck.status == TruckStatus.AVAILABLE
            or (truck.status == TruckStatus.ASSIGNED and not truck.has_driver)
        ]

    def _assigned_truck(self, driver: Driver) -> Truck | None:
        if not driver.assigned_vehicle:
            return None
        return self._store.get_truck(driver.assigned_vehicle)

    def can_assign_vehicle(self, driver: Driver) -> bool:
        if driver.status in _ASSIGN_BLOCKING_DRIVER_STATUSES:
            return False
        current = self._assigned_truck(driver)
        return not (current is not None and current.status in _BUSY_TRUCK_STATUSES)

    def can_unassign_vehicle(self, driver: Driver) -> bool:
        if driver.status == DriverStatus.PENDING:
            return False
        current = self._assigned_truck(driver)
        return not (current is not None and current.status in _BUSY_TRUCK_STATUSES)
