"""High-level fleet facade.

Wires one entity store into the consistency evaluator, the alert engine
and the notification sink, and exposes the guarded operations the
dashboard performs (deletion, vehicle assignment).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any

from fleetwatch._constants import UNASSIGNED
from fleetwatch.alerts.engine import AlertCallback, AlertEngine
from fleetwatch.client import FleetApiClient
from fleetwatch.config import FleetConfig
from fleetwatch.consistency import ConsistencyEvaluator
from fleetwatch.exceptions import AssignmentError, EntityInUseError, EntityNotFoundError
from fleetwatch.models import Driver, DriverStatus, Truck, TruckStatus
from fleetwatch.notifications import NotificationSink
from fleetwatch.state.events import Collection
from fleetwatch.state.store import EntityStore
from fleetwatch.storage import JsonFileStorage, KeyValueStorage, MemoryStorage

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Fleet:
    """Entry point composing store, evaluator, engine and sink.

    Usage::

        fleet = Fleet.open(FleetConfig.from_env())
        async with fleet:
            fleet.store.update_truck(truck)
    """

    def __init__(
        self,
        config: FleetConfig,
        *,
        store: EntityStore,
        notifications: NotificationSink,
        session_storage: KeyValueStorage | None = None,
        clock: Callable[[], datetime] = _utcnow,
        on_alert: AlertCallback | None = None,
    ) -> None:
        self._config = config
        self._store = store
        self._notifications = notifications
        self._evaluator = ConsistencyEvaluator(store)
        self._engine = AlertEngine(
            store,
            notifications,
            config=config,
            session_storage=session_storage,
            clock=clock,
            on_alert=on_alert,
        )

    @classmethod
    def open(
        cls,
        config: FleetConfig,
        *,
        seed: dict[Collection, Sequence[Any]] | None = None,
        session_storage: KeyValueStorage | None = None,
        clock: Callable[[], datetime] = _utcnow,
        on_alert: AlertCallback | None = None,
    ) -> Fleet:
        """Load the store and notifications from the configured durable storage."""
        durable: KeyValueStorage
        if config.storage_dir is not None:
            durable = JsonFileStorage(config.storage_dir)
        else:
            durable = MemoryStorage()
        return cls(
            config,
            store=EntityStore.load(durable, seed=seed),
            notifications=NotificationSink.load(durable, clock=clock),
            session_storage=session_storage,
            clock=clock,
            on_alert=on_alert,
        )

    async def __aenter__(self) -> Fleet:
        self._engine.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self._engine.aclose()

    @property
    def config(self) -> FleetConfig:
        return self._config

    @property
    def store(self) -> EntityStore:
        return self._store

    @property
    def evaluator(self) -> ConsistencyEvaluator:
        return self._evaluator

    @property
    def engine(self) -> AlertEngine:
        return self._engine

    @property
    def notifications(self) -> NotificationSink:
        return self._notifications

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _require_truck(self, truck_id: str) -> Truck:
        truck = self._store.get_truck(truck_id)
        if truck is None:
            raise EntityNotFoundError(f"Unknown truck {truck_id}", entity_id=truck_id)
        return truck

    def _require_driver(self, driver_id: str) -> Driver:
        driver = self._store.get_driver(driver_id)
        if driver is None:
            raise EntityNotFoundError(f"Unknown driver {driver_id}", entity_id=driver_id)
        return driver

    # ------------------------------------------------------------------
    # Guarded deletion
    # ------------------------------------------------------------------

    def delete_truck(self, truck_id: str) -> None:
        """Delete a truck unless it is scheduled or in transit."""
        truck = self._require_truck(truck_id)
        check = self._evaluator.check_truck_deletion(truck)
        if not check.allowed:
            raise EntityInUseError(check.reason, entity_id=truck_id)
        self._store.delete_truck(truck_id)

    def delete_driver(self, driver_id: str) -> None:
        """Delete a driver unless they have scheduled trips or are driving."""
        driver = self._require_driver(driver_id)
        check = self._evaluator.check_driver_deletion(driver)
        if not check.allowed:
            raise EntityInUseError(check.reason, entity_id=driver_id)
        self._store.delete_driver(driver_id)

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def assign_vehicle(self, driver_id: str, truck_id: str) -> Driver:
        """Assign *truck_id* to *driver_id*, freeing the driver's previous truck."""
        driver = self._require_driver(driver_id)
        truck = self._require_truck(truck_id)

        if not self._evaluator.can_assign_vehicle(driver):
            raise AssignmentError(
                f"Cannot assign a vehicle while driver {driver.id} is {driver.status} "
                "or their vehicle is In Transit/Pending",
                entity_id=driver.id,
            )
        available_ids = {candidate.id for candidate in self._evaluator.available_vehicles()}
        if truck.id not in available_ids and truck.id != driver.assigned_vehicle:
            raise AssignmentError(f"Truck {truck.id} is not available", entity_id=truck.id)

        previous_id = driver.assigned_vehicle
        if previous_id and previous_id != truck.id:
            previous = self._store.get_truck(previous_id)
            if previous is not None:
                self._store.update_truck(
                    previous.model_copy(update={"driver": UNASSIGNED, "status": TruckStatus.AVAILABLE})
                )

        updated_driver = driver.model_copy(update={"assigned_vehicle": truck.id, "status": DriverStatus.ASSIGNED})
        self._store.update_driver(updated_driver)
        self._store.update_truck(truck.model_copy(update={"driver": driver.name, "status": TruckStatus.ASSIGNED}))
        _logger.debug("Assigned truck %s to driver %s", truck.id, driver.id)
        return updated_driver

    def unassign_vehicle(self, driver_id: str) -> Driver:
        """Detach the driver's truck.

        Each side keeps its status while still referenced by an active trip,
        otherwise it becomes available.
        """
        driver = self._require_driver(driver_id)
        removed_id = driver.assigned_vehicle
        if not removed_id:
            return driver
        if not self._evaluator.can_unassign_vehicle(driver):
            raise AssignmentError(
                f"Cannot unassign truck {removed_id} while it is In Transit/Pending or the driver is pending",
                entity_id=driver.id,
            )

        updated_driver = driver
        for candidate in self._store.drivers:
            if candidate.assigned_vehicle != removed_id:
                continue
            status = (
                candidate.status
                if self._evaluator.is_entity_active_in_trips(candidate.id, "driver")
                else DriverStatus.AVAILABLE
            )
            released = candidate.model_copy(update={"assigned_vehicle": None, "status": status})
            self._store.update_driver(released)
            if candidate.id == driver.id:
                updated_driver = released

        truck = self._store.get_truck(removed_id)
        if truck is not None:
            status = truck.status if self._evaluator.is_entity_active_in_trips(truck.id, "truck") else TruckStatus.AVAILABLE
            self._store.update_truck(truck.model_copy(update={"driver": UNASSIGNED, "status": status}))
        return updated_driver

    # ------------------------------------------------------------------
    # Backend sync
    # ------------------------------------------------------------------

    async def sync_from_api(self, client: FleetApiClient) -> None:
        """Replace the mirrored collections with the backend's current rows."""
        trucks = await client.fetch_trucks()
        drivers = await client.fetch_drivers()
        trips = await client.fetch_trips()
        self._store.replace_all(trucks=trucks, drivers=drivers, trips=trips)
        _logger.info("Synced %d trucks, %d drivers, %d trips", len(trucks), len(drivers), len(trips))
