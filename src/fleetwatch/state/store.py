"""In-memory entity store mirroring trucks, drivers and trips.

This is the only component allowed to mutate the entity collections.
Mutations are synchronous and immediately visible to subsequent reads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from fleetwatch._constants import DRIVERS_KEY, TRIPS_KEY, TRUCKS_KEY
from fleetwatch.models import Driver, Trip, Truck
from fleetwatch.models._base import FleetBaseModel
from fleetwatch.state.events import Collection, MutationEvent, MutationKind
from fleetwatch.storage import KeyValueStorage, Loaded

_logger = logging.getLogger(__name__)

TEntity = TypeVar("TEntity", bound=FleetBaseModel)

MutationListener = Callable[[MutationEvent], None]

_STORAGE_KEYS: dict[Collection, str] = {
    Collection.TRUCKS: TRUCKS_KEY,
    Collection.DRIVERS: DRIVERS_KEY,
    Collection.TRIPS: TRIPS_KEY,
}


def parse_rows(model: type[TEntity], rows: Iterable[Any], *, source: str) -> list[TEntity]:
    """Validate raw rows into models, skipping malformed ones."""
    parsed: list[TEntity] = []
    for index, row in enumerate(rows):
        if isinstance(row, FleetBaseModel):
            parsed.append(row)  # type: ignore[arg-type]
            continue
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as exc:
            _logger.warning(
                "Skipping malformed %s row %d from %s: %s",
                model.__name__,
                index,
                source,
                exc.errors(include_url=False),
            )
    return parsed


class _EntityCollection(Generic[TEntity]):
    """Ordered id-keyed list of one entity type."""

    def __init__(self, items: Iterable[TEntity] = ()) -> None:
        self._items: list[TEntity] = list(items)

    def __iter__(self) -> Iterator[TEntity]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def snapshot(self) -> tuple[TEntity, ...]:
        return tuple(self._items)

    def get(self, entity_id: str) -> TEntity | None:
        for item in self._items:
            if item.id == entity_id:  # type: ignore[attr-defined]
                return item
        return None

    def prepend(self, item: TEntity) -> None:
        self._items.insert(0, item)

    def replace(self, item: TEntity) -> TEntity | None:
        for index, existing in enumerate(self._items):
            if existing.id == item.id:  # type: ignore[attr-defined]
                self._items[index] = item
                return existing
        return None

    def remove(self, entity_id: str) -> TEntity | None:
        for index, existing in enumerate(self._items):
            if existing.id == entity_id:  # type: ignore[attr-defined]
                return self._items.pop(index)
        return None

    def reset(self, items: Iterable[TEntity]) -> None:
        self._items = list(items)

    def dump(self) -> list[dict[str, Any]]:
        return [item.to_storage() for item in self._items]


class EntityStore:
    """In-memory mirror of the fleet collections.

    Every mutation is persisted to the durable *storage* (best-effort; a
    failed write is logged, never raised) and announced to subscribers.
    No validation of cross-entity invariants happens here.
    """

    def __init__(
        self,
        *,
        trucks: Iterable[Truck] = (),
        drivers: Iterable[Driver] = (),
        trips: Iterable[Trip] = (),
        storage: KeyValueStorage | None = None,
    ) -> None:
        self._storage = storage
        self._collections: dict[Collection, _EntityCollection[Any]] = {
            Collection.TRUCKS: _EntityCollection(trucks),
            Collection.DRIVERS: _EntityCollection(drivers),
            Collection.TRIPS: _EntityCollection(trips),
        }
        self._listeners: list[MutationListener] = []

    @classmethod
    def load(
        cls,
        storage: KeyValueStorage,
        *,
        seed: dict[Collection, Sequence[Any]] | None = None,
    ) -> EntityStore:
        """Build a store from *storage*, falling back to *seed* per collection.

        A collection that is missing, unreadable or not a list falls back to
        its seed (empty when no seed is given).
        """
        seed = seed or {}
        loaded: dict[Collection, list[Any]] = {}
        models: dict[Collection, type[FleetBaseModel]] = {
            Collection.TRUCKS: Truck,
            Collection.DRIVERS: Driver,
            Collection.TRIPS: Trip,
        }
        for collection, key in _STORAGE_KEYS.items():
            result = storage.read(key)
            rows: Any = seed.get(collection, ())
            if not isinstance(result, Loaded):
                _logger.debug("Using seed for %s: %s", key, result.reason)
            elif not isinstance(result.value, list):
                _logger.warning("Stored %s is not a list, using seed", key)
            else:
                rows = result.value
            loaded[collection] = parse_rows(models[collection], rows, source=key)

        return cls(
            trucks=loaded[Collection.TRUCKS],
            drivers=loaded[Collection.DRIVERS],
            trips=loaded[Collection.TRIPS],
            storage=storage,
        )

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: MutationListener) -> Callable[[], None]:
        """Register *listener* for mutation events; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, event: MutationEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                _logger.exception("Mutation listener failed for %s %s", event.collection, event.kind)

    def _persist(self, collection: Collection) -> None:
        if self._storage is None:
            return
        key = _STORAGE_KEYS[collection]
        result = self._storage.write(key, self._collections[collection].dump())
        if not isinstance(result, Loaded):
            _logger.warning("Could not persist %s: %s", key, result.reason)

    def _mutated(self, event: MutationEvent) -> None:
        self._persist(event.collection)
        self._notify(event)

    # ------------------------------------------------------------------
    # Generic mutations
    # ------------------------------------------------------------------

    def _add(self, collection: Collection, entity: Any) -> None:
        self._collections[collection].prepend(entity)
        self._mutated(MutationEvent(collection=collection, kind=MutationKind.ADDED, entity_id=entity.id, current=entity))

    def _update(self, collection: Collection, entity: Any) -> bool:
        previous = self._collections[collection].replace(entity)
        if previous is None:
            _logger.debug("Ignoring update for unknown %s id %s", collection, entity.id)
            return False
        self._mutated(
            MutationEvent(
                collection=collection,
                kind=MutationKind.UPDATED,
                entity_id=entity.id,
                previous=previous,
                current=entity,
            )
        )
        return True

    def _delete(self, collection: Collection, entity_id: str) -> bool:
        previous = self._collections[collection].remove(entity_id)
        if previous is None:
            return False
        self._mutated(
            MutationEvent(collection=collection, kind=MutationKind.DELETED, entity_id=entity_id, previous=previous)
        )
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def trucks(self) -> tuple[Truck, ...]:
        return self._collections[Collection.TRUCKS].snapshot()

    @property
    def drivers(self) -> tuple[Driver, ...]:
        return self._collections[Collection.DRIVERS].snapshot()

    @property
    def trips(self) -> tuple[Trip, ...]:
        return self._collections[Collection.TRIPS].snapshot()

    def get_truck(self, truck_id: str) -> Truck | None:
        return self._collections[Collection.TRUCKS].get(truck_id)

    def get_driver(self, driver_id: str) -> Driver | None:
        return self._collections[Collection.DRIVERS].get(driver_id)

    def get_trip(self, trip_id: str) -> Trip | None:
        return self._collections[Collection.TRIPS].get(trip_id)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_truck(self, truck: Truck) -> None:
        self._add(Collection.TRUCKS, truck)

    def update_truck(self, truck: Truck) -> bool:
        return self._update(Collection.TRUCKS, truck)

    def delete_truck(self, truck_id: str) -> bool:
        return self._delete(Collection.TRUCKS, truck_id)

    def add_driver(self, driver: Driver) -> None:
        self._add(Collection.DRIVERS, driver)

    def update_driver(self, driver: Driver) -> bool:
        return self._update(Collection.DRIVERS, driver)

    def delete_driver(self, driver_id: str) -> bool:
        return self._delete(Collection.DRIVERS, driver_id)

    def add_trip(self, trip: Trip) -> None:
        self._add(Collection.TRIPS, trip)

    def update_trip(self, trip: Trip) -> bool:
        return self._update(Collection.TRIPS, trip)

    def delete_trip(self, trip_id: str) -> bool:
        return self._delete(Collection.TRIPS, trip_id)

    def replace_all(
        self,
        *,
        trucks: Iterable[Truck] | None = None,
        drivers: Iterable[Driver] | None = None,
        trips: Iterable[Trip] | None = None,
    ) -> None:
        """Bulk-replace collections, e.g. after a sync with the CRUD backend.

        Collections passed as ``None`` are left untouched.
        """
        for collection, items in (
            (Collection.TRUCKS, trucks),
            (Collection.DRIVERS, drivers),
            (Collection.TRIPS, trips),
        ):
            if items is None:
                continue
            self._collections[collection].reset(items)
            self._mutated(MutationEvent(collection=collection, kind=MutationKind.REPLACED))
