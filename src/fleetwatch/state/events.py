"""Entity-store mutation events.

Every add/update/delete/replace on the store is announced to subscribers
as a :class:`MutationEvent`.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from fleetwatch.models import Driver, Trip, Truck


class Collection(StrEnum):
    TRUCKS = "trucks"
    DRIVERS = "drivers"
    TRIPS = "trips"


class MutationKind(StrEnum):
    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"
    REPLACED = "replaced"


class MutationEvent(BaseModel):
    """A single store mutation.

    ``previous`` is ``None`` for additions, ``current`` is ``None`` for
    deletions. Bulk replacement carries neither and an empty ``entity_id``.
    """

    model_config = ConfigDict(frozen=True)

    collection: Collection
    kind: MutationKind
    entity_id: str = ""
    previous: Truck | Driver | Trip | None = None
    current: Truck | Driver | Trip | None = None

    @property
    def truck_changed_alert_fields(self) -> bool:
        """Whether a truck update changed its fuel level or status."""
        if self.collection != Collection.TRUCKS or self.kind != MutationKind.UPDATED:
            return False
        if not isinstance(self.previous, Truck) or not isinstance(self.current, Truck):
            return False
        return (
            self.previous.fuel_level != self.current.fuel_level
            or self.previous.status != self.current.status
        )
