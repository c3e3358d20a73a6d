"""Trip entity model."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from fleetwatch._constants import TERMINAL_TRIP_STATUSES
from fleetwatch.models._base import FleetBaseModel


class Trip(FleetBaseModel):
    """A scheduled, running or finished trip.

    Trips are the only source of "active reference" for trucks and drivers.
    ``driver`` is a legacy reference some stored trips carry instead of
    ``driver_id``.
    """

    id: str
    truck_id: str | None = None
    driver_id: str | None = None
    driver: str | None = None
    origin: str | None = None
    destination: str | None = None
    status: str = "pending"

    @field_validator("id", "truck_id", "driver_id", "driver", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> str | None:
        if value is None:
            return None
        return str(value).strip()

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: Any) -> str:
        return str(value).strip().lower()

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TRIP_STATUSES
