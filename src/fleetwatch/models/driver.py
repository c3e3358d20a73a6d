"""Driver entity model."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator

from fleetwatch.models._base import FleetBaseModel
from fleetwatch.models._enums import DriverStatus


class Driver(FleetBaseModel):
    """A driver record.

    ``assigned_vehicle`` is a soft reference to a :class:`Truck` id; it may
    dangle when the truck was deleted.
    """

    id: str
    name: str = ""
    email: str | None = None
    phone: str | None = None
    license_number: str | None = None
    assigned_vehicle: str | None = None
    status: DriverStatus = DriverStatus.AVAILABLE

    @field_validator("id", "assigned_vehicle", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> str | None:
        if value is None:
            return None
        return str(value).strip()
