"""Truck entity model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from fleetwatch._constants import UNASSIGNED
from fleetwatch._normalize import clamp_percent, safe_float
from fleetwatch.models._base import FleetBaseModel, parse_entity_date
from fleetwatch.models._enums import TruckStatus


class Truck(FleetBaseModel):
    """A fleet vehicle as mirrored from the CRUD backend."""

    id: str
    name: str = ""
    plate_number: str = ""
    model: str = ""
    driver: str = UNASSIGNED
    """Display name of the assigned driver, or ``"Unassigned"``."""

    fuel_level: int | None = None
    """Fuel level in percent within ``[0, 100]``; ``None`` when unknown."""

    load_capacity: float | None = None
    fuel_type: str | None = None
    status: TruckStatus = TruckStatus.AVAILABLE
    last_maintenance: str | None = Field(default=None)
    """Raw last-maintenance date as stored; see :attr:`last_maintenance_at`."""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        text = str(value).strip()
        if not text:
            raise ValueError("truck id must be non-empty")
        return text

    @field_validator("fuel_level", mode="before")
    @classmethod
    def _clamp_fuel(cls, value: Any) -> int | None:
        return clamp_percent(value)

    @field_validator("load_capacity", mode="before")
    @classmethod
    def _coerce_capacity(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("last_maintenance", mode="before")
    @classmethod
    def _keep_raw_date(cls, value: Any) -> str | None:
        # Kept verbatim; malformed dates are handled by the alert rules.
        if value is None:
            return None
        if isinstance(value, datetime):
            return value.isoformat()
        return str(value)

    @property
    def last_maintenance_at(self) -> datetime | None:
        """Parsed last-maintenance timestamp, or ``None`` if absent/malformed."""
        return parse_entity_date(self.last_maintenance)

    @property
    def has_driver(self) -> bool:
        return bool(self.driver) and self.driver != UNASSIGNED
