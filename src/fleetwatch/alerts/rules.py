"""Threshold alert rules evaluated per truck.

Rules are pure: they inspect a truck at a given instant and either return
the alert text or ``None``. Cooldown bookkeeping lives in
:mod:`fleetwatch.alerts.cooldown`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from fleetwatch._constants import (
    DEFAULT_FUEL_COOLDOWN_MS,
    DEFAULT_FUEL_THRESHOLD,
    DEFAULT_MAINTENANCE_COOLDOWN_MS,
    DEFAULT_MAINTENANCE_DAYS,
    FUEL_ALERT_PREFIX,
    MAINTENANCE_ALERT_PREFIX,
    MS_PER_DAY,
)
from fleetwatch.models import AlertKind, Truck, TruckStatus


@dataclass(frozen=True, slots=True)
class RuleMatch:
    title: str
    message: str


class AlertRule(Protocol):
    kind: AlertKind
    cooldown_ms: int

    def cooldown_key(self, truck_id: str) -> str: ...

    def check(self, truck: Truck, now: datetime) -> RuleMatch | None: ...


def days_since(then: datetime, now: datetime) -> int:
    """Whole days elapsed between *then* and *now* (floored)."""
    elapsed_ms = (now - then).total_seconds() * 1000
    return int(elapsed_ms // MS_PER_DAY)


@dataclass(frozen=True, slots=True)
class LowFuelRule:
    """Fuel at or below the threshold on a truck not in maintenance.

    An unknown fuel level never fires.
    """

    threshold: int = DEFAULT_FUEL_THRESHOLD
    cooldown_ms: int = DEFAULT_FUEL_COOLDOWN_MS
    kind: AlertKind = AlertKind.FUEL

    def cooldown_key(self, truck_id: str) -> str:
        return f"{FUEL_ALERT_PREFIX}{truck_id}"

    def check(self, truck: Truck, now: datetime) -> RuleMatch | None:
        if truck.fuel_level is None or truck.status == TruckStatus.MAINTENANCE:
            return None
        if truck.fuel_level > self.threshold:
            return None
        return RuleMatch(
            title="Low Fuel Alert",
            message=f"{truck.name} ({truck.plate_number}) fuel level is at {truck.fuel_level}%",
        )


@dataclass(frozen=True, slots=True)
class MaintenanceOverdueRule:
    """Last maintenance too long ago on a truck not in maintenance.

    An absent or unparsable ``last_maintenance`` never fires.
    """

    overdue_days: int = DEFAULT_MAINTENANCE_DAYS
    cooldown_ms: int = DEFAULT_MAINTENANCE_COOLDOWN_MS
    kind: AlertKind = AlertKind.MAINTENANCE

    def cooldown_key(self, truck_id: str) -> str:
        return f"{MAINTENANCE_ALERT_PREFIX}{truck_id}"

    def check(self, truck: Truck, now: datetime) -> RuleMatch | None:
        if truck.status == TruckStatus.MAINTENANCE:
            return None
        last = truck.last_maintenance_at
        if last is None:
            return None
        elapsed = days_since(last, now)
        if elapsed < self.overdue_days:
            return None
        return RuleMatch(
            title="Vehicle Maintenance Due",
            message=f"{truck.name} is due for maintenance (last serviced {elapsed} days ago)",
        )
