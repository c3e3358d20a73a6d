"""Data models for fleet entities, alerts and notifications."""

from fleetwatch.models._base import FleetBaseModel, parse_entity_date
from fleetwatch.models._enums import AlertKind, DriverStatus, NotificationType, TruckStatus
from fleetwatch.models.alert import AlertEvent
from fleetwatch.models.driver import Driver
from fleetwatch.models.notification import Notification
from fleetwatch.models.trip import Trip
from fleetwatch.models.truck import Truck

__all__ = [
    "AlertEvent",
    "AlertKind",
    "Driver",
    "DriverStatus",
    "FleetBaseModel",
    "Notification",
    "NotificationType",
    "Trip",
    "Truck",
    "TruckStatus",
    "parse_entity_date",
]
