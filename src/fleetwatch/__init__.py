"""fleetwatch - Fleet alerting and cross-entity consistency engine."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("fleetwatch")
except PackageNotFoundError:
    __version__ = "0+local"

from fleetwatch.alerts import AlertEngine, CooldownTracker, LowFuelRule, MaintenanceOverdueRule
from fleetwatch.client import FleetApiClient
from fleetwatch.config import FleetConfig
from fleetwatch.consistency import ConsistencyEvaluator, DeletionCheck
from fleetwatch.exceptions import (
    AssignmentError,
    EntityInUseError,
    EntityNotFoundError,
    FleetConfigError,
    FleetError,
    FleetStoreError,
    FleetTransportError,
)
from fleetwatch.fleet import Fleet
from fleetwatch.models import (
    AlertEvent,
    AlertKind,
    Driver,
    DriverStatus,
    Notification,
    NotificationType,
    Trip,
    Truck,
    TruckStatus,
)
from fleetwatch.notifications import NotificationSink
from fleetwatch.state.events import Collection, MutationEvent, MutationKind
from fleetwatch.state.store import EntityStore
from fleetwatch.storage import JsonFileStorage, Loaded, MemoryStorage, Unavailable

__all__ = [
    "__version__",
    "AlertEngine",
    "AlertEvent",
    "AlertKind",
    "AssignmentError",
    "Collection",
    "ConsistencyEvaluator",
    "CooldownTracker",
    "DeletionCheck",
    "Driver",
    "DriverStatus",
    "EntityInUseError",
    "EntityNotFoundError",
    "EntityStore",
    "Fleet",
    "FleetApiClient",
    "FleetConfig",
    "FleetConfigError",
    "FleetError",
    "FleetStoreError",
    "FleetTransportError",
    "JsonFileStorage",
    "Loaded",
    "LowFuelRule",
    "MaintenanceOverdueRule",
    "MemoryStorage",
    "MutationEvent",
    "MutationKind",
    "Notification",
    "NotificationSink",
    "NotificationType",
    "Trip",
    "Truck",
    "TruckStatus",
    "Unavailable",
]
