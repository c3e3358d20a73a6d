"""Internal constants shared across the library."""

UNASSIGNED = "Unassigned"

# Trip statuses after which a trip no longer references its truck/driver.
TERMINAL_TRIP_STATUSES: frozenset[str] = frozenset({"completed", "cancelled"})

# ------------------------------------------------------------------
# Storage keys
# ------------------------------------------------------------------

TRUCKS_KEY = "trucks"
DRIVERS_KEY = "drivers"
TRIPS_KEY = "trips"
NOTIFICATIONS_KEY = "notifications"

FUEL_ALERT_PREFIX = "fuel-alert-"
MAINTENANCE_ALERT_PREFIX = "maint-alert-"

# ------------------------------------------------------------------
# Alerting defaults
# ------------------------------------------------------------------

DEFAULT_FUEL_THRESHOLD = 20
DEFAULT_MAINTENANCE_DAYS = 90
DEFAULT_FUEL_COOLDOWN_MS = 3_600_000
DEFAULT_MAINTENANCE_COOLDOWN_MS = 86_400_000
DEFAULT_SWEEP_INTERVAL_S = 300.0
DEFAULT_INITIAL_DELAY_S = 10.0

MS_PER_DAY = 86_400_000
