"""Threshold alerting: rules, cooldowns and the scheduling engine."""

from fleetwatch.alerts.cooldown import CooldownTracker
from fleetwatch.alerts.engine import AlertEngine
from fleetwatch.alerts.rules import AlertRule, LowFuelRule, MaintenanceOverdueRule, RuleMatch, days_since

__all__ = [
    "AlertEngine",
    "AlertRule",
    "CooldownTracker",
    "LowFuelRule",
    "MaintenanceOverdueRule",
    "RuleMatch",
    "days_since",
]
