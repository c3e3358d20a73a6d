"""Status enums for fleet entities."""

from __future__ import annotations

from enum import StrEnum


class FleetStatusEnum(StrEnum):
    """Base for status enums.

    Lookup is forgiving about case, spaces and underscores
    (``"In Transit"`` -> ``intransit``, ``"off_duty"`` -> ``off-duty``).
    Values with no mapped member resolve to :meth:`_fallback` instead of
    raising ``ValueError``.
    """

    @classmethod
    def _fallback(cls) -> FleetStatusEnum:
        return next(iter(cls))

    @classmethod
    def _missing_(cls, value: object) -> FleetStatusEnum:
        if isinstance(value, str):
            text = value.strip().lower()
            for candidate in (text, text.replace(" ", ""), text.replace("_", "-"), text.replace(" ", "-")):
                for member in cls:
                    if member.value == candidate:
                        return member
        return cls._fallback()


class TruckStatus(FleetStatusEnum):
    AVAILABLE = "available"
    ASSIGNED = "assigned"
    INTRANSIT = "intransit"
    PENDING = "pending"
    MAINTENANCE = "maintenance"

    @classmethod
    def _fallback(cls) -> TruckStatus:
        return cls.PENDING


class DriverStatus(FleetStatusEnum):
    AVAILABLE = "available"
    DRIVING = "driving"
    ASSIGNED = "assigned"
    OFF_DUTY = "off-duty"
    INACTIVE = "inactive"
    PENDING = "pending"

    @classmethod
    def _fallback(cls) -> DriverStatus:
        return cls.INACTIVE


class NotificationType(FleetStatusEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

    @classmethod
    def _fallback(cls) -> NotificationType:
        return cls.INFO


class AlertKind(StrEnum):
    FUEL = "fuel"
    MAINTENANCE = "maintenance"
