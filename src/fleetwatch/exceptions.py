"""Custom exception hierarchy for fleetwatch."""

from __future__ import annotations


class FleetError(Exception):
    """Base exception for all fleetwatch errors."""


class FleetConfigError(FleetError):
    """Invalid or missing configuration."""


class FleetTransportError(FleetError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class FleetStoreError(FleetError):
    """A guarded entity-store operation was refused."""

    def __init__(self, message: str, *, entity_id: str = "") -> None:
        self.entity_id = entity_id
        super().__init__(message)


class EntityNotFoundError(FleetStoreError):
    """No entity with the requested id exists in the store."""


class EntityInUseError(FleetStoreError):
    """Deletion refused because the entity is referenced by an active trip.

    ``reason`` carries the user-facing explanation, e.g.
    ``"Cannot delete: truck is scheduled"``.
    """

    def __init__(self, reason: str, *, entity_id: str = "") -> None:
        self.reason = reason
        super().__init__(reason, entity_id=entity_id)


class AssignmentError(FleetStoreError):
    """Driver/vehicle assignment refused by the consistency rules."""
