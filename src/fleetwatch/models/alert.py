"""Alert events produced by the rule engine."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fleetwatch.models._enums import AlertKind


class AlertEvent(BaseModel):
    """A single emission of an alert rule for one truck.

    For a given ``cooldown_key`` at most one event is emitted per cooldown
    window.
    """

    model_config = ConfigDict(frozen=True)

    kind: AlertKind
    subject_id: str = Field(..., description="Id of the truck the alert is about")
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    cooldown_key: str
    title: str
    message: str

    @field_validator("generated_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def url(self) -> str:
        """Deep link to the subject truck."""
        return f"/trucks/{self.subject_id}"
