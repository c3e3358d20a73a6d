"""User-visible notification model."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pydantic import Field

from fleetwatch.models._base import FleetBaseModel
from fleetwatch.models._enums import NotificationType


class Notification(FleetBaseModel):
    """An entry in the notification center."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    title: str = ""
    message: str = ""
    type: NotificationType = NotificationType.INFO
    url: str | None = None
    read: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
