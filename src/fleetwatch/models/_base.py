"""Base model and date helpers for fleet entities.

Every entity model inherits from :class:`FleetBaseModel` which provides:

* ``alias_generator=to_camel`` so the camelCase browser-storage format
  (``plateNumber``) and the snake_case backend format (``plate_number``)
  both validate into the same snake_case fields.
* A ``model_validator(mode="before")`` that strips placeholder values
  (``""``, ``"--"``, NaN) so the field default is used.
* ``to_storage()`` dumping the camelCase form written to storage.
"""

from __future__ import annotations

import math
from datetime import UTC, date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

# Placeholder strings meaning "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan", "null"})


def parse_entity_date(value: Any) -> datetime | None:
    """Parse a stored date/datetime value into an aware UTC datetime.

    Accepts ``date``/``datetime`` objects, ISO-8601 strings (``2026-01-31``,
    ``2026-01-31T08:00:00Z``) and epoch milliseconds. Returns ``None`` for
    anything absent or unparsable instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text or text in _SENTINELS:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class FleetBaseModel(BaseModel):
    """Base for fleet entity models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _clean_placeholders(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    def to_storage(self) -> dict[str, Any]:
        """Dump the camelCase representation written to storage."""
        return self.model_dump(mode="json", by_alias=True)
