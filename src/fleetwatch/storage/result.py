"""Result-style returns for storage access.

Storage never raises for missing or corrupt data. Reads and writes return
either :class:`Loaded` or :class:`Unavailable` and the caller decides the
fallback explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Loaded:
    """Successful storage access carrying the decoded value."""

    value: Any

    @property
    def ok(self) -> bool:
        return True

    def value_or(self, default: T) -> Any | T:
        return self.value


@dataclass(frozen=True, slots=True)
class Unavailable:
    """Storage access that produced no usable value."""

    reason: str

    @property
    def ok(self) -> bool:
        return False

    def value_or(self, default: T) -> T:
        return default


StorageResult = Loaded | Unavailable
