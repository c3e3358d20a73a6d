"""Library configuration for fleetwatch."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from fleetwatch._constants import (
    DEFAULT_FUEL_COOLDOWN_MS,
    DEFAULT_FUEL_THRESHOLD,
    DEFAULT_INITIAL_DELAY_S,
    DEFAULT_MAINTENANCE_COOLDOWN_MS,
    DEFAULT_MAINTENANCE_DAYS,
    DEFAULT_SWEEP_INTERVAL_S,
)
from fleetwatch.exceptions import FleetConfigError


def _env_number(env: Mapping[str, str], key: str, cast: type) -> Any:
    raw = env.get(key)
    if raw is None:
        return None
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise FleetConfigError(f"{key} must be a {cast.__name__}, got {raw!r}") from exc


@dataclasses.dataclass(frozen=True)
class FleetConfig:
    """Engine and storage configuration.

    Parameters
    ----------
    storage_dir : Path or None
        Directory holding the durable JSON collections. ``None`` keeps
        everything in memory.
    api_base_url : str
        Base URL of the fleet CRUD backend.
    fuel_threshold : int
        Fuel level (percent) at or below which the low-fuel rule fires.
    maintenance_days : int
        Whole days since last maintenance at or above which the
        maintenance-overdue rule fires.
    fuel_cooldown_ms : int
        Minimum milliseconds between two low-fuel alerts for one truck.
    maintenance_cooldown_ms : int
        Minimum milliseconds between two maintenance alerts for one truck.
    sweep_interval : float
        Seconds between periodic sweeps over every truck.
    initial_delay : float
        Seconds after ``start()`` before the deferred first sweep.
    """

    storage_dir: Path | None = None
    api_base_url: str = "http://localhost:8000"
    fuel_threshold: int = DEFAULT_FUEL_THRESHOLD
    maintenance_days: int = DEFAULT_MAINTENANCE_DAYS
    fuel_cooldown_ms: int = DEFAULT_FUEL_COOLDOWN_MS
    maintenance_cooldown_ms: int = DEFAULT_MAINTENANCE_COOLDOWN_MS
    sweep_interval: float = DEFAULT_SWEEP_INTERVAL_S
    initial_delay: float = DEFAULT_INITIAL_DELAY_S

    def __post_init__(self) -> None:
        if not 0 <= self.fuel_threshold <= 100:
            raise FleetConfigError(f"fuel_threshold must be within 0-100, got {self.fuel_threshold}")
        if self.maintenance_days < 0:
            raise FleetConfigError(f"maintenance_days must be non-negative, got {self.maintenance_days}")
        if self.fuel_cooldown_ms < 0 or self.maintenance_cooldown_ms < 0:
            raise FleetConfigError("cooldown windows must be non-negative")
        if self.sweep_interval <= 0:
            raise FleetConfigError(f"sweep_interval must be positive, got {self.sweep_interval}")
        if self.initial_delay < 0:
            raise FleetConfigError(f"initial_delay must be non-negative, got {self.initial_delay}")

    @classmethod
    def from_env(cls, **overrides: Any) -> FleetConfig:
        """Create configuration from ``FLEET_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        storage_dir = env.get("FLEET_STORAGE_DIR")
        if storage_dir:
            config_kwargs["storage_dir"] = Path(storage_dir).expanduser()

        base_url = env.get("FLEET_API_URL")
        if base_url:
            config_kwargs["api_base_url"] = base_url.rstrip("/")

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "FLEET_FUEL_THRESHOLD": ("fuel_threshold", int),
            "FLEET_MAINTENANCE_DAYS": ("maintenance_days", int),
            "FLEET_FUEL_COOLDOWN_MS": ("fuel_cooldown_ms", int),
            "FLEET_MAINTENANCE_COOLDOWN_MS": ("maintenance_cooldown_ms", int),
            "FLEET_SWEEP_INTERVAL": ("sweep_interval", float),
            "FLEET_INITIAL_DELAY": ("initial_delay", float),
        }
        for env_key, (field_name, cast) in _ENV_NUMERIC_MAP.items():
            if field_name in overrides:
                continue
            value = _env_number(env, env_key, cast)
            if value is not None:
                config_kwargs[field_name] = value

        config_kwargs.update(overrides)
        return cls(**config_kwargs)
