from __future__ import annotations

from pathlib import Path

import pytest

from fleetwatch.config import FleetConfig
from fleetwatch.exceptions import FleetConfigError


def test_defaults_match_alerting_windows() -> None:
    config = FleetConfig()

    assert config.fuel_threshold == 20
    assert config.maintenance_days == 90
    assert config.fuel_cooldown_ms == 3_600_000
    assert config.maintenance_cooldown_ms == 86_400_000
    assert config.sweep_interval == 300.0
    assert config.initial_delay == 10.0
    assert config.storage_dir is None


def test_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("FLEET_STORAGE_DIR", str(tmp_path))
    monkeypatch.setenv("FLEET_API_URL", "http://fleet.local:8000/")
    monkeypatch.setenv("FLEET_FUEL_THRESHOLD", "25")
    monkeypatch.setenv("FLEET_SWEEP_INTERVAL", "60")

    config = FleetConfig.from_env(initial_delay=1.0)

    assert config.storage_dir == tmp_path
    assert config.api_base_url == "http://fleet.local:8000"
    assert config.fuel_threshold == 25
    assert config.sweep_interval == 60.0
    assert config.initial_delay == 1.0


def test_overrides_win_over_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FLEET_FUEL_THRESHOLD", "not-a-number")

    assert FleetConfig.from_env(fuel_threshold=10).fuel_threshold == 10
    with pytest.raises(FleetConfigError):
        FleetConfig.from_env()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"fuel_threshold": 101},
        {"maintenance_days": -1},
        {"fuel_cooldown_ms": -5},
        {"sweep_interval": 0},
        {"initial_delay": -0.5},
    ],
)
def test_invalid_values_rejected(kwargs: dict[str, float]) -> None:
    with pytest.raises(FleetConfigError):
        FleetConfig(**kwargs)  # type: ignore[arg-type]
