from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

import pytest
from factories import T0, FakeClock, make_truck

from fleetwatch.alerts.engine import AlertEngine
from fleetwatch.alerts.rules import LowFuelRule, RuleMatch
from fleetwatch.config import FleetConfig
from fleetwatch.exceptions import FleetError
from fleetwatch.models import AlertEvent, AlertKind, NotificationType, Truck
from fleetwatch.notifications import NotificationSink
from fleetwatch.state.store import EntityStore
from fleetwatch.storage import Loaded, MemoryStorage


def _days_ago(days: int) -> str:
    return (T0 - timedelta(days=days)).date().isoformat()


def _engine(
    store: EntityStore,
    clock: FakeClock,
    session: MemoryStorage | None = None,
    **config: float,
) -> tuple[AlertEngine, NotificationSink]:
    sink = NotificationSink(clock=clock)
    engine = AlertEngine(
        store,
        sink,
        config=FleetConfig(**config),  # type: ignore[arg-type]
        session_storage=session,
        clock=clock,
    )
    return engine, sink


class _ExplodingRule:
    kind = AlertKind.MAINTENANCE
    cooldown_ms = 0

    def cooldown_key(self, truck_id: str) -> str:
        return f"boom-{truck_id}"

    def check(self, truck: Truck, now: datetime) -> RuleMatch | None:
        raise RuntimeError("rule bug")


def test_sweep_scenario_with_independent_cooldowns(clock: FakeClock) -> None:
    store = EntityStore(trucks=[make_truck("TR1", fuelLevel=15, status="available", lastMaintenance=_days_ago(200))])
    engine, sink = _engine(store, clock)

    first = engine.run_sweep()
    assert sorted(event.kind for event in first) == [AlertKind.FUEL, AlertKind.MAINTENANCE]
    assert {event.cooldown_key for event in first} == {"fuel-alert-TR1", "maint-alert-TR1"}

    clock.advance(minutes=30)
    assert engine.run_sweep() == []
    clock.advance(minutes=30)
    assert engine.run_sweep() == []

    clock.advance(seconds=1)
    again = engine.run_sweep()
    assert [event.kind for event in again] == [AlertKind.FUEL]
    assert len(sink) == 3


def test_fuel_alert_at_most_once_per_hour(clock: FakeClock) -> None:
    store = EntityStore(trucks=[make_truck("TR1", fuelLevel=5)])
    engine, _ = _engine(store, clock)

    emitted: list[AlertEvent] = []
    for _ in range(13):
        emitted.extend(engine.run_sweep())
        clock.advance(minutes=5)

    assert len(emitted) == 1

    clock.advance(minutes=1)
    assert len(engine.run_sweep()) == 1


def test_maintenance_alert_once_per_day(clock: FakeClock) -> None:
    store = EntityStore(trucks=[make_truck("TR1", lastMaintenance=_days_ago(91))])
    engine, _ = _engine(store, clock)

    assert [event.kind for event in engine.run_sweep()] == [AlertKind.MAINTENANCE]
    clock.advance(hours=24)
    assert engine.run_sweep() == []
    clock.advance(seconds=1)
    assert [event.kind for event in engine.run_sweep()] == [AlertKind.MAINTENANCE]


def test_recent_maintenance_does_not_alert(clock: FakeClock) -> None:
    store = EntityStore(trucks=[make_truck("TR1", lastMaintenance=_days_ago(89))])
    engine, sink = _engine(store, clock)

    assert engine.run_sweep() == []
    assert len(sink) == 0


def test_alert_becomes_notification(clock: FakeClock) -> None:
    store = EntityStore(trucks=[make_truck("TR1", name="Big Blue", plateNumber="GP 1", fuelLevel=9)])
    engine, sink = _engine(store, clock)

    engine.run_sweep()

    [notification] = sink.notifications
    assert notification.title == "Low Fuel Alert"
    assert notification.message == "Big Blue (GP 1) fuel level is at 9%"
    assert notification.type == NotificationType.WARNING
    assert notification.url == "/trucks/TR1"
    assert notification.created_at == T0


def test_cooldowns_survive_engine_restart_in_same_session(clock: FakeClock, session: MemoryStorage) -> None:
    store = EntityStore(trucks=[make_truck("TR1", fuelLevel=5)])
    first, _ = _engine(store, clock, session)
    assert len(first.run_sweep()) == 1

    stored = session.read("fuel-alert-TR1")
    assert isinstance(stored, Loaded)
    assert stored.value == str(int(T0.timestamp() * 1000))

    clock.advance(minutes=10)
    second, sink = _engine(store, clock, session)
    assert second.run_sweep() == []

    fresh_session, _ = _engine(store, clock, MemoryStorage())
    assert len(fresh_session.run_sweep()) == 1
    assert len(sink) == 0


def test_failing_rule_does_not_block_other_rules_or_trucks(clock: FakeClock) -> None:
    store = EntityStore(trucks=[make_truck("TR1", fuelLevel=5), make_truck("TR2", fuelLevel=5)])
    engine, _ = _engine(store, clock)

    emitted = engine.evaluate_truck(store.trucks[0], rules=(_ExplodingRule(), LowFuelRule()))
    assert [event.subject_id for event in emitted] == ["TR1"]


def test_failing_callback_is_isolated(clock: FakeClock) -> None:
    store = EntityStore(trucks=[make_truck("TR1", fuelLevel=5, lastMaintenance=_days_ago(100))])
    engine, sink = _engine(store, clock)
    received: list[AlertEvent] = []

    def _boom(event: AlertEvent) -> None:
        raise RuntimeError("toast failed")

    engine.add_callback(_boom)
    engine.add_callback(received.append)

    assert len(engine.run_sweep()) == 2
    assert len(received) == 2
    assert len(sink) == 2


def test_malformed_maintenance_date_skips_only_that_rule(clock: FakeClock) -> None:
    store = EntityStore(
        trucks=[
            make_truck("TR1", fuelLevel=5, lastMaintenance="31/31/2025"),
            make_truck("TR2", lastMaintenance=_days_ago(120)),
        ]
    )
    engine, _ = _engine(store, clock)

    emitted = engine.run_sweep()
    assert sorted((event.subject_id, event.kind) for event in emitted) == [
        ("TR1", AlertKind.FUEL),
        ("TR2", AlertKind.MAINTENANCE),
    ]


def test_unparsable_fuel_level_never_alerts(clock: FakeClock) -> None:
    store = EntityStore(
        trucks=[
            Truck.model_validate({"id": "TR1", "name": "X", "fuelLevel": "unknown", "status": "available"}),
            make_truck("TR2", fuelLevel="--"),
        ]
    )
    engine, sink = _engine(store, clock)

    assert engine.run_sweep() == []
    assert len(sink) == 0


def test_start_requires_running_loop(clock: FakeClock) -> None:
    engine, _ = _engine(EntityStore(), clock)

    with pytest.raises(FleetError):
        engine.start()


@pytest.mark.asyncio
async def test_mutation_triggers_low_fuel_only_for_updated_truck(clock: FakeClock) -> None:
    store = EntityStore(
        trucks=[
            make_truck("TR1", fuelLevel=80, lastMaintenance=_days_ago(200)),
            make_truck("TR2", fuelLevel=5),
        ]
    )
    engine, sink = _engine(store, clock, initial_delay=60.0, sweep_interval=60.0)

    async with engine:
        store.update_truck(make_truck("TR1", fuelLevel=18, lastMaintenance=_days_ago(200)))
        assert [(n.title, n.url) for n in sink.notifications] == [("Low Fuel Alert", "/trucks/TR1")]

        # Same fuel and status: not re-evaluated.
        store.update_truck(make_truck("TR1", name="Renamed", fuelLevel=18, lastMaintenance=_days_ago(200)))
        # Status changed but still cooling down.
        store.update_truck(make_truck("TR1", fuelLevel=18, status="pending", lastMaintenance=_days_ago(200)))
        assert len(sink) == 1

    store.update_truck(make_truck("TR2", fuelLevel=4))
    assert len(sink) == 1


@pytest.mark.asyncio
async def test_deferred_and_periodic_sweeps_run() -> None:
    store = EntityStore(trucks=[make_truck("TR1", fuelLevel=5)])
    sink = NotificationSink()
    sweeps: list[int] = []
    engine = AlertEngine(
        store,
        sink,
        config=FleetConfig(initial_delay=0.01, sweep_interval=0.05),
        clock=FakeClock(),
    )
    real_sweep = engine.run_sweep

    def _counting_sweep() -> list[AlertEvent]:
        sweeps.append(1)
        return real_sweep()

    engine.run_sweep = _counting_sweep  # type: ignore[method-assign]

    engine.start()
    engine.start()
    await asyncio.sleep(0.03)
    assert len(sweeps) == 1
    assert len(sink) == 1

    await asyncio.sleep(0.1)
    await engine.aclose()
    assert len(sweeps) >= 2
    assert engine.is_running is False


@pytest.mark.asyncio
async def test_stop_cancels_pending_sweeps() -> None:
    store = EntityStore(trucks=[make_truck("TR1", fuelLevel=5)])
    sink = NotificationSink()
    engine = AlertEngine(store, sink, config=FleetConfig(initial_delay=0.02, sweep_interval=0.02), clock=FakeClock())

    engine.start()
    assert engine.is_running is True
    engine.stop()
    await asyncio.sleep(0.08)

    assert len(sink) == 0
    assert engine.is_running is False
