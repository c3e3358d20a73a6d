"""Alert rule engine.

Evaluates the low-fuel and maintenance-overdue rules against the shared
entity store and publishes emissions to the notification sink.

Each (rule, truck) pair is a small state machine: idle, then one emission,
then cooling down until the window has elapsed, then idle again. Evaluation
happens on three triggers:

* a truck update that changes fuel level or status (low-fuel rule only,
  for that truck),
* a periodic sweep over every truck,
* one deferred sweep shortly after :meth:`AlertEngine.start`.

Everything runs on the event loop thread. Sweeps are synchronous, so a
sweep can never interleave with another sweep or with a mutation-triggered
evaluation.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any

from fleetwatch.alerts.cooldown import CooldownTracker
from fleetwatch.alerts.rules import AlertRule, LowFuelRule, MaintenanceOverdueRule
from fleetwatch.config import FleetConfig
from fleetwatch.exceptions import FleetError
from fleetwatch.models import AlertEvent, NotificationType, Truck
from fleetwatch.notifications import NotificationSink
from fleetwatch.state.events import MutationEvent
from fleetwatch.state.store import EntityStore
from fleetwatch.storage import KeyValueStorage

_logger = logging.getLogger(__name__)

AlertCallback = Callable[[AlertEvent], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _epoch_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


class AlertEngine:
    """Owns the rule set, cooldown state and scheduling handles.

    Usage::

        engine = AlertEngine(store, sink)
        async with engine:
            ...  # periodic sweeps run in the background
    """

    def __init__(
        self,
        store: EntityStore,
        sink: NotificationSink,
        *,
        config: FleetConfig | None = None,
        session_storage: KeyValueStorage | None = None,
        clock: Callable[[], datetime] = _utcnow,
        on_alert: AlertCallback | None = None,
    ) -> None:
        self._config = config or FleetConfig()
        self._store = store
        self._sink = sink
        self._clock = clock
        self._cooldowns = CooldownTracker(session_storage)
        self._fuel_rule = LowFuelRule(
            threshold=self._config.fuel_threshold,
            cooldown_ms=self._config.fuel_cooldown_ms,
        )
        self._maintenance_rule = MaintenanceOverdueRule(
            overdue_days=self._config.maintenance_days,
            cooldown_ms=self._config.maintenance_cooldown_ms,
        )
        self._callbacks: list[AlertCallback] = [on_alert] if on_alert is not None else []
        self._initial_handle: asyncio.TimerHandle | None = None
        self._periodic_task: asyncio.Task[None] | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._sweeping = False

    @property
    def rules(self) -> tuple[AlertRule, ...]:
        return (self._fuel_rule, self._maintenance_rule)

    @property
    def is_running(self) -> bool:
        return self._periodic_task is not None and not self._periodic_task.done()

    def add_callback(self, callback: AlertCallback) -> None:
        self._callbacks.append(callback)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> AlertEngine:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    def start(self) -> None:
        """Subscribe to store mutations and schedule the sweeps.

        Must be called from a running event loop. Calling it again while
        running is a no-op.
        """
        if self.is_running:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as exc:
            raise FleetError("AlertEngine.start() requires a running event loop") from exc

        self._unsubscribe = self._store.subscribe(self._on_mutation)
        self._initial_handle = loop.call_later(self._config.initial_delay, self._initial_sweep)
        self._periodic_task = loop.create_task(self._periodic(), name="fleetwatch-alert-sweep")
        _logger.debug(
            "Alert engine started (initial sweep in %.1fs, every %.1fs)",
            self._config.initial_delay,
            self._config.sweep_interval,
        )

    def stop(self) -> None:
        """Cancel the deferred sweep and the periodic sweep, and unsubscribe."""
        if self._initial_handle is not None:
            self._initial_handle.cancel()
            self._initial_handle = None
        if self._periodic_task is not None:
            self._periodic_task.cancel()
            self._periodic_task = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def aclose(self) -> None:
        """Stop and wait for the periodic task to finish cancelling."""
        task = self._periodic_task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def _periodic(self) -> None:
        while True:
            await asyncio.sleep(self._config.sweep_interval)
            self._scheduled_sweep()

    def _initial_sweep(self) -> None:
        self._initial_handle = None
        self._scheduled_sweep()

    def _scheduled_sweep(self) -> None:
        try:
            self.run_sweep()
        except Exception:
            _logger.exception("Alert sweep failed")

    def _on_mutation(self, event: MutationEvent) -> None:
        if not event.truck_changed_alert_fields:
            return
        truck = event.current
        if isinstance(truck, Truck):
            self.evaluate_truck(truck, rules=(self._fuel_rule,))

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def run_sweep(self) -> list[AlertEvent]:
        """Evaluate every rule for every truck in the store."""
        if self._sweeping:
            _logger.debug("Sweep already in progress, skipping")
            return []
        self._sweeping = True
        try:
            emitted: list[AlertEvent] = []
            trucks = self._store.trucks
            for truck in trucks:
                emitted.extend(self.evaluate_truck(truck))
            _logger.debug("Sweep over %d trucks emitted %d alerts", len(trucks), len(emitted))
            return emitted
        finally:
            self._sweeping = False

    def evaluate_truck(self, truck: Truck, rules: Sequence[AlertRule] | None = None) -> list[AlertEvent]:
        """Evaluate *rules* (default: all) for one truck.

        A failing rule is logged and skipped; it never prevents the other
        rules from running.
        """
        emitted: list[AlertEvent] = []
        for rule in self.rules if rules is None else rules:
            try:
                event = self._evaluate_rule(rule, truck)
            except Exception:
                _logger.exception("Rule %s failed for truck %s", rule.kind, truck.id)
                continue
            if event is not None:
                emitted.append(event)
        return emitted

    def _evaluate_rule(self, rule: AlertRule, truck: Truck) -> AlertEvent | None:
        now = self._clock()
        match = rule.check(truck, now)
        if match is None:
            return None

        key = rule.cooldown_key(truck.id)
        now_ms = _epoch_ms(now)
        if self._cooldowns.is_cooling_down(key, now_ms, rule.cooldown_ms):
            return None

        event = AlertEvent(
            kind=rule.kind,
            subject_id=truck.id,
            generated_at=now,
            cooldown_key=key,
            title=match.title,
            message=match.message,
        )
        self._cooldowns.mark_emitted(key, now_ms)
        _logger.info("%s: %s", event.title, event.message)
        self._emit(event)
        return event

    def _emit(self, event: AlertEvent) -> None:
        self._sink.publish(event.title, event.message, type=NotificationType.WARNING, url=event.url)
        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception:
                _logger.exception("Alert callback failed for %s", event.cooldown_key)
