"""Notification sink backing the user-visible notification center.

Notifications are kept in insertion order and listed newest first. There is
no deduplication here; repeated alerts are suppressed upstream by the alert
engine's cooldowns.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from fleetwatch._constants import NOTIFICATIONS_KEY
from fleetwatch.models import Notification, NotificationType
from fleetwatch.state.store import parse_rows
from fleetwatch.storage import KeyValueStorage, Loaded

_logger = logging.getLogger(__name__)

NotificationListener = Callable[[Notification], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class NotificationSink:
    """Append-only (plus read-state) list of notifications.

    Every change is persisted to *storage* under ``"notifications"`` on a
    best-effort basis.
    """

    def __init__(
        self,
        *,
        storage: KeyValueStorage | None = None,
        initial: list[Notification] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._storage = storage
        self._clock = clock
        self._items: list[Notification] = list(initial or [])
        self._listeners: list[NotificationListener] = []

    @classmethod
    def load(
        cls,
        storage: KeyValueStorage,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> NotificationSink:
        """Restore the list from *storage*; missing or corrupt data gives an empty list."""
        result = storage.read(NOTIFICATIONS_KEY)
        items: list[Notification] = []
        if isinstance(result, Loaded) and isinstance(result.value, list):
            items = parse_rows(Notification, result.value, source=NOTIFICATIONS_KEY)
        elif isinstance(result, Loaded):
            _logger.warning("Stored notifications are not a list, starting empty")
        return cls(storage=storage, initial=items, clock=clock or _utcnow)

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def notifications(self) -> list[Notification]:
        """All notifications, newest first."""
        return list(reversed(self._items))

    def entries(self, *, unread_only: bool = False) -> list[Notification]:
        items = self.notifications
        if unread_only:
            return [item for item in items if not item.read]
        return items

    @property
    def unread_count(self) -> int:
        return sum(1 for item in self._items if not item.read)

    def __len__(self) -> int:
        return len(self._items)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def publish(
        self,
        title: str,
        message: str,
        *,
        type: NotificationType = NotificationType.INFO,  # noqa: A002
        url: str | None = None,
    ) -> Notification:
        notification = Notification(title=title, message=message, type=type, url=url, created_at=self._clock())
        self._items.append(notification)
        self._persist()
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception:
                _logger.exception("Notification listener failed for %s", notification.id)
        return notification

    def mark_read(self, notification_id: str) -> bool:
        for index, item in enumerate(self._items):
            if item.id == notification_id:
                if not item.read:
                    self._items[index] = item.model_copy(update={"read": True})
                    self._persist()
                return True
        return False

    def mark_all_read(self) -> int:
        changed = 0
        for index, item in enumerate(self._items):
            if not item.read:
                self._items[index] = item.model_copy(update={"read": True})
                changed += 1
        if changed:
            self._persist()
        return changed

    def remove(self, notification_id: str) -> bool:
        for index, item in enumerate(self._items):
            if item.id == notification_id:
                del self._items[index]
                self._persist()
                return True
        return False

    def clear(self) -> None:
        self._items.clear()
        self._persist()

    def _persist(self) -> None:
        if self._storage is None:
            return
        result = self._storage.write(NOTIFICATIONS_KEY, [item.to_storage() for item in self._items])
        if not isinstance(result, Loaded):
            _logger.warning("Could not persist notifications: %s", result.reason)
