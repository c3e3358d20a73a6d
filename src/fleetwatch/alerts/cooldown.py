"""Per-(rule, truck) cooldown bookkeeping.

Last-emission timestamps (epoch milliseconds) are kept in session-scoped
storage under the rule's cooldown key, so a restarted engine sharing the
same session storage keeps honouring open windows.
"""

from __future__ import annotations

import logging

from fleetwatch._normalize import safe_int
from fleetwatch.storage import KeyValueStorage, Loaded, MemoryStorage

_logger = logging.getLogger(__name__)


class CooldownTracker:
    def __init__(self, storage: KeyValueStorage | None = None) -> None:
        self._storage: KeyValueStorage = storage if storage is not None else MemoryStorage()

    def last_emitted_ms(self, key: str) -> int | None:
        result = self._storage.read(key)
        if not isinstance(result, Loaded):
            return None
        value = safe_int(result.value)
        if value is None:
            _logger.debug("Ignoring unparsable cooldown timestamp for %s: %r", key, result.value)
        return value

    def is_cooling_down(self, key: str, now_ms: int, cooldown_ms: int) -> bool:
        """Whether *key* emitted less than (or exactly) *cooldown_ms* ago."""
        last = self.last_emitted_ms(key)
        if last is None:
            return False
        return now_ms - last <= cooldown_ms

    def mark_emitted(self, key: str, now_ms: int) -> None:
        result = self._storage.write(key, str(now_ms))
        if not isinstance(result, Loaded):
            _logger.warning("Could not record cooldown for %s: %s", key, result.reason)

    def reset(self, key: str) -> None:
        self._storage.remove(key)
