"""Key-value storage backends.

``MemoryStorage`` doubles as the session-scoped storage for cooldown
timestamps; ``JsonFileStorage`` is the durable store for entity
collections and notifications.
"""

from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

from fleetwatch.storage.result import Loaded, StorageResult, Unavailable

_logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    """Structural storage interface.

    Values are JSON-compatible structures. Implementations must not raise
    for missing or undecodable entries.
    """

    def read(self, key: str) -> StorageResult: ...

    def write(self, key: str, value: Any) -> StorageResult: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage; contents live as long as the instance."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def read(self, key: str) -> StorageResult:
        if key not in self._data:
            return Unavailable(f"no entry for {key!r}")
        return Loaded(copy.deepcopy(self._data[key]))

    def write(self, key: str, value: Any) -> StorageResult:
        self._data[key] = copy.deepcopy(value)
        return Loaded(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStorage:
    """Durable storage keeping one ``<key>.json`` file per key."""

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{quote(key, safe='-_.')}.json"

    def read(self, key: str) -> StorageResult:
        path = self._path(key)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return Unavailable(f"{path} does not exist")
        except UnicodeDecodeError as exc:
            return Unavailable(f"{path} is not valid UTF-8: {exc}")
        except OSError as exc:
            return Unavailable(f"cannot read {path}: {exc}")
        try:
            return Loaded(json.loads(text))
        except json.JSONDecodeError as exc:
            return Unavailable(f"{path} is not valid JSON: {exc}")

    def write(self, key: str, value: Any) -> StorageResult:
        path = self._path(key)
        try:
            payload = json.dumps(value, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            return Unavailable(f"cannot serialize {key!r}: {exc}")
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as exc:
            return Unavailable(f"cannot write {path}: {exc}")
        _logger.debug("Wrote %s (%d bytes)", path, len(payload))
        return Loaded(value)

    def remove(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            _logger.warning("Could not remove %s: %s", self._path(key), exc)
