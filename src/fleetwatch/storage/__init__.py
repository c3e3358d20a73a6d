"""Storage layer: key-value backends returning Result-style values."""

from fleetwatch.storage.backends import JsonFileStorage, KeyValueStorage, MemoryStorage
from fleetwatch.storage.result import Loaded, StorageResult, Unavailable

__all__ = [
    "JsonFileStorage",
    "KeyValueStorage",
    "Loaded",
    "MemoryStorage",
    "StorageResult",
    "Unavailable",
]
