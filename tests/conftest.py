"""Shared test fixtures."""

from __future__ import annotations

import pytest
from factories import FakeClock

from fleetwatch.storage import MemoryStorage


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def durable() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def session() -> MemoryStorage:
    return MemoryStorage()
