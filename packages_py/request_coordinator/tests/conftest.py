"""Pytest configuration and fixtures for request_coordinator tests."""
import asyncio
from typing import Generator, List

import pytest

from request_coordinator import (
    CoordinatorConfig,
    MemoryPendingStore,
    RequestCoordinator,
)


class FakeClock:
    """Virtual monotonic clock whose sleep advances time instead of waiting."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        target = self.now + seconds
        self.sleeps.append(seconds)
        # Let other tasks reach their own suspension points first.
        await asyncio.sleep(0)
        self.now = max(self.now, target)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Create a virtual clock for throttling tests."""
    return FakeClock()


@pytest.fixture
def memory_pending_store() -> MemoryPendingStore:
    """Create a memory pending store for testing."""
    return MemoryPendingStore()


@pytest.fixture
def coordinator(
    fake_clock: FakeClock,
    memory_pending_store: MemoryPendingStore,
) -> Generator[RequestCoordinator, None, None]:
    """Create a coordinator driven by the virtual clock."""
    rc = RequestCoordinator(
        CoordinatorConfig(rate_limit_seconds=2.0),
        memory_pending_store,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )
    yield rc
    rc.close()
