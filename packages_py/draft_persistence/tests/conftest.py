"""Pytest configuration and fixtures for draft_persistence tests."""
from typing import Callable, Generator, List

import pytest

from draft_persistence import (
    AutoSaveOptions,
    DraftSession,
    ManualScheduler,
    ManualTeardownSignal,
    MemoryDraftStore,
    Notification,
)


class CountingStore(MemoryDraftStore):
    """Memory store that records every write."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: List[tuple] = []

    def set(self, key: str, value: str) -> None:
        self.writes.append((key, value))
        super().set(key, value)


@pytest.fixture
def store() -> CountingStore:
    """Create a write-counting memory store."""
    return CountingStore()


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Create a virtual-clock scheduler."""
    return ManualScheduler()


@pytest.fixture
def teardown() -> ManualTeardownSignal:
    """Create a manually fired teardown signal."""
    return ManualTeardownSignal()


@pytest.fixture
def notifications() -> List[Notification]:
    """Collect notifications shown to the user."""
    return []


@pytest.fixture
def make_session(
    store: CountingStore,
    scheduler: ManualScheduler,
    teardown: ManualTeardownSignal,
    notifications: List[Notification],
) -> Generator[Callable[..., DraftSession], None, None]:
    """Factory for started sessions wired to the test doubles."""
    sessions: List[DraftSession] = []

    def factory(key: str = "form-42", data=None, **option_overrides) -> DraftSession:
        options = AutoSaveOptions(key=key, data=data, **option_overrides)
        session = DraftSession(
            options,
            store,
            scheduler=scheduler,
            teardown=teardown,
            notifier=notifications.append,
        )
        session.start()
        sessions.append(session)
        return session

    yield factory

    for session in sessions:
        session.close()
