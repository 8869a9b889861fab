"""
Teardown signals: the host's "about to terminate" notification.
"""
import atexit
import logging
from typing import Callable, List

from .types import TeardownSignal

logger = logging.getLogger(__name__)

LOG_PREFIX = "[draft_persistence.teardown]"


class AtexitTeardownSignal(TeardownSignal):
    """Teardown signal fired by interpreter shutdown."""

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        atexit.register(callback)
        return lambda: atexit.unregister(callback)


class ManualTeardownSignal(TeardownSignal):
    """Teardown signal fired explicitly, e.g. from an app shutdown hook or a test."""

    def __init__(self) -> None:
        self._callbacks: List[Callable[[], None]] = []

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def fire(self) -> None:
        """Invoke every subscriber; one failing subscriber does not stop the rest."""
        for callback in list(self._callbacks):
            try:
                callback()
            except Exception as error:
                logger.error(f"{LOG_PREFIX} Teardown callback failed: {error}")
