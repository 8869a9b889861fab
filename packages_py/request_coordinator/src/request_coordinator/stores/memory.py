"""
Memory store implementation for request_coordinator.
"""
from typing import Dict, Optional

from ..types import InFlightRequest, PendingRequestStore


class MemoryPendingStore(PendingRequestStore):
    """
    In-memory store for tracking in-flight executions.
    """

    def __init__(self) -> None:
        self._in_flight: Dict[str, InFlightRequest] = {}

    def get(self, key: str) -> Optional[InFlightRequest]:
        """Get the in-flight execution for a key."""
        return self._in_flight.get(key)

    def set(self, key: str, request: InFlightRequest) -> None:
        """Register an in-flight execution."""
        self._in_flight[key] = request

    def delete(self, key: str, execution_id: Optional[int] = None) -> bool:
        """Remove an in-flight execution, optionally only if ids match."""
        existing = self._in_flight.get(key)
        if existing is None:
            return False
        if execution_id is not None and existing.execution_id != execution_id:
            return False
        del self._in_flight[key]
        return True

    def has(self, key: str) -> bool:
        """Check if a key has an in-flight execution."""
        return key in self._in_flight

    def size(self) -> int:
        """Get current number of in-flight executions."""
        return len(self._in_flight)

    def clear(self) -> None:
        """Drop all in-flight bookkeeping."""
        self._in_flight.clear()


def create_memory_pending_store() -> MemoryPendingStore:
    """Create a memory pending store."""
    return MemoryPendingStore()
