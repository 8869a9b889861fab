"""
Memory draft store implementation.
"""
from typing import Dict, Optional

from ..types import DraftQuotaExceededError, DraftStore


class MemoryDraftStore(DraftStore):
    """
    In-memory draft store.

    Lives only as long as the process; useful for tests and for sessions
    that do not need to survive a restart.
    """

    def __init__(self, max_bytes: Optional[int] = None) -> None:
        self._values: Dict[str, str] = {}
        self._max_bytes = max_bytes

    def get(self, key: str) -> Optional[str]:
        """Get a stored value, or None if absent."""
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        """Store a value, enforcing max_bytes across all values."""
        if self._max_bytes is not None:
            used = sum(len(v.encode("utf-8")) for k, v in self._values.items() if k != key)
            if used + len(value.encode("utf-8")) > self._max_bytes:
                raise DraftQuotaExceededError(
                    f"Storing {key} would exceed the {self._max_bytes} byte limit"
                )
        self._values[key] = value

    def delete(self, key: str) -> None:
        """Remove a value. Missing keys are ignored."""
        self._values.pop(key, None)

    def size(self) -> int:
        """Get current number of stored values."""
        return len(self._values)

    def clear(self) -> None:
        """Remove every stored value."""
        self._values.clear()


def create_memory_draft_store(max_bytes: Optional[int] = None) -> MemoryDraftStore:
    """Create a memory draft store."""
    return MemoryDraftStore(max_bytes)
