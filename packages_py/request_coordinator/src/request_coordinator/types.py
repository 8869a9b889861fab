"""
Types for request_coordinator package.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Generic, Optional, TypeVar
import asyncio

T = TypeVar("T")


class CoordinatorClosedError(Exception):
    """Raised when execute() is called on a closed coordinator."""
    pass


@dataclass
class CoordinatorConfig:
    """Configuration for request coordination."""

    rate_limit_seconds: Optional[float] = 2.0
    """Minimum spacing between started executions of the same key."""


@dataclass
class InFlightRequest(Generic[T]):
    """In-flight execution tracked under a request key."""

    future: asyncio.Future[T]
    """Future that resolves when the execution completes."""

    execution_id: int
    """Monotonically increasing id of the execution that registered this entry."""

    subscribers: int = 1
    """Number of callers waiting on this execution."""

    started_at: float = 0
    """Clock reading when the execution started."""

    forced: bool = False
    """Whether the execution bypassed coalescing and throttling."""


class PendingRequestStore(ABC):
    """Store interface for tracking in-flight executions by key."""

    @abstractmethod
    def get(self, key: str) -> Optional[InFlightRequest]:
        """Get the in-flight execution for a key."""
        pass

    @abstractmethod
    def set(self, key: str, request: InFlightRequest) -> None:
        """Register an in-flight execution."""
        pass

    @abstractmethod
    def delete(self, key: str, execution_id: Optional[int] = None) -> bool:
        """
        Remove an in-flight execution.

        When execution_id is given, the entry is removed only if it still
        belongs to that execution.
        """
        pass

    @abstractmethod
    def has(self, key: str) -> bool:
        """Check if a key has an in-flight execution."""
        pass

    @abstractmethod
    def size(self) -> int:
        """Get current number of in-flight executions."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Drop all in-flight bookkeeping."""
        pass


class CoordinatorEventType(str, Enum):
    """Event types for request coordination."""

    LEAD = "coordinator:lead"
    JOIN = "coordinator:join"
    THROTTLE = "coordinator:throttle"
    COMPLETE = "coordinator:complete"
    ERROR = "coordinator:error"


@dataclass
class CoordinatorEvent:
    """Request coordinator event."""

    type: CoordinatorEventType
    key: str
    timestamp: float
    metadata: Optional[Dict[str, Any]] = None


CoordinatorEventListener = Callable[[CoordinatorEvent], None]
"""Event listener type."""
