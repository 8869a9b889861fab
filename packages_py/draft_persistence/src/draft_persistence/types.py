"""
Types for draft_persistence package.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import BaseModel

DRAFT_VERSION = "1.0"


class DraftStoreError(Exception):
    """Raised by a draft store when a read, write or delete fails."""
    pass


class DraftQuotaExceededError(DraftStoreError):
    """Raised when a draft does not fit in the store's size limit."""
    pass


class DraftSerializationError(DraftStoreError):
    """Raised when draft data cannot be serialized."""
    pass


class StoredDraft(BaseModel):
    """Durable draft record."""

    data: Any
    timestamp: datetime
    version: str = DRAFT_VERSION


@dataclass
class Notification:
    """Transient user-facing message about a save."""

    title: str
    description: str
    duration_seconds: float = 2.0


SaveCallback = Callable[[Any], Awaitable[None]]
"""Server save callback type."""

Notifier = Callable[[Notification], None]
"""Notification sink type."""


@dataclass
class AutoSaveOptions:
    """Options for a draft auto-save session."""

    key: str
    """Identity of the editable document."""

    data: Any = None
    """Initial in-memory state."""

    on_save: Optional[SaveCallback] = None
    """Optional best-effort server save."""

    interval_seconds: float = 30.0
    """Period of the scheduled auto-save tick."""

    enabled: bool = True
    """Whether auto-save runs at all."""

    debounce_seconds: float = 2.0
    """Quiet period after the last change before a save."""


class DraftState(str, Enum):
    """Per-session auto-save state."""

    IDLE = "idle"
    PENDING_SAVE = "pending_save"
    SAVED = "saved"
    FLUSHED_ON_EXIT = "flushed_on_exit"
    CLOSED = "closed"


class DraftStore(ABC):
    """Durable string key/value store interface."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Get a stored value, or None if absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a value. May raise DraftStoreError."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a value. Missing keys are ignored."""
        pass


class TimerHandle(ABC):
    """Cancellable scheduled callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Cancel the callback. Safe to call more than once."""
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        """Whether the handle has been cancelled."""
        pass


class Scheduler(ABC):
    """Timer abstraction used by draft sessions."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay seconds."""
        pass

    @abstractmethod
    def call_every(self, interval: float, callback: Callable[[], None]) -> TimerHandle:
        """Run callback every interval seconds until cancelled."""
        pass


class TeardownSignal(ABC):
    """Host-provided "about to terminate" signal."""

    @abstractmethod
    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register callback; returns a function that unsubscribes it."""
        pass


class AutoSaveEventType(str, Enum):
    """Event types for draft sessions."""

    SAVED = "draft:saved"
    REMOTE_SAVED = "draft:remote_saved"
    REMOTE_FAILED = "draft:remote_failed"
    STORE_ERROR = "draft:store_error"
    FLUSHED = "draft:flushed"
    CLEARED = "draft:cleared"


@dataclass
class AutoSaveEvent:
    """Draft session event."""

    type: AutoSaveEventType
    key: str
    timestamp: float
    metadata: Optional[Dict[str, Any]] = None


AutoSaveEventListener = Callable[[AutoSaveEvent], None]
"""Event listener type."""
