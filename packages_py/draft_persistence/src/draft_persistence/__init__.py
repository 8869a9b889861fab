"""
Draft persistence: debounced and periodic auto-save of in-progress edits to a durable store.
"""
from .types import (
    DRAFT_VERSION,
    DraftStoreError,
    DraftQuotaExceededError,
    DraftSerializationError,
    StoredDraft,
    Notification,
    SaveCallback,
    Notifier,
    AutoSaveOptions,
    DraftState,
    DraftStore,
    TimerHandle,
    Scheduler,
    TeardownSignal,
    AutoSaveEventType,
    AutoSaveEvent,
    AutoSaveEventListener,
)
from .scheduler import AsyncioScheduler, ManualScheduler
from .teardown import AtexitTeardownSignal, ManualTeardownSignal
from .stores import (
    MemoryDraftStore,
    create_memory_draft_store,
    FileDraftStore,
    create_file_draft_store,
    RedisDraftStore,
    create_redis_draft_store,
)
from .autosave import (
    DraftSession,
    create_draft_session,
    DRAFT_KEY_PREFIX,
    LOCAL_SAVED_NOTIFICATION,
    SERVER_SAVED_NOTIFICATION,
    is_empty,
    serialize_snapshot,
    log_notification,
)


__all__ = [
    # Types
    "DRAFT_VERSION",
    "DraftStoreError",
    "DraftQuotaExceededError",
    "DraftSerializationError",
    "StoredDraft",
    "Notification",
    "SaveCallback",
    "Notifier",
    "AutoSaveOptions",
    "DraftState",
    "DraftStore",
    "TimerHandle",
    "Scheduler",
    "TeardownSignal",
    "AutoSaveEventType",
    "AutoSaveEvent",
    "AutoSaveEventListener",
    # Schedulers
    "AsyncioScheduler",
    "ManualScheduler",
    # Teardown
    "AtexitTeardownSignal",
    "ManualTeardownSignal",
    # Stores
    "MemoryDraftStore",
    "create_memory_draft_store",
    "FileDraftStore",
    "create_file_draft_store",
    "RedisDraftStore",
    "create_redis_draft_store",
    # Sessions
    "DraftSession",
    "create_draft_session",
    "DRAFT_KEY_PREFIX",
    "LOCAL_SAVED_NOTIFICATION",
    "SERVER_SAVED_NOTIFICATION",
    "is_empty",
    "serialize_snapshot",
    "log_notification",
]

__version__ = "1.0.0"
