"""
Keyed request coordination: coalescing of concurrent calls and per-key throttling.
"""
from .types import (
    CoordinatorClosedError,
    CoordinatorConfig,
    InFlightRequest,
    PendingRequestStore,
    CoordinatorEventType,
    CoordinatorEvent,
    CoordinatorEventListener,
)
from .coordinator import (
    RequestCoordinator,
    create_request_coordinator,
    RATE_LIMIT_SECONDS,
    DEFAULT_COORDINATOR_CONFIG,
    merge_coordinator_config,
)
from .stores import (
    MemoryPendingStore,
    create_memory_pending_store,
)


__all__ = [
    # Types
    "CoordinatorClosedError",
    "CoordinatorConfig",
    "InFlightRequest",
    "PendingRequestStore",
    "CoordinatorEventType",
    "CoordinatorEvent",
    "CoordinatorEventListener",
    # Coordinator
    "RequestCoordinator",
    "create_request_coordinator",
    "RATE_LIMIT_SECONDS",
    "DEFAULT_COORDINATOR_CONFIG",
    "merge_coordinator_config",
    # Stores
    "MemoryPendingStore",
    "create_memory_pending_store",
]

__version__ = "1.0.0"
