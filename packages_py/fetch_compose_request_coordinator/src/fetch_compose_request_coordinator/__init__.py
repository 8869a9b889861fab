"""
Request coordinator transport wrapper for httpx's compose pattern.
"""
from request_coordinator import (
    CoordinatorConfig,
    RequestCoordinator,
)
from .transport import (
    CoordinatedTransport,
    CoordinatedResponseData,
    DEFAULT_COORDINATED_METHODS,
    default_request_key,
    is_force_refresh,
)
from .factory import (
    compose_transport,
    coordinated,
    create_coordinated_client,
)


__all__ = [
    # Re-exported types from base package
    "CoordinatorConfig",
    "RequestCoordinator",
    # Transport wrapper
    "CoordinatedTransport",
    "CoordinatedResponseData",
    "DEFAULT_COORDINATED_METHODS",
    "default_request_key",
    "is_force_refresh",
    # Factory functions
    "compose_transport",
    "coordinated",
    "create_coordinated_client",
]

__version__ = "1.0.0"
