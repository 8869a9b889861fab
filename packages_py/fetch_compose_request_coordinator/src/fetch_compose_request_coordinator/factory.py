"""
Factory functions for creating coordinated transports and clients.
"""
from typing import Any, Callable, Optional

import httpx

from request_coordinator import CoordinatorConfig, RequestCoordinator

from .transport import CoordinatedTransport


def compose_transport(
    base: httpx.AsyncBaseTransport,
    *wrappers: Callable[[httpx.AsyncBaseTransport], httpx.AsyncBaseTransport],
) -> httpx.AsyncBaseTransport:
    """
    Compose multiple transport wrappers together.

    Args:
        base: The base transport
        wrappers: Transport wrapper functions to apply in order

    Returns:
        Composed transport

    Example:
        transport = compose_transport(
            httpx.AsyncHTTPTransport(),
            coordinated(coordinator),
        )
    """
    transport = base
    for wrapper in wrappers:
        transport = wrapper(transport)
    return transport


def coordinated(
    coordinator: Optional[RequestCoordinator] = None,
    **transport_kwargs: Any,
) -> Callable[[httpx.AsyncBaseTransport], CoordinatedTransport]:
    """Create a wrapper function that adds coordination to a transport."""

    def wrapper(inner: httpx.AsyncBaseTransport) -> CoordinatedTransport:
        return CoordinatedTransport(inner, coordinator=coordinator, **transport_kwargs)

    return wrapper


def create_coordinated_client(
    *,
    coordinator: Optional[RequestCoordinator] = None,
    config: Optional[CoordinatorConfig] = None,
    base_url: Optional[str] = None,
    proxy: Optional[str] = None,
    timeout: float = 5.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **client_kwargs: Any,
) -> httpx.AsyncClient:
    """
    Create an async HTTP client whose safe requests are coordinated.

    Args:
        coordinator: Shared coordinator (recommended: the process-wide one)
        config: Config for a private coordinator when none is shared
        base_url: Base URL for requests
        proxy: Proxy URL to use
        timeout: Request timeout in seconds. Default: 5.0
        transport: Base transport to wrap. Default: httpx.AsyncHTTPTransport
        **client_kwargs: Additional arguments for httpx.AsyncClient

    Returns:
        Coordinated async HTTP client
    """
    base_transport = transport or httpx.AsyncHTTPTransport(proxy=proxy)

    wrapped = CoordinatedTransport(
        base_transport,
        coordinator=coordinator,
        config=config,
    )

    return httpx.AsyncClient(
        transport=wrapped,
        base_url=base_url or "",
        timeout=timeout,
        **client_kwargs,
    )
