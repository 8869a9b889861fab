"""
Request coordinator transport wrapper for httpx.
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import httpx

from request_coordinator import CoordinatorConfig, RequestCoordinator

logger = logging.getLogger(__name__)

LOG_PREFIX = "[fetch_compose_request_coordinator]"

DEFAULT_COORDINATED_METHODS = ["GET", "HEAD"]

# Dropped from shared responses: the body is already decoded and re-sized.
_HOP_HEADERS = ("content-encoding", "content-length", "transfer-encoding")


@dataclass
class CoordinatedResponseData:
    """Response captured once and shared by every coalesced caller."""

    status_code: int
    headers: httpx.Headers
    content: bytes


def default_request_key(request: httpx.Request) -> str:
    """Build the coordination key for a request: method plus full URL."""
    return f"{request.method.upper()} {request.url}"


def is_force_refresh(request: httpx.Request) -> bool:
    """A request asks for a fresh execution via Cache-Control: no-cache."""
    cache_control = request.headers.get("cache-control", "")
    directives = [part.strip().lower() for part in cache_control.split(",")]
    return "no-cache" in directives


class CoordinatedTransport(httpx.AsyncBaseTransport):
    """
    Request coordinator transport wrapper for httpx.

    Routes safe-method requests through a RequestCoordinator so concurrent
    identical requests share one upstream call and repeats of the same
    request are spaced out. Other methods pass straight through.

    Example:
        coordinator = RequestCoordinator()
        transport = CoordinatedTransport(httpx.AsyncHTTPTransport(), coordinator=coordinator)
        client = httpx.AsyncClient(transport=transport, base_url="https://crm.example.com")
    """

    def __init__(
        self,
        inner: httpx.AsyncBaseTransport,
        *,
        coordinator: Optional[RequestCoordinator] = None,
        config: Optional[CoordinatorConfig] = None,
        methods: Optional[List[str]] = None,
        key_generator: Optional[Callable[[httpx.Request], str]] = None,
        on_request_coalesced: Optional[Callable[[str, int], None]] = None,
    ) -> None:
        """
        Create a new CoordinatedTransport.

        Args:
            inner: The wrapped transport to delegate requests to
            coordinator: Shared coordinator. A private one is created if omitted.
            config: Config for the private coordinator
            methods: HTTP methods to coordinate. Default: GET, HEAD
            key_generator: Custom request key generator
            on_request_coalesced: Callback(key, subscribers) when a request joins another
        """
        self._inner = inner
        self._owns_coordinator = coordinator is None
        self._coordinator = coordinator or RequestCoordinator(config)
        self._methods = [m.upper() for m in (methods or DEFAULT_COORDINATED_METHODS)]
        self._key_generator = key_generator or default_request_key
        self._on_request_coalesced = on_request_coalesced

    @property
    def coordinator(self) -> RequestCoordinator:
        return self._coordinator

    def supports_coordination(self, method: str) -> bool:
        """Check if a request method is coordinated."""
        return method.upper() in self._methods

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Handle an async HTTP request under coordination."""
        if not self.supports_coordination(request.method):
            return await self._inner.handle_async_request(request)

        key = self._key_generator(request)
        forced = is_force_refresh(request)

        async def execute() -> CoordinatedResponseData:
            response = await self._inner.handle_async_request(request)
            try:
                content = await response.aread()
            finally:
                await response.aclose()
            headers = httpx.Headers(
                [(k, v) for k, v in response.headers.multi_items() if k.lower() not in _HOP_HEADERS]
            )
            return CoordinatedResponseData(
                status_code=response.status_code,
                headers=headers,
                content=content,
            )

        if not forced and self._coordinator.is_pending(key):
            subscribers = self._coordinator.get_subscribers(key) + 1
            logger.debug(f"{LOG_PREFIX} Coalescing {key} ({subscribers} subscribers)")
            if self._on_request_coalesced:
                self._on_request_coalesced(key, subscribers)

        data = await self._coordinator.execute(key, execute, forced)

        return httpx.Response(
            status_code=data.status_code,
            headers=data.headers,
            content=data.content,
            request=request,
        )

    async def aclose(self) -> None:
        """Close the transport, and the coordinator if this transport created it."""
        if self._owns_coordinator:
            self._coordinator.close()
        await self._inner.aclose()
