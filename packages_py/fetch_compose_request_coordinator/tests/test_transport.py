"""
Tests for the coordinated httpx transport.
Following logic testing methodologies:
- Statement, Decision, Condition, Path Coverage
- Concurrency (coalescing of identical requests)
- Error Handling
"""
import asyncio
import gzip
from typing import List

import httpx
import pytest

from fetch_compose_request_coordinator import (
    CoordinatedTransport,
    CoordinatorConfig,
    RequestCoordinator,
    compose_transport,
    coordinated,
    create_coordinated_client,
    default_request_key,
    is_force_refresh,
)


class MockAsyncTransport(httpx.AsyncBaseTransport):
    """Mock async transport with configurable delay."""

    def __init__(
        self,
        delay: float = 0.0,
        response_status: int = 200,
        response_content: bytes = b'{"count": 3}',
        response_headers: dict | None = None,
    ) -> None:
        self.delay = delay
        self.response_status = response_status
        self.response_content = response_content
        self.response_headers = response_headers or {"content-type": "application/json"}
        self.requests: List[httpx.Request] = []
        self.closed = False

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        return httpx.Response(
            status_code=self.response_status,
            headers=self.response_headers,
            content=self.response_content,
        )

    async def aclose(self) -> None:
        self.closed = True


class ErrorMockAsyncTransport(httpx.AsyncBaseTransport):
    """Mock async transport that raises errors."""

    def __init__(self, error: Exception) -> None:
        self.error = error
        self.calls = 0

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        await asyncio.sleep(0.01)
        raise self.error


def fast_coordinator() -> RequestCoordinator:
    return RequestCoordinator(CoordinatorConfig(rate_limit_seconds=0.05))


class TestHelpers:
    """Tests for key and force-refresh helpers."""

    def test_default_request_key(self) -> None:
        request = httpx.Request("get", "https://crm.example.com/contacts?limit=10")
        assert default_request_key(request) == "GET https://crm.example.com/contacts?limit=10"

    @pytest.mark.parametrize(
        "value,expected",
        [("no-cache", True), ("max-age=0, No-Cache", True), ("max-age=60", False), ("", False)],
    )
    def test_is_force_refresh(self, value: str, expected: bool) -> None:
        headers = {"cache-control": value} if value else {}
        request = httpx.Request("GET", "https://x.test/", headers=headers)
        assert is_force_refresh(request) is expected


class TestCoordinatedTransport:
    """Tests for CoordinatedTransport."""

    @pytest.mark.asyncio
    async def test_supports_coordination_defaults(self) -> None:
        transport = CoordinatedTransport(MockAsyncTransport())

        assert transport.supports_coordination("get") is True
        assert transport.supports_coordination("HEAD") is True
        assert transport.supports_coordination("POST") is False

        await transport.aclose()

    @pytest.mark.asyncio
    async def test_concurrent_gets_share_one_upstream_call(self) -> None:
        inner = MockAsyncTransport(delay=0.1)
        coalesced = []
        transport = CoordinatedTransport(
            inner,
            coordinator=fast_coordinator(),
            on_request_coalesced=lambda key, n: coalesced.append((key, n)),
        )

        async with httpx.AsyncClient(transport=transport, base_url="https://crm.test") as client:
            responses = await asyncio.gather(*[client.get("/contacts") for _ in range(5)])

        assert len(inner.requests) == 1
        assert all(r.status_code == 200 for r in responses)
        assert all(r.json() == {"count": 3} for r in responses)
        assert len(coalesced) == 4

    @pytest.mark.asyncio
    async def test_different_urls_are_independent(self) -> None:
        inner = MockAsyncTransport(delay=0.05)
        transport = CoordinatedTransport(inner, coordinator=fast_coordinator())

        async with httpx.AsyncClient(transport=transport, base_url="https://crm.test") as client:
            await asyncio.gather(client.get("/contacts"), client.get("/users"))

        assert len(inner.requests) == 2

    @pytest.mark.asyncio
    async def test_post_passes_through(self) -> None:
        inner = MockAsyncTransport(delay=0.05)
        transport = CoordinatedTransport(inner, coordinator=fast_coordinator())

        async with httpx.AsyncClient(transport=transport, base_url="https://crm.test") as client:
            await asyncio.gather(
                client.post("/contacts", json={"a": 1}),
                client.post("/contacts", json={"a": 1}),
            )

        assert len(inner.requests) == 2

    @pytest.mark.asyncio
    async def test_no_cache_forces_new_upstream_call(self) -> None:
        inner = MockAsyncTransport(delay=0.05)
        transport = CoordinatedTransport(inner, coordinator=fast_coordinator())

        async with httpx.AsyncClient(transport=transport, base_url="https://crm.test") as client:
            await asyncio.gather(
                client.get("/contacts"),
                client.get("/contacts", headers={"Cache-Control": "no-cache"}),
            )

        assert len(inner.requests) == 2

    @pytest.mark.asyncio
    async def test_sequential_gets_are_spaced(self) -> None:
        inner = MockAsyncTransport()
        coordinator = RequestCoordinator(CoordinatorConfig(rate_limit_seconds=0.2))
        transport = CoordinatedTransport(inner, coordinator=coordinator)
        loop = asyncio.get_running_loop()

        async with httpx.AsyncClient(transport=transport, base_url="https://crm.test") as client:
            start = loop.time()
            await client.get("/contacts")
            await client.get("/contacts")
            elapsed = loop.time() - start

        assert len(inner.requests) == 2
        assert elapsed >= 0.19

    @pytest.mark.asyncio
    async def test_upstream_error_reaches_every_caller(self) -> None:
        inner = ErrorMockAsyncTransport(httpx.ConnectError("refused"))
        transport = CoordinatedTransport(inner, coordinator=fast_coordinator())

        async with httpx.AsyncClient(transport=transport, base_url="https://crm.test") as client:
            results = await asyncio.gather(
                client.get("/contacts"),
                client.get("/contacts"),
                return_exceptions=True,
            )

        assert inner.calls == 1
        assert all(isinstance(r, httpx.ConnectError) for r in results)
        assert transport.coordinator.is_pending("GET https://crm.test/contacts") is False

    @pytest.mark.asyncio
    async def test_error_status_is_returned_not_raised(self) -> None:
        inner = MockAsyncTransport(response_status=503, response_content=b"down")
        transport = CoordinatedTransport(inner, coordinator=fast_coordinator())

        async with httpx.AsyncClient(transport=transport, base_url="https://crm.test") as client:
            response = await client.get("/contacts")

        assert response.status_code == 503
        assert response.text == "down"

    @pytest.mark.asyncio
    async def test_decoded_body_drops_content_encoding(self) -> None:
        inner = MockAsyncTransport(
            response_content=gzip.compress(b'{"ok": true}'),
            response_headers={"content-type": "application/json", "content-encoding": "gzip"},
        )
        transport = CoordinatedTransport(inner, coordinator=fast_coordinator())

        async with httpx.AsyncClient(transport=transport, base_url="https://crm.test") as client:
            response = await client.get("/status")

        assert response.json() == {"ok": True}
        assert "content-encoding" not in response.headers

    @pytest.mark.asyncio
    async def test_custom_key_generator(self) -> None:
        inner = MockAsyncTransport(delay=0.05)
        transport = CoordinatedTransport(
            inner,
            coordinator=fast_coordinator(),
            key_generator=lambda request: request.url.path,
        )

        async with httpx.AsyncClient(transport=transport, base_url="https://crm.test") as client:
            await asyncio.gather(client.get("/contacts?page=1"), client.get("/contacts?page=2"))

        assert len(inner.requests) == 1

    @pytest.mark.asyncio
    async def test_aclose_keeps_shared_coordinator_open(self) -> None:
        inner = MockAsyncTransport()
        coordinator = fast_coordinator()
        transport = CoordinatedTransport(inner, coordinator=coordinator)

        await transport.aclose()

        assert inner.closed is True
        assert await coordinator.execute("k", lambda: asyncio.sleep(0, result=1)) == 1

    @pytest.mark.asyncio
    async def test_aclose_closes_private_coordinator(self) -> None:
        transport = CoordinatedTransport(MockAsyncTransport())
        await transport.aclose()

        with pytest.raises(Exception):
            await transport.coordinator.execute("k", lambda: asyncio.sleep(0))


class TestFactory:
    """Tests for factory helpers."""

    @pytest.mark.asyncio
    async def test_compose_transport_applies_wrappers(self) -> None:
        inner = MockAsyncTransport()
        coordinator = fast_coordinator()

        transport = compose_transport(inner, coordinated(coordinator))

        assert isinstance(transport, CoordinatedTransport)
        assert transport.coordinator is coordinator
        await transport.aclose()

    @pytest.mark.asyncio
    async def test_create_coordinated_client(self) -> None:
        inner = MockAsyncTransport(delay=0.05)
        coordinator = fast_coordinator()

        async with create_coordinated_client(
            coordinator=coordinator,
            base_url="https://crm.test",
            transport=inner,
        ) as client:
            await asyncio.gather(client.get("/users"), client.get("/users"))

        assert len(inner.requests) == 1
        assert client.base_url.host == "crm.test"
