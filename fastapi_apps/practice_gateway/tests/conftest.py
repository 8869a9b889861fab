"""
Pytest configuration and fixtures for practice_gateway tests.
"""
import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from draft_persistence import MemoryDraftStore
from practice_gateway import Settings, create_app


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ambient environment variables out of Settings."""
    for name in list(Settings.model_fields) + ["GATEWAY_CONFIG_FILE"]:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def crm_router() -> respx.MockRouter:
    """Upstream CRM double; the catch-all route echoes the path it was asked for."""
    router = respx.MockRouter(assert_all_called=False)
    router.get(url__startswith="https://crm.test/", name="crm").mock(
        side_effect=lambda request: httpx.Response(
            200, json={"path": request.url.path}
        )
    )
    return router


@pytest.fixture
def crm_transport(crm_router: respx.MockRouter) -> httpx.MockTransport:
    return httpx.MockTransport(crm_router.async_handler)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        CRM_BASE_URL="https://crm.test",
        CRM_API_TOKEN="secret-token",
        RATE_LIMIT_SECONDS=0.0,
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def draft_store() -> MemoryDraftStore:
    return MemoryDraftStore()


@pytest.fixture
def client(settings, crm_transport, draft_store):
    app = create_app(settings, crm_transport=crm_transport, draft_store=draft_store)
    with TestClient(app) as test_client:
        yield test_client
