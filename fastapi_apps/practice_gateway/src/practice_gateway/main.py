"""Practice Gateway FastAPI Application.

The lifespan owns the process-wide request coordinator, the coordinated CRM
client and the draft store, and exposes them to routes through app.state.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from draft_persistence import DraftStore, FileDraftStore, MemoryDraftStore
from fetch_compose_request_coordinator import create_coordinated_client
from request_coordinator import CoordinatorConfig, create_request_coordinator

from .config import Settings, get_settings
from .routes import crm, drafts, health

logger = logging.getLogger(__name__)

LOG_PREFIX = "[practice_gateway]"


def build_draft_store(settings: Settings) -> DraftStore:
    """File store when a storage directory is configured, memory otherwise."""
    if settings.DRAFT_STORAGE_DIR:
        logger.info(f"{LOG_PREFIX} Drafts stored in {settings.DRAFT_STORAGE_DIR}")
        return FileDraftStore(settings.DRAFT_STORAGE_DIR, max_bytes=settings.DRAFT_MAX_BYTES)
    logger.warning(f"{LOG_PREFIX} DRAFT_STORAGE_DIR not set, drafts are kept in memory only")
    return MemoryDraftStore(max_bytes=settings.DRAFT_MAX_BYTES)


def build_crm_headers(settings: Settings) -> dict:
    headers = {
        "Accept": "application/json",
        "Version": settings.CRM_API_VERSION,
    }
    if settings.CRM_API_TOKEN is not None:
        headers["Authorization"] = f"Bearer {settings.CRM_API_TOKEN.get_secret_value()}"
    return headers


def create_app(
    settings: Optional[Settings] = None,
    crm_transport: Optional[httpx.AsyncBaseTransport] = None,
    draft_store: Optional[DraftStore] = None,
) -> FastAPI:
    """
    Create the gateway application.

    Args:
        settings: Settings to use (default: cached environment settings)
        crm_transport: Base transport for CRM calls (default: real network)
        draft_store: Draft store to use (default: built from settings)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logging.basicConfig(
            level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )

        coordinator = create_request_coordinator(
            CoordinatorConfig(rate_limit_seconds=settings.RATE_LIMIT_SECONDS)
        )
        crm_client = create_coordinated_client(
            coordinator=coordinator,
            base_url=settings.CRM_BASE_URL,
            timeout=settings.CRM_TIMEOUT_SECONDS,
            transport=crm_transport,
            headers=build_crm_headers(settings),
        )

        app.state.settings = settings
        app.state.coordinator = coordinator
        app.state.crm_client = crm_client
        app.state.draft_store = draft_store or build_draft_store(settings)

        logger.info(
            f"{LOG_PREFIX} {settings.APP_NAME} started "
            f"(environment={settings.ENVIRONMENT}, crm={settings.CRM_BASE_URL})"
        )
        try:
            yield
        finally:
            await crm_client.aclose()
            coordinator.close()
            logger.info(f"{LOG_PREFIX} {settings.APP_NAME} stopped")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(crm.router, prefix="/api/crm", tags=["CRM"])
    app.include_router(drafts.router, prefix="/api/drafts", tags=["Drafts"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "practice_gateway.main:app",
        host=_settings.HOST,
        port=_settings.PORT,
    )
