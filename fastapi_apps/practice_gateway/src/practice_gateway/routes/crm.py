"""CRM pass-through routes.

GET requests are forwarded to the configured CRM base URL through the
coordinated client, so identical concurrent reads share one upstream call
and repeated reads of the same URL are spaced by the rate limit.
"""

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from ..config import Settings
from ..dependencies import get_app_settings, get_crm_client

logger = logging.getLogger(__name__)

LOG_PREFIX = "[practice_gateway.crm]"

router = APIRouter()


@router.get("/{path:path}")
async def forward_get(
    path: str,
    request: Request,
    settings: Settings = Depends(get_app_settings),
    client: httpx.AsyncClient = Depends(get_crm_client),
) -> Response:
    """
    Forward a GET to the CRM and return its status and body unchanged.

    A `Cache-Control: no-cache` request header bypasses coalescing and the
    rate limit for this call.
    """
    if settings.CRM_API_TOKEN is None:
        raise HTTPException(status_code=500, detail="CRM API token not configured")

    headers = {}
    cache_control = request.headers.get("cache-control")
    if cache_control:
        headers["Cache-Control"] = cache_control

    try:
        upstream = await client.get(
            f"/{path}",
            params=list(request.query_params.multi_items()),
            headers=headers,
        )
    except httpx.HTTPError as error:
        logger.error(f"{LOG_PREFIX} Upstream request failed for /{path}: {error}")
        raise HTTPException(status_code=502, detail=f"CRM request failed: {error}")

    logger.debug(f"{LOG_PREFIX} /{path} -> {upstream.status_code}")
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type"),
    )
