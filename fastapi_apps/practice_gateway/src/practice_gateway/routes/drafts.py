"""Server-side draft endpoints.

These give clients a remote target for auto-save callbacks and let a draft
written on one device be read back on another.
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel

from draft_persistence import AutoSaveOptions, DraftSession, DraftStore, ManualTeardownSignal

from ..config import Settings
from ..dependencies import get_app_settings, get_draft_store

router = APIRouter()


class DraftBody(BaseModel):
    """Request body for saving a draft."""

    data: Any


def open_session(key: str, store: DraftStore, settings: Settings) -> DraftSession:
    """Build an unstarted session; only its durable store operations are used."""
    return DraftSession(
        AutoSaveOptions(key=key),
        store,
        teardown=ManualTeardownSignal(),
        key_prefix=settings.DRAFT_KEY_PREFIX,
    )


@router.get("/{key}")
async def get_draft(
    key: str,
    store: DraftStore = Depends(get_draft_store),
    settings: Settings = Depends(get_app_settings),
):
    """Return the stored draft record for a key."""
    record = open_session(key, store, settings).load_draft()
    if record is None:
        raise HTTPException(status_code=404, detail=f"No draft for {key}")
    return record.model_dump(mode="json")


@router.put("/{key}")
async def put_draft(
    key: str,
    body: DraftBody,
    store: DraftStore = Depends(get_draft_store),
    settings: Settings = Depends(get_app_settings),
):
    """Save a draft, overwriting any previous record for the key."""
    session = open_session(key, store, settings)
    if not session.save_to_store(body.data):
        raise HTTPException(status_code=507, detail=f"Draft {key} could not be stored")
    record = session.load_draft()
    if record is None:
        raise HTTPException(status_code=500, detail=f"Draft {key} was not readable after save")
    return record.model_dump(mode="json")


@router.delete("/{key}", status_code=204)
async def delete_draft(
    key: str,
    store: DraftStore = Depends(get_draft_store),
    settings: Settings = Depends(get_app_settings),
) -> Response:
    """Remove a draft. Deleting a missing draft is not an error."""
    open_session(key, store, settings).clear_draft()
    return Response(status_code=204)
