"""FastAPI dependencies for the process-wide components held on app.state."""

import httpx
from fastapi import Request

from draft_persistence import DraftStore
from request_coordinator import RequestCoordinator

from .config import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_coordinator(request: Request) -> RequestCoordinator:
    return request.app.state.coordinator


def get_crm_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.crm_client


def get_draft_store(request: Request) -> DraftStore:
    return request.app.state.draft_store
