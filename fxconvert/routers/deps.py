from __future__ import annotations

import uuid

from fastapi import Request

from fxconvert.core.config import Settings
from fxconvert.services.orchestrator import ConversionOrchestrator
from fxconvert.services.tasks import ConversionTaskRegistry

SESSION_COOKIE = "fx_session"
SESSION_HEADER = "x-session-id"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_orchestrator(request: Request) -> ConversionOrchestrator:
    return request.app.state.orchestrator


def get_registry(request: Request) -> ConversionTaskRegistry:
    return request.app.state.tasks


def get_session_id(request: Request) -> str:
    """Session key for the task registry; a fresh one when the client sends none."""
    return (
        request.headers.get(SESSION_HEADER)
        or request.cookies.get(SESSION_COOKIE)
        or uuid.uuid4().hex
    )
