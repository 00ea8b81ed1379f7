from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from fxconvert.core.config import Settings
from fxconvert.services.currency_codes import currency_labels
from fxconvert.services.orchestrator import ConversionOrchestrator
from fxconvert.services.tasks import ConversionTaskRegistry
from .deps import (
    SESSION_COOKIE,
    get_app_settings,
    get_orchestrator,
    get_registry,
    get_session_id,
)

router = APIRouter(tags=["ui"])

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def _form_context(
    settings: Settings,
    amount: str = "",
    from_label: Optional[str] = None,
    to_label: Optional[str] = None,
    output: str = "",
    ok: bool = True,
) -> Dict[str, Any]:
    labels = currency_labels()
    return {
        "app_name": settings.app_name,
        "version": settings.version,
        "labels": labels,
        "amount": amount,
        "from_label": from_label or labels[0],
        "to_label": to_label or labels[0],
        "output": output,
        "ok": ok,
    }


def _render(request: Request, context: Dict[str, Any], session_id: str) -> HTMLResponse:
    response = templates.TemplateResponse(request, "convert.html", context)
    if request.cookies.get(SESSION_COOKIE) != session_id:
        response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
    return response


@router.get("/ui", response_class=HTMLResponse)
async def ui_form(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    session_id: str = Depends(get_session_id),
):
    """Single-screen converter: amount input, two pickers, one output region."""
    return _render(request, _form_context(settings), session_id)


@router.post("/ui", response_class=HTMLResponse)
async def ui_convert(
    request: Request,
    amount: str = Form(""),
    from_label: str = Form(...),
    to_label: str = Form(...),
    settings: Settings = Depends(get_app_settings),
    orchestrator: ConversionOrchestrator = Depends(get_orchestrator),
    registry: ConversionTaskRegistry = Depends(get_registry),
    session_id: str = Depends(get_session_id),
):
    outcome = await registry.submit(
        session_id, lambda: orchestrator.run(amount, from_label, to_label)
    )
    context = _form_context(
        settings,
        amount=amount,
        from_label=from_label,
        to_label=to_label,
        output=outcome.text,
        ok=outcome.ok,
    )
    return _render(request, context, session_id)
