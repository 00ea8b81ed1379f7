from __future__ import annotations

from typing import Dict, List, Union

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from fxconvert.services.currency_codes import currency_labels, resolve
from fxconvert.services.money import round2
from fxconvert.services.orchestrator import ConversionOrchestrator
from fxconvert.services.tasks import ConversionTaskRegistry
from .deps import get_orchestrator, get_registry, get_session_id

"""JSON conversion API.

Endpoints:
    - GET /currencies -> picker labels with their codes, in display order
    - POST /convert   -> run one conversion {amount, from_label, to_label}

Failures keep the {"error", "detail"} body shape used by the app-wide handlers.
"""

router = APIRouter(tags=["convert"])

_ERROR_STATUS: Dict[str, int] = {
    "invalid_amount": 422,
    "api_error": 502,
    "generic_fetch_error": 502,
    "zero_rate": 502,
    "superseded": 409,
    "cancelled": 503,
    "unexpected": 500,
}


class ConvertPayload(BaseModel):
    amount: Union[str, float] = Field(..., description="Amount as typed by the user, e.g. '100' or 100")
    from_label: str = Field(..., description="Source picker label, e.g. 'US Dollar (USD)'")
    to_label: str = Field(..., description="Target picker label, e.g. 'Euro (EUR)'")


class ConversionOut(BaseModel):
    amount: float
    from_label: str
    converted_amount: float
    to_label: str
    text: str


class CurrencyOut(BaseModel):
    label: str
    code: str


@router.get("/currencies", response_model=List[CurrencyOut], summary="List picker currencies")
async def list_currencies():
    return [CurrencyOut(label=label, code=resolve(label)) for label in currency_labels()]


@router.post(
    "/convert",
    response_model=ConversionOut,
    summary="Convert an amount between two currencies at the latest rate",
)
async def convert_amount(
    payload: ConvertPayload,
    orchestrator: ConversionOrchestrator = Depends(get_orchestrator),
    registry: ConversionTaskRegistry = Depends(get_registry),
    session_id: str = Depends(get_session_id),
):
    outcome = await registry.submit(
        session_id,
        lambda: orchestrator.run(str(payload.amount), payload.from_label, payload.to_label),
    )
    if outcome.result is None:
        return JSONResponse(
            status_code=_ERROR_STATUS.get(outcome.error_kind or "unexpected", 500),
            content={"error": outcome.error_kind, "detail": outcome.message},
        )
    result = outcome.result
    return ConversionOut(
        amount=result.amount,
        from_label=result.from_label,
        converted_amount=round2(result.converted_amount),
        to_label=result.to_label,
        text=result.text,
    )
