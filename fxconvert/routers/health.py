from fastapi import APIRouter, Depends

from fxconvert.core.config import Settings
from .deps import get_app_settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness and active configuration")
async def health(settings: Settings = Depends(get_app_settings)):
    return {
        "status": "ok",
        "provider": settings.exchange_rate_provider,
        "strategy": settings.conversion_strategy,
        "concurrent_legs": settings.concurrent_legs,
    }
