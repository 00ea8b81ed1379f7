import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import get_settings, Settings
from .core.logging import init_logging, request_context_middleware
from .core import errors
from .routers import convert, health, ui
from .services.orchestrator import ConversionOrchestrator
from .services.rates.base import RateClient
from .services.rates.providers import make_rate_client
from .services.tasks import ConversionTaskRegistry


def create_app(
    settings_override: Settings | None = None,
    rate_client_override: RateClient | None = None,
) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment. Falls back to cached get_settings().
    rate_client_override: inject a rate client (e.g. one backed by
    httpx.MockTransport) instead of the configured provider.
    """
    if settings_override is not None:
        settings_override.init_post_load()
    settings = settings_override or get_settings()
    # Initialize logging early
    init_logging(debug=settings.debug)
    logger = logging.getLogger("fxconvert")
    if settings.missing_api_key and rate_client_override is None:
        logger.warning("EXCHANGE_API_KEY is not set; upstream calls will be rejected")

    rate_client = rate_client_override or make_rate_client(settings)
    tasks = ConversionTaskRegistry()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "starting with provider=%s strategy=%s",
            rate_client.name,
            settings.conversion_strategy,
        )
        yield
        # Outstanding conversions are bound to the app; tear them down with it
        await tasks.shutdown()
        await rate_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        version=settings.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.tasks = tasks
    app.state.orchestrator = ConversionOrchestrator(
        rate_client,
        strategy=settings.conversion_strategy,
        concurrent_legs=settings.concurrent_legs,
    )

    # Middleware (request id / structured logging)
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(StarletteHTTPException, errors.not_found_handler)
    app.add_exception_handler(RequestValidationError, errors.validation_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(convert.router)
    app.include_router(ui.router)

    @app.get("/")
    async def root():
        return {"message": settings.app_name, "version": settings.version}

    return app


app = create_app()
