"""FastAPI application entry point."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from payment_advice import __version__
from payment_advice.api import downloads, maintenance
from payment_advice.api.health import router as health_router
from payment_advice.config import Settings, get_settings
from payment_advice.exceptions import PaymentAdviceError
from payment_advice.maintenance import MaintenanceController, MaintenanceGateMiddleware
from payment_advice.storage import ArtifactReaper, build_artifact_store
from payment_advice.utils.clock import Clock, utc_now
from payment_advice.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Sets up logging, starts the artifact reaper and closes the sink on shutdown.
    """
    settings: Settings = app.state.settings
    setup_logging(settings.log_level, settings.log_format)
    logger.info(
        "service_starting",
        delivery=settings.delivery,
        response_mode=settings.response_mode,
    )

    reaper: ArtifactReaper | None = None
    if app.state.artifacts is not None:
        reaper = ArtifactReaper(app.state.artifacts, settings.reaper_interval_seconds)
        reaper.start()

    try:
        yield
    finally:
        if reaper is not None:
            await reaper.stop()
        if app.state.artifacts is not None:
            await app.state.artifacts.close()
        logger.info("service_stopped")


async def payment_advice_error_handler(_request: Request, exc: PaymentAdviceError) -> JSONResponse:
    """Render a PaymentAdviceError as ``{"error": message}`` with its status code."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed requests as plain 400s like every other validation failure."""
    logger.info("request_validation_failed", errors=len(exc.errors()))
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


def create_app(settings: Settings | None = None, clock: Clock | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of the environment
        clock: Time source for pauses and artifact deadlines

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    clock = clock or utc_now

    app = FastAPI(
        title="Payment Advice Service",
        description=(
            "Fetches payment advice PDFs from the upstream API and delivers them "
            "inline or as short-lived downloadable files."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # State owned by this application instance
    app.state.settings = settings
    app.state.clock = clock
    app.state.maintenance = MaintenanceController()
    app.state.artifacts = build_artifact_store(settings, clock)

    app.add_middleware(MaintenanceGateMiddleware)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(PaymentAdviceError, payment_advice_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)

    # Include routers
    app.include_router(health_router)
    app.include_router(maintenance.router)
    app.include_router(downloads.router)

    return app


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "payment_advice.main:create_app",
        factory=True,
        host=_settings.host,
        port=_settings.port,
    )
