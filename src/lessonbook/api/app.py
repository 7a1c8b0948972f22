"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lessonbook import __version__
from lessonbook.api.dependencies import close_services, init_services
from lessonbook.api.models import conflict_to_response, error_payload
from lessonbook.api.routes import registrations, trimesters
from lessonbook.config import load_settings
from lessonbook.data_store import StoreError, ensure_tables
from lessonbook.registrations import ConflictError, NotFoundError, ValidationError
from lessonbook.trimesters import InvalidTrimesterError, NoActivePeriodError, TrimesterError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from lessonbook.config import Settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    settings = app.state.settings if app.state.settings is not None else load_settings()
    services = init_services(settings)
    await ensure_tables(services.store)
    logger.info("Registration service started (db=%s)", settings.db_path)

    yield
    # Shutdown
    close_services()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Runtime settings. Loaded from file and environment at
            startup when omitted.
    """
    app = FastAPI(
        title="Lessonbook API",
        description="REST API for music lesson registrations",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include routers
    app.include_router(registrations.router, prefix="/api/v1")
    app.include_router(trimesters.router, prefix="/api/v1")

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain exceptions to APIResponse envelopes."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_payload(str(exc), exc.details or None),
        )

    @app.exception_handler(ConflictError)
    async def conflict_error_handler(_request: Request, exc: ConflictError) -> JSONResponse:
        conflicts = [conflict_to_response(c).model_dump() for c in exc.conflicts]
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=error_payload(str(exc), conflicts),
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=error_payload(str(exc)),
        )

    @app.exception_handler(InvalidTrimesterError)
    async def invalid_trimester_handler(
        _request: Request, exc: InvalidTrimesterError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_payload(str(exc)),
        )

    @app.exception_handler(NoActivePeriodError)
    async def no_active_period_handler(
        _request: Request, _exc: NoActivePeriodError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=error_payload("No active trimester period"),
        )

    @app.exception_handler(TrimesterError)
    async def trimester_error_handler(_request: Request, exc: TrimesterError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=error_payload(str(exc)),
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(_request: Request, exc: StoreError) -> JSONResponse:
        logger.error("Store failure: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_payload("Internal server error"),
        )


# Default app instance
app = create_app()
