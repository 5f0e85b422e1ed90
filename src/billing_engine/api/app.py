"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from billing_engine.api.routes import health_router, invoices_router, projects_router
from billing_engine.config import get_settings
from billing_engine.database import dispose_db, init_db
from billing_engine.errors import (
    BillingError,
    ConcurrentModificationError,
    DuplicateBillingError,
    InvalidTransitionError,
    NotEditableError,
    NotFoundError,
    RoleInUseError,
    ValidationError,
)
from billing_engine.logging_config import configure_logging

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[BillingError], tuple[int, str]] = {
    NotFoundError: (status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    ValidationError: (status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR"),
    NotEditableError: (status.HTTP_409_CONFLICT, "NOT_EDITABLE"),
    InvalidTransitionError: (status.HTTP_409_CONFLICT, "INVALID_TRANSITION"),
    DuplicateBillingError: (status.HTTP_409_CONFLICT, "DUPLICATE_BILLING"),
    RoleInUseError: (status.HTTP_409_CONFLICT, "ROLE_IN_USE"),
    ConcurrentModificationError: (status.HTTP_409_CONFLICT, "CONCURRENT_MODIFICATION"),
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    init_db()
    yield
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Billing Engine API",
        description="Rate resolution and invoice ledger",
        version=settings.engine_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(BillingError)
    async def billing_error_handler(request: Request, exc: BillingError) -> JSONResponse:
        """Map domain errors to HTTP responses."""
        status_code, code = ERROR_STATUS.get(
            type(exc), (status.HTTP_400_BAD_REQUEST, "BILLING_ERROR")
        )
        return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": code})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(invoices_router, prefix="/api/v1")
    app.include_router(projects_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
