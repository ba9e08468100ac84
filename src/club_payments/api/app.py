"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from club_payments.api.routes import (
    health_router,
    players_router,
    refresh_router,
    teams_router,
)
from club_payments.config import get_settings
from club_payments.database import create_schema, dispose_db, init_db
from club_payments.errors import InvalidMonthError, InvalidStatusError, StoreError
from club_payments.service import PaymentStatusService
from club_payments.store.sql import SqlPaymentStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    if getattr(app.state, "payment_service", None) is None:
        settings = get_settings()
        engine, session_factory = init_db()
        await create_schema(engine)
        store = SqlPaymentStore(session_factory, settings.status_function)
        app.state.engine = engine
        app.state.payment_service = PaymentStatusService.from_settings(store, settings)
    yield
    # Shutdown
    if getattr(app.state, "engine", None) is not None:
        await dispose_db()


def create_app(service: PaymentStatusService | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Passing a service skips database setup; the caller owns its store.
    """
    app = FastAPI(
        title="Club Payments API",
        description="Monthly player payment status",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.payment_service = service
    app.state.engine = None

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(StoreError)
    async def store_exception_handler(
        request: Request, exc: StoreError
    ) -> JSONResponse:
        """Backing store unavailable or failing."""
        logger.error("Store failure on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "detail": "Payment store unavailable",
                "code": "STORE_ERROR",
                "context": {"operation": exc.operation},
            },
        )

    @app.exception_handler(InvalidStatusError)
    @app.exception_handler(InvalidMonthError)
    async def validation_exception_handler(
        request: Request, exc: ValueError
    ) -> JSONResponse:
        """Status or month outside the vocabulary."""
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": str(exc), "code": "INVALID_INPUT"},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(players_router, prefix="/api/v1")
    app.include_router(teams_router, prefix="/api/v1")
    app.include_router(refresh_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
