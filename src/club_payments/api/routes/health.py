"""Health check endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from pydantic import BaseModel
from sqlalchemy import text

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    database: str
    store: str | None = None


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(request: Request) -> HealthResponse:
    """Report database reachability and which payment store backs the service."""
    service = getattr(request.app.state, "payment_service", None)
    store_kind = service.store.kind if service is not None else None

    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        db_status = "not_configured"
    else:
        db_status = "unhealthy"
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            db_status = "healthy"
        except Exception:
            logger.warning("Database health check failed", exc_info=True)

    return HealthResponse(
        status="degraded" if db_status == "unhealthy" else "healthy",
        timestamp=datetime.now(timezone.utc),
        database=db_status,
        store=store_kind,
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check() -> dict[str, str]:
    """Readiness check for container orchestration."""
    return {"status": "ready"}


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}
