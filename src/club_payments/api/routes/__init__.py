"""API routes."""

from club_payments.api.routes.health import router as health_router
from club_payments.api.routes.players import router as players_router
from club_payments.api.routes.refresh import router as refresh_router
from club_payments.api.routes.teams import router as teams_router

__all__ = ["health_router", "players_router", "refresh_router", "teams_router"]
