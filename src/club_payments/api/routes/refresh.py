"""Refresh invalidation endpoints.

Remote display surfaces poll these versions the same way in-process
subscribers poll the tracker.
"""

from fastapi import APIRouter

from club_payments.api.dependencies import PaymentService
from club_payments.api.schemas import RefreshVersionsResponse

router = APIRouter(prefix="/refresh", tags=["refresh"])


@router.get("/versions", response_model=RefreshVersionsResponse)
async def get_refresh_versions(service: PaymentService) -> RefreshVersionsResponse:
    """Current version of every tracked category."""
    return RefreshVersionsResponse(versions=service.tracker.snapshot())
