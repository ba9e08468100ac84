"""Player payment status endpoints."""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, status

from club_payments.api.dependencies import PaymentService
from club_payments.api.schemas import (
    ErrorResponse,
    LifecycleStatusResponse,
    LifecycleUpdateRequest,
    LifecycleUpdateResponse,
    PaymentHistoryItem,
    PaymentHistoryResponse,
    PaymentStatusResponse,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from club_payments.services.writer import StatusUpdateResult
from club_payments.status import status_color, status_label

router = APIRouter(prefix="/players", tags=["players"])

PlayerId = Annotated[str, Path(min_length=1, max_length=64)]


def _update_response(result: StatusUpdateResult) -> dict:
    record = result.record
    return {
        "player_id": record.player_id,
        "status": result.status,
        "year": record.year,
        "month": record.month,
        "updated_at": record.updated_at,
        "updated_by": record.updated_by,
        "last_payment_date": result.last_payment_date,
        "aggregate_updated": result.aggregate_updated,
    }


@router.get(
    "/{player_id}/payment-status",
    response_model=PaymentStatusResponse,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def get_payment_status(
    service: PaymentService,
    player_id: PlayerId,
) -> PaymentStatusResponse:
    """Resolve a player's current payment status."""
    resolved = await service.get_status(player_id)
    if resolved is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No payment status found for player",
        )
    return PaymentStatusResponse(
        player_id=resolved.player_id,
        status=resolved.status,
        status_since=resolved.status_since,
        source=resolved.source,
        label=status_label(resolved.status.value),
        color=status_color(resolved.status.value),
    )


@router.put(
    "/{player_id}/payment-status",
    response_model=StatusUpdateResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def update_payment_status(
    service: PaymentService,
    player_id: PlayerId,
    payload: StatusUpdateRequest,
) -> StatusUpdateResponse:
    """Mark a player paid or unpaid for a month (default: current month)."""
    result = await service.set_status(
        player_id,
        payload.status,
        payload.updated_by,
        year=payload.year,
        month=payload.month,
    )
    return StatusUpdateResponse(**_update_response(result))


@router.get(
    "/{player_id}/lifecycle-status",
    response_model=LifecycleStatusResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_lifecycle_status(
    service: PaymentService,
    player_id: PlayerId,
) -> LifecycleStatusResponse:
    """Admin lifecycle status as displayed now."""
    lifecycle = await service.lifecycle_status(player_id)
    if lifecycle is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Player not found",
        )
    return LifecycleStatusResponse(
        player_id=player_id,
        lifecycle_status=lifecycle,
        label=status_label(lifecycle.value),
        color=status_color(lifecycle.value),
    )


@router.put(
    "/{player_id}/lifecycle-status",
    response_model=LifecycleUpdateResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def update_lifecycle_status(
    service: PaymentService,
    player_id: PlayerId,
    payload: LifecycleUpdateRequest,
) -> LifecycleUpdateResponse:
    """Set an admin lifecycle status for a player."""
    result = await service.set_lifecycle_status(
        player_id, payload.status, payload.updated_by
    )
    return LifecycleUpdateResponse(
        **_update_response(result),
        lifecycle_status=result.lifecycle_status,
    )


@router.get(
    "/{player_id}/payment-history",
    response_model=PaymentHistoryResponse,
)
async def get_payment_history(
    service: PaymentService,
    player_id: PlayerId,
) -> PaymentHistoryResponse:
    """A player's monthly records from last year onward, newest first."""
    entries = await service.payment_history(player_id)
    return PaymentHistoryResponse(
        player_id=player_id,
        items=[PaymentHistoryItem.model_validate(e) for e in entries],
        total=len(entries),
    )
