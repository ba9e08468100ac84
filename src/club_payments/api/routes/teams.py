"""Team monthly status endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, Query

from club_payments.api.dependencies import PaymentService
from club_payments.api.schemas import (
    ErrorResponse,
    MonthlyStatusResponse,
    TeamRosterEntry,
    TeamRosterResponse,
)
from club_payments.status import status_color, status_label

router = APIRouter(prefix="/teams", tags=["teams"])

TeamId = Annotated[str, Path(min_length=1, max_length=64)]
Year = Annotated[int, Query(ge=2000, le=2100)]


@router.get(
    "/{team_id}/monthly-status",
    response_model=MonthlyStatusResponse,
    responses={503: {"model": ErrorResponse}},
)
async def get_monthly_status(
    service: PaymentService,
    team_id: TeamId,
    year: Year,
) -> MonthlyStatusResponse:
    """Classify each month of the year as all_paid or not_all_paid for the team."""
    months = await service.team_month_status(team_id, year)
    return MonthlyStatusResponse(team_id=team_id, year=year, months=months)


@router.get(
    "/{team_id}/payments",
    response_model=TeamRosterResponse,
    responses={503: {"model": ErrorResponse}},
)
async def get_team_payments(
    service: PaymentService,
    team_id: TeamId,
    year: Year,
    month: Annotated[int, Query(ge=1, le=12)],
) -> TeamRosterResponse:
    """List every player of the team with their status for one month."""
    roster = await service.team_month_roster(team_id, year, month)
    return TeamRosterResponse(
        team_id=roster.team_id,
        year=roster.year,
        month=roster.month,
        players=[
            TeamRosterEntry(
                player_id=entry.player_id,
                name=entry.name,
                status=entry.status,
                label=status_label(entry.status.value),
                color=status_color(entry.status.value),
                updated_at=entry.updated_at,
                updated_by=entry.updated_by,
            )
            for entry in roster.entries
        ],
        total_players=roster.total_players,
        paid_players=roster.paid_players,
        unpaid_players=roster.unpaid_players,
    )
