"""Pydantic schemas for API request/response models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from club_payments.services.aggregator import MonthClassification
from club_payments.status import LifecycleStatus, PaymentStatus


# ============================================================================
# Payment status schemas
# ============================================================================


class PaymentStatusResponse(BaseModel):
    """Schema for a resolved payment status."""

    model_config = ConfigDict(from_attributes=True)

    player_id: str
    status: PaymentStatus
    status_since: datetime
    source: str
    label: str
    color: str


class StatusUpdateRequest(BaseModel):
    """Schema for setting a player's paid/unpaid status."""

    status: PaymentStatus
    updated_by: str = "app_user"
    year: int | None = Field(default=None, ge=2000, le=2100)
    month: int | None = Field(default=None, ge=1, le=12)


class StatusUpdateResponse(BaseModel):
    """Schema for the outcome of a status update."""

    player_id: str
    status: PaymentStatus
    year: int
    month: int
    updated_at: datetime
    updated_by: str | None = None
    last_payment_date: datetime | None = None
    aggregate_updated: bool


class LifecycleUpdateRequest(BaseModel):
    """Schema for setting an admin lifecycle status."""

    status: LifecycleStatus
    updated_by: str = "app_user"


class LifecycleUpdateResponse(StatusUpdateResponse):
    """Schema for the outcome of a lifecycle status update."""

    lifecycle_status: LifecycleStatus


class LifecycleStatusResponse(BaseModel):
    """Schema for a player's displayed lifecycle status."""

    player_id: str
    lifecycle_status: LifecycleStatus
    label: str
    color: str


# ============================================================================
# History schemas
# ============================================================================


class PaymentHistoryItem(BaseModel):
    """Schema for one month of payment history."""

    model_config = ConfigDict(from_attributes=True)

    year: int
    month: int
    status: PaymentStatus
    updated_at: datetime
    updated_by: str | None = None


class PaymentHistoryResponse(BaseModel):
    """Schema for a player's payment history."""

    player_id: str
    items: list[PaymentHistoryItem]
    total: int


# ============================================================================
# Team schemas
# ============================================================================


class MonthlyStatusResponse(BaseModel):
    """Schema for a team's monthly classification map."""

    team_id: str
    year: int
    months: dict[str, MonthClassification]


class TeamRosterEntry(BaseModel):
    """Schema for one player's status in a month roster."""

    model_config = ConfigDict(from_attributes=True)

    player_id: str
    name: str | None = None
    status: PaymentStatus
    label: str
    color: str
    updated_at: datetime | None = None
    updated_by: str | None = None


class TeamRosterResponse(BaseModel):
    """Schema for a team's per-player statuses in one month."""

    team_id: str
    year: int
    month: int
    players: list[TeamRosterEntry]
    total_players: int
    paid_players: int
    unpaid_players: int


# ============================================================================
# Refresh schemas
# ============================================================================


class RefreshVersionsResponse(BaseModel):
    """Schema for current invalidation versions."""

    versions: dict[str, int]


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
