"""Payment status vocabulary.

Three vocabularies exist on the wire:
- storage (monthly_payment.status): paid / not_paid
- resolver and UI: paid / unpaid
- admin lifecycle (player aggregate): no_data / on_trial / paid / unpaid / trial_ended

Every conversion between them goes through this module.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum

from club_payments.errors import InvalidStatusError

DEFAULT_TRIAL_DAYS = 30


class StoredPaymentStatus(str, Enum):
    """Status values persisted on payment records."""

    PAID = "paid"
    NOT_PAID = "not_paid"


class PaymentStatus(str, Enum):
    """Status values returned by the resolver and shown in the UI."""

    PAID = "paid"
    UNPAID = "unpaid"


class LifecycleStatus(str, Enum):
    """Admin-facing lifecycle status kept on the player aggregate."""

    NO_DATA = "no_data"
    ON_TRIAL = "on_trial"
    PAID = "paid"
    UNPAID = "unpaid"
    TRIAL_ENDED = "trial_ended"


# A trial never counts as paid.
_LIFECYCLE_TO_UI: dict[LifecycleStatus, PaymentStatus] = {
    LifecycleStatus.PAID: PaymentStatus.PAID,
    LifecycleStatus.NO_DATA: PaymentStatus.UNPAID,
    LifecycleStatus.ON_TRIAL: PaymentStatus.UNPAID,
    LifecycleStatus.UNPAID: PaymentStatus.UNPAID,
    LifecycleStatus.TRIAL_ENDED: PaymentStatus.UNPAID,
}

_LABELS: dict[str, str] = {
    "paid": "Paid",
    "unpaid": "Not Paid",
    "not_paid": "Not Paid",
    "on_trial": "On Trial",
    "trial_ended": "Trial Ended",
    "no_data": "No Data",
}

_COLORS: dict[str, str] = {
    "paid": "#4CAF50",
    "unpaid": "#F44336",
    "not_paid": "#F44336",
    "on_trial": "#2196F3",
    "trial_ended": "#607D8B",
    "no_data": "#9E9E9E",
}


def to_ui(stored: StoredPaymentStatus | str) -> PaymentStatus:
    """Convert a storage status to its UI counterpart.

    Raw strings are accepted because rows come back from the store untyped.
    Anything that is not exactly ``paid`` reads as unpaid.
    """
    if stored == StoredPaymentStatus.PAID:
        return PaymentStatus.PAID
    return PaymentStatus.UNPAID


def to_storage(status: PaymentStatus | str) -> StoredPaymentStatus:
    """Convert a UI status to the value persisted on payment records."""
    if status == PaymentStatus.PAID:
        return StoredPaymentStatus.PAID
    return StoredPaymentStatus.NOT_PAID


def lifecycle_to_ui(status: LifecycleStatus | str) -> PaymentStatus:
    """Collapse an admin lifecycle status onto the binary resolver status."""
    return _LIFECYCLE_TO_UI[parse_lifecycle_status(status)]


def parse_payment_status(value: str) -> PaymentStatus:
    """Strictly parse a UI status coming from a caller."""
    try:
        return PaymentStatus(value)
    except ValueError:
        raise InvalidStatusError(value, [s.value for s in PaymentStatus]) from None


def parse_lifecycle_status(value: LifecycleStatus | str) -> LifecycleStatus:
    """Strictly parse an admin lifecycle status."""
    try:
        return LifecycleStatus(value)
    except ValueError:
        raise InvalidStatusError(value, [s.value for s in LifecycleStatus]) from None


def is_paid_aggregate(payment_status: str | None, player_status: str | None) -> bool:
    """Whether the legacy aggregate fields imply the player has paid."""
    return payment_status == "paid" or player_status == "paid"


def effective_lifecycle_status(
    stored: LifecycleStatus | str | None,
    created_at: datetime | None,
    now: datetime,
    trial_days: int = DEFAULT_TRIAL_DAYS,
) -> LifecycleStatus:
    """Lifecycle status as it should be displayed at ``now``.

    ``on_trial`` turns into ``trial_ended`` once the trial period has elapsed
    since the player was created. Unknown or missing values read as ``no_data``.
    """
    if not stored:
        return LifecycleStatus.NO_DATA
    try:
        status = LifecycleStatus(stored)
    except ValueError:
        if stored == StoredPaymentStatus.NOT_PAID:
            return LifecycleStatus.UNPAID
        return LifecycleStatus.NO_DATA

    if status is LifecycleStatus.ON_TRIAL and created_at is not None:
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        if now - created_at >= timedelta(days=trial_days):
            return LifecycleStatus.TRIAL_ENDED
    return status


def status_label(value: str | None) -> str:
    """Human readable label for any status vocabulary value."""
    if not value:
        return _LABELS["not_paid"]
    return _LABELS.get(value.lower(), _LABELS["not_paid"])


def status_color(value: str | None) -> str:
    """Display color for any status vocabulary value."""
    if not value:
        return _COLORS["not_paid"]
    return _COLORS.get(value.lower(), _COLORS["not_paid"])
