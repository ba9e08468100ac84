"""Payment status services."""

from club_payments.services.aggregator import (
    MonthClassification,
    MonthlyStatusAggregator,
    MonthRoster,
    MonthTally,
    RosterEntry,
    classify_months,
    tally_months,
)
from club_payments.services.periods import YearMonth, month_key, utc_now
from club_payments.services.resolver import (
    PaymentHistoryEntry,
    PaymentStatusResolver,
    PlayerPaymentStatus,
)
from club_payments.services.writer import (
    LifecycleUpdateResult,
    PaymentStatusWriter,
    StatusUpdateResult,
)

__all__ = [
    "MonthClassification",
    "MonthlyStatusAggregator",
    "MonthRoster",
    "MonthTally",
    "RosterEntry",
    "classify_months",
    "tally_months",
    "YearMonth",
    "month_key",
    "utc_now",
    "PaymentHistoryEntry",
    "PaymentStatusResolver",
    "PlayerPaymentStatus",
    "LifecycleUpdateResult",
    "PaymentStatusWriter",
    "StatusUpdateResult",
]
