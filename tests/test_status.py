"""Tests for the status vocabulary."""

from datetime import datetime, timedelta, timezone

import pytest

from club_payments.errors import InvalidStatusError
from club_payments.status import (
    LifecycleStatus,
    PaymentStatus,
    StoredPaymentStatus,
    effective_lifecycle_status,
    is_paid_aggregate,
    lifecycle_to_ui,
    parse_payment_status,
    status_color,
    status_label,
    to_storage,
    to_ui,
)

NOW = datetime(2025, 4, 15, tzinfo=timezone.utc)


class TestConversions:
    """Storage <-> UI conversions."""

    def test_to_ui(self):
        """paid stays paid, everything else reads unpaid."""
        assert to_ui(StoredPaymentStatus.PAID) is PaymentStatus.PAID
        assert to_ui(StoredPaymentStatus.NOT_PAID) is PaymentStatus.UNPAID
        assert to_ui("paid") is PaymentStatus.PAID
        assert to_ui("not_paid") is PaymentStatus.UNPAID
        assert to_ui("pending") is PaymentStatus.UNPAID

    def test_to_storage(self):
        """unpaid is stored as not_paid."""
        assert to_storage(PaymentStatus.PAID) is StoredPaymentStatus.PAID
        assert to_storage(PaymentStatus.UNPAID) is StoredPaymentStatus.NOT_PAID
        assert to_storage("unpaid") is StoredPaymentStatus.NOT_PAID

    def test_conversions_are_inverse(self):
        """Every UI status survives a trip through storage."""
        for status in PaymentStatus:
            assert to_ui(to_storage(status)) is status

    def test_parse_rejects_unknown_status(self):
        """Only paid/unpaid are accepted from callers."""
        assert parse_payment_status("unpaid") is PaymentStatus.UNPAID
        with pytest.raises(InvalidStatusError) as exc_info:
            parse_payment_status("not_paid")
        assert exc_info.value.value == "not_paid"
        assert "unpaid" in exc_info.value.allowed


class TestLifecycle:
    """Admin lifecycle statuses."""

    @pytest.mark.parametrize(
        "lifecycle, expected",
        [
            (LifecycleStatus.PAID, PaymentStatus.PAID),
            (LifecycleStatus.NO_DATA, PaymentStatus.UNPAID),
            (LifecycleStatus.ON_TRIAL, PaymentStatus.UNPAID),
            (LifecycleStatus.UNPAID, PaymentStatus.UNPAID),
            (LifecycleStatus.TRIAL_ENDED, PaymentStatus.UNPAID),
        ],
    )
    def test_collapse_to_binary(self, lifecycle, expected):
        """Only paid collapses to paid."""
        assert lifecycle_to_ui(lifecycle) is expected

    def test_collapse_rejects_unknown(self):
        with pytest.raises(InvalidStatusError):
            lifecycle_to_ui("pending")

    def test_trial_still_running(self):
        created = NOW - timedelta(days=29, hours=23)
        assert (
            effective_lifecycle_status("on_trial", created, NOW)
            is LifecycleStatus.ON_TRIAL
        )

    def test_trial_ends_after_thirty_days(self):
        """on_trial reads as trial_ended once 30 days have passed."""
        created = NOW - timedelta(days=30)
        assert (
            effective_lifecycle_status("on_trial", created, NOW)
            is LifecycleStatus.TRIAL_ENDED
        )

    def test_trial_expiry_accepts_naive_created_at(self):
        created = (NOW - timedelta(days=45)).replace(tzinfo=None)
        assert (
            effective_lifecycle_status("on_trial", created, NOW)
            is LifecycleStatus.TRIAL_ENDED
        )

    def test_trial_days_configurable(self):
        created = NOW - timedelta(days=10)
        assert (
            effective_lifecycle_status("on_trial", created, NOW, trial_days=7)
            is LifecycleStatus.TRIAL_ENDED
        )

    def test_other_statuses_unchanged(self):
        created = NOW - timedelta(days=400)
        assert effective_lifecycle_status("paid", created, NOW) is LifecycleStatus.PAID
        assert effective_lifecycle_status("not_paid", created, NOW) is LifecycleStatus.UNPAID
        assert effective_lifecycle_status(None, created, NOW) is LifecycleStatus.NO_DATA
        assert effective_lifecycle_status("garbage", created, NOW) is LifecycleStatus.NO_DATA


class TestAggregateRule:
    def test_either_field_paid_means_paid(self):
        assert is_paid_aggregate("paid", None) is True
        assert is_paid_aggregate("not_paid", "paid") is True
        assert is_paid_aggregate("on_trial", "active") is False
        assert is_paid_aggregate(None, None) is False


class TestDisplayHelpers:
    def test_labels(self):
        assert status_label("paid") == "Paid"
        assert status_label("unpaid") == "Not Paid"
        assert status_label("not_paid") == "Not Paid"
        assert status_label("on_trial") == "On Trial"
        assert status_label("trial_ended") == "Trial Ended"
        assert status_label("") == "Not Paid"
        assert status_label("PAID") == "Paid"

    def test_colors(self):
        assert status_color("paid") == "#4CAF50"
        assert status_color("unpaid") == "#F44336"
        assert status_color("on_trial") == "#2196F3"
        assert status_color(None) == "#F44336"
