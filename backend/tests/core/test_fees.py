"""Fee Calculator - late fee boundaries and rounding.

Tests:
    - Not late (before, at due date) -> 0
    - Partial days round up to whole days
    - Rate 0.20/day: +1 day 0.20, +5 days 1.00, +6 days 1.20
    - Negative rate is a ValueError
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from lending.core.fees import ZERO, days_late, late_fee, to_money

DUE = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)
RATE = Decimal("0.20")


def test_returned_before_due_date_is_free():
    assert late_fee(DUE, DUE - timedelta(days=1), RATE) == ZERO


def test_returned_at_exact_due_instant_is_free():
    assert late_fee(DUE, DUE, RATE) == ZERO


def test_one_day_late():
    assert late_fee(DUE, DUE + timedelta(days=1), RATE) == Decimal("0.20")


def test_five_days_late():
    assert late_fee(DUE, DUE + timedelta(days=5), RATE) == Decimal("1.00")


def test_six_days_late():
    assert late_fee(DUE, DUE + timedelta(days=6), RATE) == Decimal("1.20")


def test_partial_day_counts_as_whole_day():
    assert days_late(DUE, DUE + timedelta(minutes=1)) == 1
    assert late_fee(DUE, DUE + timedelta(days=2, hours=1), RATE) == Decimal("0.60")


def test_float_rate_does_not_drift():
    assert late_fee(DUE, DUE + timedelta(days=3), 0.1) == Decimal("0.30")


def test_sub_cent_rate_rounds_half_up():
    assert late_fee(DUE, DUE + timedelta(days=1), Decimal("0.005")) == Decimal("0.01")


def test_zero_rate_is_free():
    assert late_fee(DUE, DUE + timedelta(days=30), Decimal("0")) == ZERO


def test_negative_rate_raises():
    with pytest.raises(ValueError):
        late_fee(DUE, DUE + timedelta(days=1), Decimal("-0.20"))


def test_to_money_quantizes_to_cents():
    assert to_money("3") == Decimal("3.00")
    assert to_money(Decimal("1.005")) == Decimal("1.01")
