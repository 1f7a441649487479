"""Sweep Rules - selection predicates and the conversion decision.

Tests:
    - Due-soon window is [start of today, start of today + N + 1 days)
    - Late-reminder cutoff is strictly more than M days past due
    - Flags exclude already-reminded reservations
    - Conversion only for LATE records whose accrued fee reached the retail price
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from lending.core.domain_types import ReservationStatus
from lending.core.policy import LendingPolicy
from lending.core.reservation import (
    activate, mark_late, mark_reminder_sent, mark_returned, new_reservation,
)
from lending.core.sweeps import (
    decide_conversion, due_soon_window, is_due_soon, is_late_for_reminder,
    needs_late_promotion,
)

NOW = datetime(2026, 3, 10, 15, 30, tzinfo=timezone.utc)
POLICY = LendingPolicy()


def _due(due: datetime):
    r = activate(new_reservation(uuid4(), uuid4(), due - timedelta(days=7), POLICY))
    return replace(r, due_date=due)


def test_due_soon_window_bounds():
    start, end = due_soon_window(NOW, 2)
    assert start == datetime(2026, 3, 10, tzinfo=timezone.utc)
    assert end == datetime(2026, 3, 13, tzinfo=timezone.utc)


def test_due_soon_includes_earlier_today_and_end_of_window():
    assert is_due_soon(_due(NOW.replace(hour=1)), NOW, 2)
    assert is_due_soon(_due(datetime(2026, 3, 12, 23, 59, tzinfo=timezone.utc)), NOW, 2)


def test_due_soon_excludes_outside_window():
    assert not is_due_soon(_due(datetime(2026, 3, 13, tzinfo=timezone.utc)), NOW, 2)
    assert not is_due_soon(_due(datetime(2026, 3, 9, 23, 0, tzinfo=timezone.utc)), NOW, 2)


def test_due_soon_skips_flagged_and_returned():
    r = _due(NOW + timedelta(days=1))
    assert not is_due_soon(mark_reminder_sent(r), NOW, 2)
    assert not is_due_soon(mark_returned(r, NOW, Decimal("0")), NOW, 2)


def test_late_promotion_only_for_active_past_due():
    r = _due(NOW - timedelta(minutes=1))
    assert needs_late_promotion(r, NOW)
    assert not needs_late_promotion(mark_late(r, NOW, POLICY.late_fee_per_day), NOW)
    assert not needs_late_promotion(_due(NOW + timedelta(minutes=1)), NOW)


def test_late_reminder_cutoff():
    assert is_late_for_reminder(_due(NOW - timedelta(days=7, seconds=1)), NOW, 7)
    assert not is_late_for_reminder(_due(NOW - timedelta(days=7)), NOW, 7)


def test_conversion_decision_threshold():
    late = mark_late(_due(NOW - timedelta(days=50)), NOW, POLICY.late_fee_per_day)
    decision = decide_conversion(late, NOW, Decimal("9.99"), POLICY)
    assert decision.convert
    assert decision.accrued_fee == Decimal("10.00")
    assert decision.purchase_amount == Decimal("9.99")


def test_no_conversion_below_retail_price():
    late = mark_late(_due(NOW - timedelta(days=10)), NOW, POLICY.late_fee_per_day)
    assert not decide_conversion(late, NOW, Decimal("9.99"), POLICY).convert


def test_no_conversion_for_active_records():
    r = _due(NOW - timedelta(days=60))
    assert r.status == ReservationStatus.ACTIVE
    assert not decide_conversion(r, NOW, Decimal("9.99"), POLICY).convert
