"""Reservation Record - invariants and state transitions.

Tests:
    - new_reservation is PENDING, due one borrow period later, carries the flat fee
    - Legal edges: PENDING->ACTIVE, ACTIVE->LATE, ACTIVE/LATE->RETURNED/CONVERTED
    - Illegal edges raise InvalidTransitionError
    - return_date set iff finalized; negative fees rejected
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from lending.core.domain_types import ReservationStatus
from lending.core.errors import InvalidTransitionError, InvariantViolationError
from lending.core.policy import LendingPolicy
from lending.core.reservation import (
    ReservationRecord, activate, convert_to_purchase, current_late_fee, mark_late,
    mark_late_reminder_sent, mark_reminder_sent, mark_returned, new_reservation,
    with_due_date,
)

NOW = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)
POLICY = LendingPolicy()
RATE = POLICY.late_fee_per_day


def _active() -> ReservationRecord:
    return activate(new_reservation(uuid4(), uuid4(), NOW, POLICY))


def test_new_reservation_defaults():
    r = new_reservation(uuid4(), uuid4(), NOW, POLICY)
    assert r.status == ReservationStatus.PENDING
    assert r.borrow_date == NOW
    assert r.due_date == NOW + timedelta(days=7)
    assert r.base_fee == Decimal("3.00")
    assert r.late_fee == Decimal("0.00")
    assert r.return_date is None
    assert r.id is None


def test_activate_only_from_pending():
    r = _active()
    assert r.status == ReservationStatus.ACTIVE
    with pytest.raises(InvalidTransitionError):
        activate(r)


def test_mark_late_recomputes_fee():
    r = _active()
    late = mark_late(r, r.due_date + timedelta(days=3), RATE)
    assert late.status == ReservationStatus.LATE
    assert late.late_fee == Decimal("0.60")


def test_mark_late_is_noop_on_finalized():
    returned = mark_returned(_active(), NOW + timedelta(days=1), Decimal("0"))
    assert mark_late(returned, NOW + timedelta(days=30), RATE) is returned


def test_mark_late_from_pending_raises():
    with pytest.raises(InvalidTransitionError):
        mark_late(new_reservation(uuid4(), uuid4(), NOW, POLICY), NOW, RATE)


def test_mark_returned_sets_return_date_and_fee():
    when = NOW + timedelta(days=10)
    r = mark_returned(_active(), when, Decimal("0.60"))
    assert r.status == ReservationStatus.RETURNED
    assert r.return_date == when
    assert r.late_fee == Decimal("0.60")
    assert r.total_fee == Decimal("3.60")
    assert r.is_finalized and not r.is_open


def test_returned_cannot_be_returned_again():
    r = mark_returned(_active(), NOW, Decimal("0"))
    with pytest.raises(InvalidTransitionError):
        mark_returned(r, NOW, Decimal("0"))
    with pytest.raises(InvalidTransitionError):
        convert_to_purchase(r, NOW, Decimal("9.99"))


def test_convert_caps_fee_at_retail_price():
    r = convert_to_purchase(_active(), NOW + timedelta(days=60), Decimal("9.99"))
    assert r.status == ReservationStatus.CONVERTED_TO_PURCHASE
    assert r.late_fee == Decimal("9.99")
    assert r.return_date is not None


def test_current_late_fee_frozen_once_finalized():
    r = mark_returned(_active(), NOW + timedelta(days=8), Decimal("0.20"))
    assert current_late_fee(r, NOW + timedelta(days=100), RATE) == Decimal("0.20")


def test_reminder_flags():
    r = mark_late_reminder_sent(mark_reminder_sent(_active()))
    assert r.reminder_sent and r.late_reminder_sent


def test_with_due_date_only_touches_due_date():
    r = _active()
    moved = with_due_date(r, NOW - timedelta(days=2))
    assert moved.due_date == NOW - timedelta(days=2)
    assert moved.status == r.status and moved.late_fee == r.late_fee


def test_return_date_without_final_status_is_invariant_violation():
    with pytest.raises(InvariantViolationError):
        replace(_active(), return_date=NOW)


def test_final_status_without_return_date_is_invariant_violation():
    with pytest.raises(InvariantViolationError):
        replace(_active(), status=ReservationStatus.RETURNED)


def test_negative_fee_is_invariant_violation():
    with pytest.raises(InvariantViolationError):
        replace(_active(), late_fee=Decimal("-1"))
