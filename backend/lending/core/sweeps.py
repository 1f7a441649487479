"""Sweep Rules - pure predicates and decisions behind the reconciliation jobs.

Invariants:
    - Same rules the repositories encode in SQL; services re-check each loaded
      record with these before mutating it (a row may have changed since the query)
    - Flags (reminder_sent, late_reminder_sent) are the only idempotency guard
    - Dates are compared in UTC; "today" starts at UTC midnight
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from lending.core.domain_types import REMINDABLE_STATUSES, ReservationStatus
from lending.core.fees import ZERO
from lending.core.policy import LendingPolicy
from lending.core.reservation import ReservationRecord, current_late_fee


def start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def due_soon_window(now: datetime, days: int) -> tuple[datetime, datetime]:
    """[start of today, end of today + days) as a half-open interval."""
    start = start_of_day(now)
    return start, start + timedelta(days=days + 1)


def overdue_cutoff(now: datetime, days: int) -> datetime:
    """Due dates strictly before this are more than `days` days in the past."""
    return now - timedelta(days=days)


def needs_late_promotion(r: ReservationRecord, now: datetime) -> bool:
    return (
        r.status == ReservationStatus.ACTIVE
        and r.return_date is None
        and r.due_date < now
    )


def is_due_soon(r: ReservationRecord, now: datetime, days: int) -> bool:
    start, end = due_soon_window(now, days)
    return (
        r.status in REMINDABLE_STATUSES
        and not r.reminder_sent
        and r.return_date is None
        and start <= r.due_date < end
    )


def is_late_for_reminder(r: ReservationRecord, now: datetime, days: int) -> bool:
    return (
        r.status in REMINDABLE_STATUSES
        and not r.late_reminder_sent
        and r.return_date is None
        and r.due_date < overdue_cutoff(now, days)
    )


@dataclass(frozen=True)
class ConversionDecision:
    convert: bool
    accrued_fee: Decimal
    purchase_amount: Decimal


def decide_conversion(
    r: ReservationRecord, now: datetime, retail_price: Decimal, policy: LendingPolicy,
) -> ConversionDecision:
    """LATE reservations whose accrued fee reached the retail price get converted."""
    accrued = current_late_fee(r, now, policy.late_fee_per_day)
    convert = (
        r.status == ReservationStatus.LATE
        and accrued > ZERO
        and accrued >= retail_price
    )
    return ConversionDecision(
        convert=convert,
        accrued_fee=accrued,
        purchase_amount=min(accrued, retail_price),
    )
