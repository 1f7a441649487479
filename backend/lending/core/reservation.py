"""Reservation Record - immutable reservation plus its pure state transitions.

Invariants:
    - status is a ReservationStatus
    - return_date is set iff status is RETURNED or CONVERTED_TO_PURCHASE
    - late_fee >= 0 and base_fee >= 0
    - Transitions never mutate; each returns a new record or raises
    - State machine: PENDING -> ACTIVE -> {LATE, RETURNED, CONVERTED_TO_PURCHASE},
      LATE -> {RETURNED, CONVERTED_TO_PURCHASE}

Design Decisions:
    - Callers pass `now` explicitly; nothing in here reads the clock
    - id is None until the repository assigns one on save
"""

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal

from lending.core.domain_types import (
    FINAL_STATUSES, OPEN_STATUSES, ItemId, ReservationId, ReservationStatus, UserId,
)
from lending.core.errors import (
    ErrorContext, InvalidTransitionError, InvariantViolationError,
)
from lending.core.fees import ZERO, late_fee, to_money
from lending.core.policy import LendingPolicy

_RETURNABLE = frozenset({ReservationStatus.ACTIVE, ReservationStatus.LATE})


@dataclass(frozen=True)
class ReservationRecord:
    user_id: UserId
    item_id: ItemId
    status: ReservationStatus
    borrow_date: datetime
    due_date: datetime
    base_fee: Decimal
    late_fee: Decimal = ZERO
    return_date: datetime | None = None
    reminder_sent: bool = False
    late_reminder_sent: bool = False
    id: ReservationId | None = None

    def __post_init__(self):
        object.__setattr__(self, "status", ReservationStatus(self.status))
        object.__setattr__(self, "base_fee", to_money(self.base_fee))
        object.__setattr__(self, "late_fee", to_money(self.late_fee))
        ctx = ErrorContext(reservation_id=str(self.id) if self.id else None)
        if (self.return_date is not None) != (self.status in FINAL_STATUSES):
            raise InvariantViolationError(
                f"Reservation {self.id}: return_date must be set iff finalized "
                f"(status={self.status.value}, return_date={self.return_date})",
                ctx,
            )
        if self.late_fee < 0 or self.base_fee < 0:
            raise InvariantViolationError(
                f"Reservation {self.id}: fees must be >= 0", ctx,
            )

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    @property
    def is_finalized(self) -> bool:
        return self.status in FINAL_STATUSES

    @property
    def total_fee(self) -> Decimal:
        return self.base_fee + self.late_fee

    def _ctx(self) -> ErrorContext:
        return ErrorContext(reservation_id=str(self.id) if self.id else None)


def new_reservation(
    user_id: UserId, item_id: ItemId, now: datetime, policy: LendingPolicy,
) -> ReservationRecord:
    """Fresh PENDING reservation due one borrow period from now."""
    return ReservationRecord(
        user_id=user_id,
        item_id=item_id,
        status=ReservationStatus.PENDING,
        borrow_date=now,
        due_date=now + policy.borrow_period,
        base_fee=policy.reservation_fee,
    )


def activate(r: ReservationRecord) -> ReservationRecord:
    if r.status != ReservationStatus.PENDING:
        raise InvalidTransitionError(
            r.status.value, ReservationStatus.ACTIVE.value, r._ctx(),
        )
    return replace(r, status=ReservationStatus.ACTIVE)


def current_late_fee(
    r: ReservationRecord, now: datetime, daily_rate: Decimal,
) -> Decimal:
    """Fee accrued so far. Finalized reservations keep their stored fee."""
    if r.is_finalized:
        return r.late_fee
    return late_fee(r.due_date, now, daily_rate)


def mark_late(
    r: ReservationRecord, now: datetime, daily_rate: Decimal,
) -> ReservationRecord:
    """ACTIVE/LATE -> LATE with the fee recomputed. Finalized records are returned as is."""
    if r.is_finalized:
        return r
    if r.status not in _RETURNABLE:
        raise InvalidTransitionError(
            r.status.value, ReservationStatus.LATE.value, r._ctx(),
        )
    return replace(
        r,
        status=ReservationStatus.LATE,
        late_fee=current_late_fee(r, now, daily_rate),
    )


def mark_returned(
    r: ReservationRecord, now: datetime, charged_fee: Decimal,
) -> ReservationRecord:
    if r.status not in _RETURNABLE:
        raise InvalidTransitionError(
            r.status.value, ReservationStatus.RETURNED.value, r._ctx(),
        )
    return replace(
        r, status=ReservationStatus.RETURNED, return_date=now, late_fee=charged_fee,
    )


def convert_to_purchase(
    r: ReservationRecord, now: datetime, retail_price: Decimal,
) -> ReservationRecord:
    """Terminal conversion; the recorded fee is capped at the retail price."""
    if r.status not in _RETURNABLE:
        raise InvalidTransitionError(
            r.status.value, ReservationStatus.CONVERTED_TO_PURCHASE.value, r._ctx(),
        )
    return replace(
        r,
        status=ReservationStatus.CONVERTED_TO_PURCHASE,
        return_date=now,
        late_fee=to_money(retail_price),
    )


def mark_reminder_sent(r: ReservationRecord) -> ReservationRecord:
    return replace(r, reminder_sent=True)


def mark_late_reminder_sent(r: ReservationRecord) -> ReservationRecord:
    return replace(r, late_reminder_sent=True)


def with_due_date(r: ReservationRecord, due_date: datetime) -> ReservationRecord:
    """Admin/test affordance: overwrite due_date, leave status and fees alone."""
    return replace(r, due_date=due_date)
