"""Lending Policy - the numbers the state machine and sweeps run on.

Invariants:
    - Immutable; built once from Settings and passed to services at construction
    - Money fields are Decimal, day counts are ints >= 0

Design Decisions:
    - Defaults mirror Settings defaults so pure tests can use LendingPolicy() directly
"""

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal


@dataclass(frozen=True)
class LendingPolicy:
    reservation_fee: Decimal = Decimal("3.00")
    late_fee_per_day: Decimal = Decimal("0.20")
    standard_borrow_days: int = 7
    max_active_reservations: int = 3
    due_soon_days: int = 2
    late_reminder_days: int = 7
    purchase_conversion_charges_wallet: bool = False

    def __post_init__(self):
        if self.late_fee_per_day < 0 or self.reservation_fee < 0:
            raise ValueError("fees must be >= 0")
        if min(
            self.standard_borrow_days, self.max_active_reservations,
            self.due_soon_days, self.late_reminder_days,
        ) < 0:
            raise ValueError("day counts and limits must be >= 0")

    @property
    def borrow_period(self) -> timedelta:
        return timedelta(days=self.standard_borrow_days)
