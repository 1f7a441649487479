"""Fee Calculator - pure late-fee arithmetic.

Invariants:
    - late_fee() is 0 when reference_date <= due_date
    - Partial days count as whole days (ceil)
    - Results are Decimal quantized to 0.01, rounded half-up
    - A negative daily rate is a caller bug (ValueError), not a domain error
"""

import math
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
ONE_DAY = timedelta(days=1)


def as_decimal(value: Decimal | float | int | str) -> Decimal:
    # floats go through str so 0.2 stays 0.2
    if isinstance(value, float):
        value = str(value)
    return Decimal(value)


def to_money(value: Decimal | float | int | str) -> Decimal:
    """Coerce to a Decimal with two places."""
    return as_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def days_late(due_date: datetime, reference_date: datetime) -> int:
    """Whole days elapsed past due_date, partial days rounded up. 0 if not late."""
    if reference_date <= due_date:
        return 0
    return math.ceil((reference_date - due_date) / ONE_DAY)


def late_fee(
    due_date: datetime, reference_date: datetime, daily_rate: Decimal | float,
) -> Decimal:
    """Late fee owed at reference_date for an item due at due_date."""
    rate = as_decimal(daily_rate)
    if rate < 0:
        raise ValueError(f"daily_rate must be >= 0, got {daily_rate}")
    days = days_late(due_date, reference_date)
    if days == 0:
        return ZERO
    return to_money(rate * days)
