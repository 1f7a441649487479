"""Domain Types - rich types that replace bare primitives across the codebase.

Invariants:
    - ReservationId, UserId, ItemId, WalletId wrap UUIDs
    - Every reservation status is a ReservationStatus member, never a raw string
    - OPEN_STATUSES and FINAL_STATUSES partition the five statuses

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and to the DB column without custom encoders
"""

from decimal import Decimal
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

ReservationId = NewType("ReservationId", UUID)
UserId = NewType("UserId", UUID)
ItemId = NewType("ItemId", UUID)
WalletId = NewType("WalletId", UUID)


# ─── Value Types ─────────────────────────────────────────────────

Money = NewType("Money", Decimal)  # quantized to 0.01


# ─── Enums ───────────────────────────────────────────────────────

class ReservationStatus(str, Enum):
    """Reservation lifecycle states - maps to DB `status` column."""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    LATE = "LATE"
    RETURNED = "RETURNED"
    CONVERTED_TO_PURCHASE = "CONVERTED_TO_PURCHASE"


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    LIBRARIAN = "LIBRARIAN"
    MEMBER = "MEMBER"


OPEN_STATUSES: frozenset[ReservationStatus] = frozenset({
    ReservationStatus.PENDING,
    ReservationStatus.ACTIVE,
    ReservationStatus.LATE,
})

FINAL_STATUSES: frozenset[ReservationStatus] = frozenset({
    ReservationStatus.RETURNED,
    ReservationStatus.CONVERTED_TO_PURCHASE,
})

# Statuses the reminder sweeps look at (PENDING never leaves create_reservation)
REMINDABLE_STATUSES: frozenset[ReservationStatus] = frozenset({
    ReservationStatus.ACTIVE,
    ReservationStatus.LATE,
})
