"""Reservation Schemas - request/response models for /api/v1/reservations.

Invariants:
    - Money fields serialize as strings with two decimals (pydantic Decimal)
    - Responses are built from core records, never from ORM rows
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from lending.core.domain_types import ReservationStatus
from lending.core.reservation import ReservationRecord


class ReservationCreate(BaseModel):
    user_id: UUID
    item_id: UUID


class DueDateUpdate(BaseModel):
    """Admin override of a reservation's due date (naive values are read as UTC)."""
    due_date: datetime


class ReservationResponse(BaseModel):
    id: UUID
    user_id: UUID
    item_id: UUID
    status: ReservationStatus
    borrow_date: datetime
    due_date: datetime
    return_date: datetime | None
    base_fee: Decimal
    late_fee: Decimal
    total_fee: Decimal
    reminder_sent: bool
    late_reminder_sent: bool

    @classmethod
    def from_record(cls, r: ReservationRecord) -> "ReservationResponse":
        return cls(
            id=r.id,
            user_id=r.user_id,
            item_id=r.item_id,
            status=r.status,
            borrow_date=r.borrow_date,
            due_date=r.due_date,
            return_date=r.return_date,
            base_fee=r.base_fee,
            late_fee=r.late_fee,
            total_fee=r.total_fee,
            reminder_sent=r.reminder_sent,
            late_reminder_sent=r.late_reminder_sent,
        )


class ReservationList(BaseModel):
    reservations: list[ReservationResponse]
    page: int
    limit: int
