"""Reservation ORM - persists one borrow instance.

Invariants:
    - user_id and item_id are non-nullable FKs
    - status is one of ReservationStatus values
    - return_date is set iff status is RETURNED or CONVERTED_TO_PURCHASE
      (enforced by ReservationRecord before every write)
    - reminder_sent/late_reminder_sent only ever flip False -> True

Design Decisions:
    - (status, due_date) index backs the sweep queries
    - base_fee stored per row: changing the configured fee never rewrites history
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, Numeric, DateTime, ForeignKey, Index,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from lending.core.domain_types import ReservationStatus
from lending.db.base import Base


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        Index("ix_reservations_status_due_date", "status", "due_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True,
    )
    item_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("items.id"), nullable=False, index=True,
    )
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=ReservationStatus.PENDING.value,
    )
    borrow_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    return_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    base_fee: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    late_fee: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00"),
    )
    reminder_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    late_reminder_sent: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
