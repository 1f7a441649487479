"""Reservation Repository - SQLAlchemy implementation of ReservationRepository.

Invariants:
    - Sweep queries match the predicates in core/sweeps.py
    - save() assigns the id; update() requires one and a row to exist
    - Listing queries are ordered newest first and paginated (page >= 1)
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from lending.core.domain_types import (
    OPEN_STATUSES, REMINDABLE_STATUSES, ItemId, ReservationId, ReservationStatus,
    UserId,
)
from lending.core.errors import ErrorContext, ReservationNotFoundError
from lending.core.reservation import ReservationRecord
from lending.core.sweeps import due_soon_window, overdue_cutoff
from lending.infrastructure.repositories.mapping import as_utc, page_offset
from lending.models.reservation import Reservation

logger = logging.getLogger(__name__)

_OPEN = [s.value for s in OPEN_STATUSES]
_REMINDABLE = [s.value for s in REMINDABLE_STATUSES]


def to_record(row: Reservation) -> ReservationRecord:
    return ReservationRecord(
        id=ReservationId(row.id),
        user_id=UserId(row.user_id),
        item_id=ItemId(row.item_id),
        status=ReservationStatus(row.status),
        borrow_date=as_utc(row.borrow_date),
        due_date=as_utc(row.due_date),
        return_date=as_utc(row.return_date),
        base_fee=row.base_fee,
        late_fee=row.late_fee,
        reminder_sent=row.reminder_sent,
        late_reminder_sent=row.late_reminder_sent,
    )


def _apply(row: Reservation, record: ReservationRecord) -> None:
    row.user_id = record.user_id
    row.item_id = record.item_id
    row.status = record.status.value
    row.borrow_date = record.borrow_date
    row.due_date = record.due_date
    row.return_date = record.return_date
    row.base_fee = record.base_fee
    row.late_fee = record.late_fee
    row.reminder_sent = record.reminder_sent
    row.late_reminder_sent = record.late_reminder_sent
    row.updated_at = datetime.now(timezone.utc)


class SqlReservationRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _list(self, query) -> list[ReservationRecord]:
        result = await self.db.execute(
            query.execution_options(populate_existing=True),
        )
        return [to_record(row) for row in result.scalars().all()]

    async def get(self, reservation_id: ReservationId) -> ReservationRecord | None:
        row = await self.db.get(Reservation, reservation_id, populate_existing=True)
        return to_record(row) if row else None

    async def list_by_user(
        self, user_id: UserId, page: int = 1, limit: int = 10,
    ) -> list[ReservationRecord]:
        return await self._list(
            select(Reservation)
            .where(Reservation.user_id == user_id)
            .order_by(Reservation.created_at.desc())
            .offset(page_offset(page, limit)).limit(limit)
        )

    async def list_by_item(
        self, item_id: ItemId, page: int = 1, limit: int = 10,
    ) -> list[ReservationRecord]:
        return await self._list(
            select(Reservation)
            .where(Reservation.item_id == item_id)
            .order_by(Reservation.created_at.desc())
            .offset(page_offset(page, limit)).limit(limit)
        )

    async def list_by_status(
        self, status: ReservationStatus, page: int = 1, limit: int = 10,
    ) -> list[ReservationRecord]:
        return await self._list(
            select(Reservation)
            .where(Reservation.status == status.value)
            .order_by(Reservation.created_at.desc())
            .offset(page_offset(page, limit)).limit(limit)
        )

    async def list_open(self, page: int = 1, limit: int = 10) -> list[ReservationRecord]:
        return await self._list(
            select(Reservation)
            .where(Reservation.status.in_(_OPEN))
            .order_by(Reservation.created_at.desc())
            .offset(page_offset(page, limit)).limit(limit)
        )

    async def list_open_by_user(self, user_id: UserId) -> list[ReservationRecord]:
        return await self._list(
            select(Reservation)
            .where(Reservation.user_id == user_id)
            .where(Reservation.status.in_(_OPEN))
        )

    async def list_active_past_due(self, now: datetime) -> list[ReservationRecord]:
        return await self._list(
            select(Reservation)
            .where(Reservation.status == ReservationStatus.ACTIVE.value)
            .where(Reservation.return_date.is_(None))
            .where(Reservation.due_date < now)
        )

    async def list_due_soon(self, now: datetime, days: int) -> list[ReservationRecord]:
        start, end = due_soon_window(now, days)
        logger.debug(f"Due-soon window: {start.isoformat()} to {end.isoformat()}")
        return await self._list(
            select(Reservation)
            .where(Reservation.status.in_(_REMINDABLE))
            .where(Reservation.reminder_sent.is_(False))
            .where(Reservation.return_date.is_(None))
            .where(Reservation.due_date >= start)
            .where(Reservation.due_date < end)
        )

    async def list_overdue(self, now: datetime, days: int) -> list[ReservationRecord]:
        return await self._list(
            select(Reservation)
            .where(Reservation.status.in_(_REMINDABLE))
            .where(Reservation.late_reminder_sent.is_(False))
            .where(Reservation.return_date.is_(None))
            .where(Reservation.due_date < overdue_cutoff(now, days))
        )

    async def list_late(self) -> list[ReservationRecord]:
        return await self._list(
            select(Reservation)
            .where(Reservation.status == ReservationStatus.LATE.value)
            .where(Reservation.return_date.is_(None))
        )

    async def save(self, reservation: ReservationRecord) -> ReservationRecord:
        row = Reservation()
        _apply(row, reservation)
        if reservation.id is not None:
            row.id = reservation.id
        self.db.add(row)
        await self.db.flush()
        return to_record(row)

    async def update(self, reservation: ReservationRecord) -> ReservationRecord:
        if reservation.id is None:
            raise ValueError("Reservation id is required for update")
        row = await self.db.get(Reservation, reservation.id)
        if row is None:
            raise ReservationNotFoundError(
                str(reservation.id),
                ErrorContext(reservation_id=str(reservation.id)),
            )
        _apply(row, reservation)
        await self.db.flush()
        return to_record(row)

    async def delete(self, reservation_id: ReservationId) -> bool:
        result = await self.db.execute(
            delete(Reservation).where(Reservation.id == reservation_id),
        )
        return result.rowcount == 1
