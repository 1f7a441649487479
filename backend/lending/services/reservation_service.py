"""Reservation Service - borrow and return as single transactions.

Invariants:
    - Reads -> pure plan (core/lifecycle.py) -> compare-and-set writes -> commit,
      all inside one unit_of_work; any raise rolls every write back
    - Notifications go out only after commit; a failing dispatcher is logged and
      never undoes a committed borrow or return
    - return_book() returns None for an unknown id (the route maps it to 404)

Design Decisions:
    - The clock and the notifier are injected: no wall-clock reads in here
    - Repositories are built per service instance on the caller's AsyncSession
"""

import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from lending.core.domain_types import ItemId, ReservationId, ReservationStatus, UserId
from lending.core.errors import (
    ErrorContext, ItemNotFoundError, ReservationNotFoundError, UserNotFoundError,
)
from lending.core.lifecycle import plan_borrow, plan_return
from lending.core.notifications import (
    PurchaseConverted, Recipient, ReservationConfirmed, ReservationReturned,
)
from lending.core.policy import LendingPolicy
from lending.core.repository_protocols import Clock, NotificationDispatcher
from lending.core.reservation import ReservationRecord, with_due_date
from lending.infrastructure.database import unit_of_work
from lending.infrastructure.repositories.item_repository import SqlItemRepository
from lending.infrastructure.repositories.reservation_repository import (
    SqlReservationRepository,
)
from lending.infrastructure.repositories.user_repository import SqlUserRepository
from lending.infrastructure.repositories.wallet_repository import SqlWalletRepository

logger = logging.getLogger(__name__)


async def dispatch_safely(send: Callable[[object], Awaitable[None]], payload) -> bool:
    """Deliver one notification; a delivery failure is logged and reported as False."""
    try:
        await send(payload)
        return True
    except Exception as e:
        logger.error(
            f"Notification {type(payload).__name__} failed: {e}",
            extra={"reservation_id": str(payload.reservation_id)},
            exc_info=True,
        )
        return False


class ReservationService:
    def __init__(
        self,
        db: AsyncSession,
        policy: LendingPolicy,
        clock: Clock,
        notifier: NotificationDispatcher,
    ):
        self.db = db
        self.policy = policy
        self.clock = clock
        self.notifier = notifier
        self.reservations = SqlReservationRepository(db)
        self.wallets = SqlWalletRepository(db)
        self.items = SqlItemRepository(db)
        self.users = SqlUserRepository(db)

    async def create_reservation(
        self, user_id: UserId, item_id: ItemId,
    ) -> ReservationRecord:
        """Charge the flat fee, take one copy and open an ACTIVE reservation."""
        now = self.clock.now()
        async with unit_of_work(self.db):
            user = await self.users.get_info(user_id)
            item = await self.items.get_info(item_id)
            open_reservations = await self.reservations.list_open_by_user(user_id)
            wallet = await self.wallets.get_by_user(user_id)

            plan = plan_borrow(
                str(user_id), str(item_id), user, item,
                open_reservations, wallet, self.policy, now,
            )

            await self.wallets.update_balance(plan.wallet_before, plan.wallet_after)
            await self.items.update_availability(
                plan.availability_before, plan.availability_after,
            )
            saved = await self.reservations.save(plan.reservation)

        logger.info(
            f"Reservation created, due {saved.due_date.isoformat()}",
            extra={
                "reservation_id": str(saved.id),
                "user_id": str(user_id), "item_id": str(item_id),
            },
        )
        await dispatch_safely(self.notifier.reservation_confirmed, ReservationConfirmed(
            recipient=Recipient(user.name, user.email),
            item_title=item.title,
            reservation_id=saved.id,
            borrow_date=saved.borrow_date,
            due_date=saved.due_date,
            fee=saved.base_fee,
        ))
        return saved

    async def return_book(
        self, reservation_id: ReservationId,
    ) -> ReservationRecord | None:
        """Close a reservation, charging any late fee. None if it does not exist."""
        now = self.clock.now()
        async with unit_of_work(self.db):
            reservation = await self.reservations.get(reservation_id)
            if reservation is None:
                return None
            ctx = ErrorContext(
                reservation_id=str(reservation_id),
                user_id=str(reservation.user_id),
                item_id=str(reservation.item_id),
            )
            item = await self.items.get_info(reservation.item_id)
            if item is None:
                raise ItemNotFoundError(str(reservation.item_id), ctx)
            user = await self.users.get_info(reservation.user_id)
            if user is None:
                raise UserNotFoundError(str(reservation.user_id), ctx)
            wallet = await self.wallets.get_by_user(reservation.user_id)

            plan = plan_return(reservation, item, wallet, self.policy, now)

            if plan.wallet_after is not None:
                await self.wallets.update_balance(plan.wallet_before, plan.wallet_after)
            await self.items.update_availability(
                plan.availability_before, plan.availability_after,
            )
            updated = await self.reservations.update(plan.reservation)

        logger.info(
            f"Reservation {updated.status.value.lower()}, charged {plan.charged_fee}",
            extra={
                "reservation_id": str(reservation_id),
                "user_id": str(updated.user_id), "item_id": str(updated.item_id),
            },
        )
        recipient = Recipient(user.name, user.email)
        if plan.converted:
            await dispatch_safely(self.notifier.converted_to_purchase, PurchaseConverted(
                recipient=recipient,
                item_title=item.title,
                reservation_id=updated.id,
                purchase_amount=plan.charged_fee,
                charged_to_wallet=plan.wallet_after is not None,
            ))
        else:
            await dispatch_safely(self.notifier.reservation_returned, ReservationReturned(
                recipient=recipient,
                item_title=item.title,
                reservation_id=updated.id,
                return_date=updated.return_date,
                late_fee=plan.charged_fee,
            ))
        return updated

    async def force_due_date(
        self, reservation_id: ReservationId, due_date: datetime,
    ) -> ReservationRecord:
        """Overwrite due_date only. Naive datetimes are taken as UTC."""
        if due_date.tzinfo is None:
            due_date = due_date.replace(tzinfo=timezone.utc)
        async with unit_of_work(self.db):
            reservation = await self.reservations.get(reservation_id)
            if reservation is None:
                raise ReservationNotFoundError(
                    str(reservation_id),
                    ErrorContext(reservation_id=str(reservation_id)),
                )
            updated = await self.reservations.update(
                with_due_date(reservation, due_date),
            )
        logger.info(
            f"Due date forced to {due_date.isoformat()}",
            extra={"reservation_id": str(reservation_id)},
        )
        return updated

    async def get_reservation(self, reservation_id: ReservationId) -> ReservationRecord:
        reservation = await self.reservations.get(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError(
                str(reservation_id),
                ErrorContext(reservation_id=str(reservation_id)),
            )
        return reservation

    async def list_by_user(
        self, user_id: UserId, page: int = 1, limit: int = 10,
    ) -> list[ReservationRecord]:
        return await self.reservations.list_by_user(user_id, page, limit)

    async def list_by_item(
        self, item_id: ItemId, page: int = 1, limit: int = 10,
    ) -> list[ReservationRecord]:
        return await self.reservations.list_by_item(item_id, page, limit)

    async def list_by_status(
        self, status: ReservationStatus, page: int = 1, limit: int = 10,
    ) -> list[ReservationRecord]:
        return await self.reservations.list_by_status(status, page, limit)

    async def list_open(self, page: int = 1, limit: int = 10) -> list[ReservationRecord]:
        return await self.reservations.list_open(page, limit)

    async def delete_reservation(self, reservation_id: ReservationId) -> bool:
        """Admin hard delete. Availability and wallet are left as they are."""
        async with unit_of_work(self.db):
            deleted = await self.reservations.delete(reservation_id)
        if deleted:
            logger.warning(
                "Reservation deleted", extra={"reservation_id": str(reservation_id)},
            )
        return deleted
