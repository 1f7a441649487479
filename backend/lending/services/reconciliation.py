"""Reconciliation Service - the periodic sweeps over open reservations.

Invariants:
    - Every sweep is idempotent: running it twice in a row changes nothing the
      second time and sends nothing new
    - One read-mutate-persist transaction per record; a failing record is rolled
      back, logged and counted, and the sweep moves on to the next one
    - Each candidate is re-checked with the core/sweeps.py predicate before it is
      touched (it may have changed since the listing query)
    - Reminder flags are set only after a successful dispatch; a dispatch failure
      leaves the flag unset so the next run retries

Design Decisions:
    - Conversion charges the wallet only when the policy says so; otherwise the
      purchase is recorded on the reservation alone
    - Conversion notices are sent after the record's commit, like create/return
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from lending.core.errors import (
    ErrorContext, ItemNotFoundError, UserNotFoundError, WalletNotFoundError,
)
from lending.core.notifications import (
    DueSoonReminder, LateReminder, PurchaseConverted, Recipient,
)
from lending.core.policy import LendingPolicy
from lending.core.records import ItemInfo, UserInfo
from lending.core.repository_protocols import Clock, NotificationDispatcher
from lending.core.reservation import (
    ReservationRecord, convert_to_purchase, mark_late, mark_late_reminder_sent,
    mark_reminder_sent,
)
from lending.core.sweeps import (
    decide_conversion, is_due_soon, is_late_for_reminder, needs_late_promotion,
)
from lending.infrastructure.database import unit_of_work
from lending.infrastructure.repositories.item_repository import SqlItemRepository
from lending.infrastructure.repositories.reservation_repository import (
    SqlReservationRepository,
)
from lending.infrastructure.repositories.user_repository import SqlUserRepository
from lending.infrastructure.repositories.wallet_repository import SqlWalletRepository
from lending.services.reservation_service import dispatch_safely

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepReport:
    name: str
    examined: int = 0
    applied: int = 0
    failed: int = 0


class ReconciliationService:
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
        self.items = SqlItemRepository(db)
        self.users = SqlUserRepository(db)
        self.wallets = SqlWalletRepository(db)

    async def _sweep(
        self,
        name: str,
        candidates: list[ReservationRecord],
        step: Callable[[ReservationRecord, datetime], Awaitable[object]],
        now: datetime,
        committed: list | None = None,
    ) -> SweepReport:
        """Run step per record in its own transaction. Truthy step results count
        as applied and, once committed, are collected into `committed`."""
        applied = failed = 0
        for record in candidates:
            try:
                async with unit_of_work(self.db):
                    changed = await step(record, now)
            except Exception as e:
                failed += 1
                logger.error(
                    f"Sweep {name} failed on reservation: {e}",
                    extra={"reservation_id": str(record.id), "job_name": name},
                    exc_info=True,
                )
                continue
            if changed:
                applied += 1
                if committed is not None:
                    committed.append(changed)
        report = SweepReport(name, len(candidates), applied, failed)
        logger.info(
            f"Sweep {name}: {applied}/{len(candidates)} applied, {failed} failed",
            extra={
                "job_name": name, "examined": report.examined,
                "applied": report.applied, "failed": report.failed,
            },
        )
        return report

    async def _load_parties(
        self, record: ReservationRecord,
    ) -> tuple[UserInfo, ItemInfo]:
        ctx = ErrorContext(
            reservation_id=str(record.id), user_id=str(record.user_id),
            item_id=str(record.item_id),
        )
        user = await self.users.get_info(record.user_id)
        if user is None:
            raise UserNotFoundError(str(record.user_id), ctx)
        item = await self.items.get_info(record.item_id)
        if item is None:
            raise ItemNotFoundError(str(record.item_id), ctx)
        return user, item

    async def _fresh(self, record: ReservationRecord) -> ReservationRecord | None:
        return await self.reservations.get(record.id)

    # ─── Sweeps ──────────────────────────────────────────────────

    async def promote_overdue(self) -> SweepReport:
        """ACTIVE past due -> LATE with the fee recomputed. Status write only."""
        now = self.clock.now()

        async def step(record: ReservationRecord, now: datetime) -> bool:
            current = await self._fresh(record)
            if current is None or not needs_late_promotion(current, now):
                return False
            await self.reservations.update(
                mark_late(current, now, self.policy.late_fee_per_day),
            )
            return True

        candidates = await self.reservations.list_active_past_due(now)
        return await self._sweep("promote_overdue", candidates, step, now)

    async def send_due_reminders(self) -> SweepReport:
        now = self.clock.now()
        days = self.policy.due_soon_days

        async def step(record: ReservationRecord, now: datetime) -> bool:
            current = await self._fresh(record)
            if current is None or not is_due_soon(current, now, days):
                return False
            user, item = await self._load_parties(current)
            await self.notifier.due_soon(DueSoonReminder(
                recipient=Recipient(user.name, user.email),
                item_title=item.title,
                reservation_id=current.id,
                due_date=current.due_date,
            ))
            await self.reservations.update(mark_reminder_sent(current))
            return True

        candidates = await self.reservations.list_due_soon(now, days)
        return await self._sweep("due_reminders", candidates, step, now)

    async def send_late_reminders(self) -> SweepReport:
        now = self.clock.now()
        days = self.policy.late_reminder_days

        async def step(record: ReservationRecord, now: datetime) -> bool:
            current = await self._fresh(record)
            if current is None or not is_late_for_reminder(current, now, days):
                return False
            user, item = await self._load_parties(current)
            late = mark_late(current, now, self.policy.late_fee_per_day)
            await self.notifier.late(LateReminder(
                recipient=Recipient(user.name, user.email),
                item_title=item.title,
                reservation_id=late.id,
                due_date=late.due_date,
                late_fee=late.late_fee,
            ))
            await self.reservations.update(mark_late_reminder_sent(late))
            return True

        candidates = await self.reservations.list_overdue(now, days)
        return await self._sweep("late_reminders", candidates, step, now)

    async def convert_overdue_to_purchase(self) -> SweepReport:
        """LATE loans whose accrued fee reached the retail price become purchases."""
        now = self.clock.now()
        notices: list[PurchaseConverted] = []

        async def step(record: ReservationRecord, now: datetime) -> PurchaseConverted | bool:
            current = await self._fresh(record)
            if current is None or current.is_finalized:
                return False
            user, item = await self._load_parties(current)
            decision = decide_conversion(current, now, item.retail_price, self.policy)
            if not decision.convert:
                if decision.accrued_fee != current.late_fee:
                    await self.reservations.update(
                        mark_late(current, now, self.policy.late_fee_per_day),
                    )
                return False

            charged = False
            if self.policy.purchase_conversion_charges_wallet:
                wallet = await self.wallets.get_by_user(current.user_id)
                if wallet is None:
                    raise WalletNotFoundError(
                        f"user:{current.user_id}",
                        ErrorContext(
                            reservation_id=str(current.id),
                            user_id=str(current.user_id),
                        ),
                    )
                await self.wallets.update_balance(
                    wallet, wallet.withdraw(decision.purchase_amount),
                )
                charged = True

            await self.items.update_availability(
                item.availability, item.availability.forfeit_copy(),
            )
            converted = await self.reservations.update(
                convert_to_purchase(current, now, item.retail_price),
            )
            return PurchaseConverted(
                recipient=Recipient(user.name, user.email),
                item_title=item.title,
                reservation_id=converted.id,
                purchase_amount=decision.purchase_amount,
                charged_to_wallet=charged,
            )

        candidates = await self.reservations.list_late()
        report = await self._sweep(
            "purchase_check", candidates, step, now, committed=notices,
        )
        for notice in notices:
            await dispatch_safely(self.notifier.converted_to_purchase, notice)
        return report

    async def run_all(self) -> list[SweepReport]:
        return [
            await self.promote_overdue(),
            await self.send_due_reminders(),
            await self.send_late_reminders(),
            await self.convert_overdue_to_purchase(),
        ]
