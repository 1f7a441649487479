"""Repositories - row mapping and compare-and-set writes.

Tests cover:
    - A stale "before" balance/availability raises ConcurrencyError and writes nothing
    - Datetimes come back timezone-aware UTC from SQLite
    - Sweep queries select exactly the rows the core predicates would
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import update

from lending.core.errors import ConcurrencyError
from lending.core.policy import LendingPolicy
from lending.core.reservation import (
    activate, mark_late, mark_reminder_sent, mark_returned, new_reservation,
)
from lending.infrastructure.repositories.item_repository import SqlItemRepository
from lending.infrastructure.repositories.reservation_repository import (
    SqlReservationRepository,
)
from lending.infrastructure.repositories.wallet_repository import SqlWalletRepository
from lending.models.wallet import Wallet

START = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


async def test_wallet_stale_balance_is_rejected(seed, test_db):
    user, wallet_row = await seed.member("50.00")
    repo = SqlWalletRepository(test_db)
    before = await repo.get_by_user(user.id)

    # another writer lands first
    await test_db.execute(
        update(Wallet).where(Wallet.id == wallet_row.id).values(balance=Decimal("10.00")),
    )
    await test_db.commit()

    with pytest.raises(ConcurrencyError):
        await repo.update_balance(before, before.withdraw(Decimal("3.00")))
    await test_db.rollback()
    assert (await repo.get_by_user(user.id)).balance == Decimal("10.00")


async def test_item_stale_availability_is_rejected(seed, test_db):
    item = await seed.item(copies=2)
    repo = SqlItemRepository(test_db)
    before = (await repo.get_info(item.id)).availability

    await repo.update_availability(before, before.borrow_copy())
    await test_db.commit()

    with pytest.raises(ConcurrencyError):
        await repo.update_availability(before, before.borrow_copy())
    await test_db.rollback()
    assert (await repo.get_info(item.id)).availability.available_copies == 1


async def test_reservation_roundtrip_is_utc(seed, test_db):
    user = await seed.user()
    item = await seed.item()
    repo = SqlReservationRepository(test_db)
    saved = await repo.save(activate(new_reservation(user.id, item.id, START, LendingPolicy())))
    await test_db.commit()

    loaded = await repo.get(saved.id)
    assert loaded.borrow_date.tzinfo is not None
    assert loaded.borrow_date.utcoffset() == timezone.utc.utcoffset(None)
    assert loaded.borrow_date == START


async def test_sweep_queries(seed, test_db):
    user = await seed.user()
    item = await seed.item()
    repo = SqlReservationRepository(test_db)
    policy = LendingPolicy()

    def borrowed(days_ago: int):
        return activate(new_reservation(
            user.id, item.id, START - timedelta(days=days_ago), policy,
        ))

    due_tomorrow = await repo.save(borrowed(6))
    already_reminded = await repo.save(mark_reminder_sent(borrowed(6)))
    overdue_active = await repo.save(borrowed(9))
    long_late = await repo.save(mark_late(borrowed(20), START, policy.late_fee_per_day))
    returned = await repo.save(mark_returned(borrowed(20), START, Decimal("0")))
    await test_db.commit()

    due_soon = {r.id for r in await repo.list_due_soon(START, 2)}
    assert due_soon == {due_tomorrow.id}
    past_due = {r.id for r in await repo.list_active_past_due(START)}
    assert past_due == {overdue_active.id}
    overdue = {r.id for r in await repo.list_overdue(START, 7)}
    assert overdue == {long_late.id}
    assert {r.id for r in await repo.list_late()} == {long_late.id}
    assert returned.id not in {r.id for r in await repo.list_open()}
    assert already_reminded.id not in due_soon
