"""Wallet Repository - SQLAlchemy implementation of WalletRepository.

Invariants:
    - update_balance() is `UPDATE ... WHERE balance = :before`; zero rows -> ConcurrencyError
    - Reads bypass the identity map (populate_existing) so a retry sees fresh balances
"""

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lending.core.domain_types import UserId, WalletId
from lending.core.errors import ConcurrencyError, ErrorContext
from lending.core.wallet_ledger import WalletBalance
from lending.models.wallet import Wallet


def to_record(row: Wallet) -> WalletBalance:
    return WalletBalance(
        id=WalletId(row.id), user_id=UserId(row.user_id), balance=row.balance,
    )


class SqlWalletRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, wallet_id: WalletId) -> WalletBalance | None:
        row = await self.db.get(Wallet, wallet_id, populate_existing=True)
        return to_record(row) if row else None

    async def get_by_user(self, user_id: UserId) -> WalletBalance | None:
        result = await self.db.execute(
            select(Wallet)
            .where(Wallet.user_id == user_id)
            .execution_options(populate_existing=True),
        )
        row = result.scalar_one_or_none()
        return to_record(row) if row else None

    async def save(self, wallet: WalletBalance) -> WalletBalance:
        row = Wallet(user_id=wallet.user_id, balance=wallet.balance)
        if wallet.id is not None:
            row.id = wallet.id
        self.db.add(row)
        await self.db.flush()
        return to_record(row)

    async def update_balance(
        self, before: WalletBalance, after: WalletBalance,
    ) -> WalletBalance:
        result = await self.db.execute(
            update(Wallet)
            .where(Wallet.id == before.id)
            .where(Wallet.balance == before.balance)
            .values(balance=after.balance, updated_at=datetime.now(timezone.utc)),
        )
        if result.rowcount != 1:
            raise ConcurrencyError(
                f"Wallet {before.id} balance changed concurrently",
                ErrorContext(user_id=str(before.user_id)),
            )
        return after
