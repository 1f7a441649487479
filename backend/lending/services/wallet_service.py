"""Wallet Service - create wallets and move money in and out of them.

Invariants:
    - Every balance change is a compare-and-set write committed in its own transaction
    - Amount validation and the non-negative rule live in core/wallet_ledger.py
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from lending.core.domain_types import UserId, WalletId
from lending.core.errors import (
    ErrorContext, InvalidAmountError, UserNotFoundError, WalletAlreadyExistsError,
    WalletNotFoundError,
)
from lending.core.fees import ZERO, to_money
from lending.core.wallet_ledger import WalletBalance
from lending.infrastructure.database import unit_of_work
from lending.infrastructure.repositories.user_repository import SqlUserRepository
from lending.infrastructure.repositories.wallet_repository import SqlWalletRepository

logger = logging.getLogger(__name__)


class WalletService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.wallets = SqlWalletRepository(db)
        self.users = SqlUserRepository(db)

    async def create_wallet(
        self, user_id: UserId, initial_balance: Decimal = ZERO,
    ) -> WalletBalance:
        ctx = ErrorContext(user_id=str(user_id))
        initial_balance = to_money(initial_balance)
        if initial_balance < 0:
            raise InvalidAmountError(initial_balance, ctx)
        async with unit_of_work(self.db):
            if await self.users.get_info(user_id) is None:
                raise UserNotFoundError(str(user_id), ctx)
            if await self.wallets.get_by_user(user_id) is not None:
                raise WalletAlreadyExistsError(str(user_id), ctx)
            wallet = await self.wallets.save(
                WalletBalance(id=None, user_id=user_id, balance=initial_balance),
            )
        logger.info(
            f"Wallet created with balance {wallet.balance}",
            extra={"user_id": str(user_id)},
        )
        return wallet

    async def get_wallet(self, wallet_id: WalletId) -> WalletBalance:
        wallet = await self.wallets.get(wallet_id)
        if wallet is None:
            raise WalletNotFoundError(str(wallet_id))
        return wallet

    async def get_by_user(self, user_id: UserId) -> WalletBalance:
        wallet = await self.wallets.get_by_user(user_id)
        if wallet is None:
            raise WalletNotFoundError(
                f"user:{user_id}", ErrorContext(user_id=str(user_id)),
            )
        return wallet

    async def deposit(self, wallet_id: WalletId, amount: Decimal) -> WalletBalance:
        async with unit_of_work(self.db):
            before = await self.get_wallet(wallet_id)
            after = await self.wallets.update_balance(before, before.deposit(amount))
        logger.info(
            f"Deposited {to_money(amount)}, balance {after.balance}",
            extra={"user_id": str(after.user_id)},
        )
        return after

    async def withdraw(self, wallet_id: WalletId, amount: Decimal) -> WalletBalance:
        async with unit_of_work(self.db):
            before = await self.get_wallet(wallet_id)
            after = await self.wallets.update_balance(before, before.withdraw(amount))
        logger.info(
            f"Withdrew {to_money(amount)}, balance {after.balance}",
            extra={"user_id": str(after.user_id)},
        )
        return after

    async def has_enough_funds(self, wallet_id: WalletId, amount: Decimal) -> bool:
        wallet = await self.get_wallet(wallet_id)
        return wallet.has_enough_funds(amount)
