"""Wallet Service - create, deposit, withdraw against the database."""

from decimal import Decimal
from uuid import uuid4

import pytest

from lending.core.errors import (
    InsufficientFundsError, InvalidAmountError, UserNotFoundError,
    WalletAlreadyExistsError, WalletNotFoundError,
)


async def test_create_wallet(wallet_service, seed):
    user = await seed.user()
    wallet = await wallet_service.create_wallet(user.id, Decimal("20"))
    assert wallet.id is not None
    assert wallet.balance == Decimal("20.00")
    assert (await wallet_service.get_by_user(user.id)).id == wallet.id


async def test_one_wallet_per_user(wallet_service, seed):
    user, _ = await seed.member()
    with pytest.raises(WalletAlreadyExistsError):
        await wallet_service.create_wallet(user.id)


async def test_create_wallet_unknown_user(wallet_service):
    with pytest.raises(UserNotFoundError):
        await wallet_service.create_wallet(uuid4())


async def test_create_wallet_negative_balance(wallet_service, seed):
    user = await seed.user()
    with pytest.raises(InvalidAmountError):
        await wallet_service.create_wallet(user.id, Decimal("-1"))


async def test_deposit_and_withdraw(wallet_service, seed):
    _, wallet = await seed.member("10.00")
    assert (await wallet_service.deposit(wallet.id, Decimal("2.50"))).balance == Decimal("12.50")
    assert (await wallet_service.withdraw(wallet.id, Decimal("12.50"))).balance == Decimal("0.00")


async def test_overdraw_leaves_balance(wallet_service, seed):
    _, wallet = await seed.member("1.00")
    with pytest.raises(InsufficientFundsError):
        await wallet_service.withdraw(wallet.id, Decimal("1.20"))
    assert (await wallet_service.get_wallet(wallet.id)).balance == Decimal("1.00")


async def test_has_enough_funds(wallet_service, seed):
    _, wallet = await seed.member("3.00")
    assert await wallet_service.has_enough_funds(wallet.id, Decimal("3.00"))
    assert not await wallet_service.has_enough_funds(wallet.id, Decimal("3.01"))


async def test_unknown_wallet(wallet_service):
    with pytest.raises(WalletNotFoundError):
        await wallet_service.get_wallet(uuid4())
    with pytest.raises(WalletNotFoundError):
        await wallet_service.deposit(uuid4(), Decimal("1"))
