"""Wallet Ledger - non-negative balance under deposit/withdraw.

Invariants:
    - balance >= 0 on every record (constructor refuses anything else)
    - amount <= 0 is InvalidAmountError for both deposit and withdraw
    - withdraw past zero is InsufficientFundsError, never clamped
"""

from dataclasses import dataclass, replace
from decimal import Decimal

from lending.core.domain_types import UserId, WalletId
from lending.core.errors import (
    ErrorContext, InsufficientFundsError, InvalidAmountError,
    InvariantViolationError,
)
from lending.core.fees import to_money


@dataclass(frozen=True)
class WalletBalance:
    id: WalletId | None
    user_id: UserId
    balance: Decimal

    def __post_init__(self):
        object.__setattr__(self, "balance", to_money(self.balance))
        if self.balance < 0:
            raise InvariantViolationError(
                f"Wallet {self.id} balance {self.balance} is negative",
                ErrorContext(user_id=str(self.user_id)),
            )

    def has_enough_funds(self, amount: Decimal) -> bool:
        return self.balance >= to_money(amount)

    def deposit(self, amount: Decimal) -> "WalletBalance":
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidAmountError(amount, ErrorContext(user_id=str(self.user_id)))
        return replace(self, balance=self.balance + amount)

    def withdraw(self, amount: Decimal) -> "WalletBalance":
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidAmountError(amount, ErrorContext(user_id=str(self.user_id)))
        if not self.has_enough_funds(amount):
            raise InsufficientFundsError(
                self.balance, amount, ErrorContext(user_id=str(self.user_id)),
            )
        return replace(self, balance=self.balance - amount)
