"""Wallet Schemas - request/response models for /api/v1/wallets.

Invariants:
    - Amounts are validated > 0 at the boundary; the ledger re-checks
"""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from lending.core.wallet_ledger import WalletBalance


class WalletCreate(BaseModel):
    user_id: UUID
    initial_balance: Decimal = Field(Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)


class AmountRequest(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)


class WalletResponse(BaseModel):
    id: UUID
    user_id: UUID
    balance: Decimal

    @classmethod
    def from_record(cls, w: WalletBalance) -> "WalletResponse":
        return cls(id=w.id, user_id=w.user_id, balance=w.balance)
