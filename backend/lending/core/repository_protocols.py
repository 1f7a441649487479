"""Boundary Protocols - contracts between core and shell.

Invariants:
    - Core NEVER imports from shell; dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Repositories never commit; the service owning the transaction does
    - update_balance/update_availability are compare-and-set on the "before" value
      and raise ConcurrencyError when another writer got there first

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO, but the core functions that consume
      their results are never async themselves
"""

from datetime import datetime
from typing import Protocol

from lending.core.availability import ItemAvailability
from lending.core.domain_types import (
    ItemId, ReservationId, ReservationStatus, UserId, WalletId,
)
from lending.core.notifications import (
    DueSoonReminder, LateReminder, PurchaseConverted, ReservationConfirmed,
    ReservationReturned,
)
from lending.core.records import ItemInfo, UserInfo
from lending.core.reservation import ReservationRecord
from lending.core.wallet_ledger import WalletBalance


class Clock(Protocol):
    def now(self) -> datetime: ...


class ReservationRepository(Protocol):
    """Contract for reservation persistence - implemented by shell."""
    async def get(self, reservation_id: ReservationId) -> ReservationRecord | None: ...
    async def list_by_user(
        self, user_id: UserId, page: int = 1, limit: int = 10,
    ) -> list[ReservationRecord]: ...
    async def list_by_item(
        self, item_id: ItemId, page: int = 1, limit: int = 10,
    ) -> list[ReservationRecord]: ...
    async def list_by_status(
        self, status: ReservationStatus, page: int = 1, limit: int = 10,
    ) -> list[ReservationRecord]: ...
    async def list_open(self, page: int = 1, limit: int = 10) -> list[ReservationRecord]: ...
    async def list_open_by_user(self, user_id: UserId) -> list[ReservationRecord]: ...
    async def list_active_past_due(self, now: datetime) -> list[ReservationRecord]: ...
    async def list_due_soon(self, now: datetime, days: int) -> list[ReservationRecord]: ...
    async def list_overdue(self, now: datetime, days: int) -> list[ReservationRecord]: ...
    async def list_late(self) -> list[ReservationRecord]: ...
    async def save(self, reservation: ReservationRecord) -> ReservationRecord: ...
    async def update(self, reservation: ReservationRecord) -> ReservationRecord: ...
    async def delete(self, reservation_id: ReservationId) -> bool: ...


class WalletRepository(Protocol):
    """Contract for wallet persistence - implemented by shell."""
    async def get(self, wallet_id: WalletId) -> WalletBalance | None: ...
    async def get_by_user(self, user_id: UserId) -> WalletBalance | None: ...
    async def save(self, wallet: WalletBalance) -> WalletBalance: ...
    async def update_balance(
        self, before: WalletBalance, after: WalletBalance,
    ) -> WalletBalance: ...


class ItemRepository(Protocol):
    """Contract for item availability persistence - implemented by shell."""
    async def get_info(self, item_id: ItemId) -> ItemInfo | None: ...
    async def update_availability(
        self, before: ItemAvailability, after: ItemAvailability,
    ) -> ItemAvailability: ...


class UserRepository(Protocol):
    async def get_info(self, user_id: UserId) -> UserInfo | None: ...


class NotificationDispatcher(Protocol):
    """Fire-and-forget delivery, one method per event kind."""
    async def reservation_confirmed(self, payload: ReservationConfirmed) -> None: ...
    async def reservation_returned(self, payload: ReservationReturned) -> None: ...
    async def due_soon(self, payload: DueSoonReminder) -> None: ...
    async def late(self, payload: LateReminder) -> None: ...
    async def converted_to_purchase(self, payload: PurchaseConverted) -> None: ...
