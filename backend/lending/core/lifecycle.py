"""Reservation Lifecycle - pure borrow/return planning.

Invariants:
    - plan_borrow/plan_return are PURE: they return the full "after" state of every
      entity they touch, or raise before anything is produced
    - Guard order for borrow: user -> item -> open reservations -> wallet
    - A return charges min(late_fee, retail_price); reaching the retail price
      converts to a purchase and forfeits the copy instead of returning it
    - The shell applies a plan as one transaction or not at all

Design Decisions:
    - Plans are frozen dataclasses holding before and after snapshots so the shell
      can issue compare-and-set writes against the "before" values
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from lending.core.availability import ItemAvailability
from lending.core.errors import (
    AlreadyFinalizedError, BorrowLimitExceededError, DuplicateBorrowError,
    ErrorContext, InsufficientFundsError, ItemNotFoundError, ItemUnavailableError,
    UserInactiveError, UserNotFoundError, WalletNotFoundError,
)
from lending.core.fees import ZERO
from lending.core.policy import LendingPolicy
from lending.core.records import ItemInfo, UserInfo
from lending.core.reservation import (
    ReservationRecord, activate, convert_to_purchase, current_late_fee,
    mark_returned, new_reservation,
)
from lending.core.wallet_ledger import WalletBalance


@dataclass(frozen=True)
class BorrowPlan:
    reservation: ReservationRecord
    wallet_before: WalletBalance
    wallet_after: WalletBalance
    availability_before: ItemAvailability
    availability_after: ItemAvailability


@dataclass(frozen=True)
class ReturnPlan:
    reservation: ReservationRecord
    availability_before: ItemAvailability
    availability_after: ItemAvailability
    charged_fee: Decimal
    converted: bool
    wallet_before: WalletBalance | None = None
    wallet_after: WalletBalance | None = None


def plan_borrow(
    user_id: str,
    item_id: str,
    user: UserInfo | None,
    item: ItemInfo | None,
    open_reservations: list[ReservationRecord],
    wallet: WalletBalance | None,
    policy: LendingPolicy,
    now: datetime,
) -> BorrowPlan:
    """Steps 1-5 of a borrow, then the in-memory mutations of step 6."""
    ctx = ErrorContext(user_id=user_id, item_id=item_id)
    if user is None:
        raise UserNotFoundError(user_id, ctx)
    if not user.is_active:
        raise UserInactiveError(user_id, ctx)

    if item is None:
        raise ItemNotFoundError(item_id, ctx)
    if not item.availability.is_available:
        raise ItemUnavailableError(item_id, ctx)

    if any(r.item_id == item.id for r in open_reservations):
        raise DuplicateBorrowError(user_id, item_id, ctx)
    if len(open_reservations) >= policy.max_active_reservations:
        raise BorrowLimitExceededError(policy.max_active_reservations, ctx)

    if wallet is None:
        raise WalletNotFoundError(f"user:{user_id}", ctx)
    if not wallet.has_enough_funds(policy.reservation_fee):
        raise InsufficientFundsError(wallet.balance, policy.reservation_fee, ctx)

    pending = new_reservation(user.id, item.id, now, policy)
    return BorrowPlan(
        reservation=activate(pending),
        wallet_before=wallet,
        wallet_after=wallet.withdraw(policy.reservation_fee),
        availability_before=item.availability,
        availability_after=item.availability.borrow_copy(),
    )


def plan_return(
    reservation: ReservationRecord,
    item: ItemInfo,
    wallet: WalletBalance | None,
    policy: LendingPolicy,
    now: datetime,
) -> ReturnPlan:
    """Steps 2-5 of a return. Raises before producing a plan if any guard fails."""
    ctx = ErrorContext(
        reservation_id=str(reservation.id), user_id=str(reservation.user_id),
        item_id=str(reservation.item_id),
    )
    if reservation.is_finalized:
        raise AlreadyFinalizedError(
            str(reservation.id), reservation.status.value, ctx,
        )

    accrued = current_late_fee(reservation, now, policy.late_fee_per_day)
    converted = accrued > ZERO and accrued >= item.retail_price
    charged = min(accrued, item.retail_price) if converted else accrued

    wallet_after = None
    if charged > ZERO:
        if wallet is None:
            raise WalletNotFoundError(f"user:{reservation.user_id}", ctx)
        wallet_after = wallet.withdraw(charged)

    if converted:
        finalized = convert_to_purchase(reservation, now, item.retail_price)
        availability_after = item.availability.forfeit_copy()
    else:
        finalized = mark_returned(reservation, now, charged)
        availability_after = item.availability.return_copy()

    return ReturnPlan(
        reservation=finalized,
        availability_before=item.availability,
        availability_after=availability_after,
        charged_fee=charged,
        converted=converted,
        wallet_before=wallet if wallet_after is not None else None,
        wallet_after=wallet_after,
    )
