"""Notification Payloads - one frozen record per event kind.

Invariants:
    - Payloads carry everything a dispatcher needs; dispatchers never query the DB
    - Confirmation, return and conversion notices are sent after their transaction commits
    - Due-soon and late reminders are sent inside the per-record transaction, before
      the reminder flag is written, so a failed send leaves the flag unset
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from lending.core.domain_types import ReservationId


@dataclass(frozen=True)
class Recipient:
    name: str
    email: str


@dataclass(frozen=True)
class ReservationConfirmed:
    recipient: Recipient
    item_title: str
    reservation_id: ReservationId
    borrow_date: datetime
    due_date: datetime
    fee: Decimal


@dataclass(frozen=True)
class ReservationReturned:
    recipient: Recipient
    item_title: str
    reservation_id: ReservationId
    return_date: datetime
    late_fee: Decimal


@dataclass(frozen=True)
class DueSoonReminder:
    recipient: Recipient
    item_title: str
    reservation_id: ReservationId
    due_date: datetime


@dataclass(frozen=True)
class LateReminder:
    recipient: Recipient
    item_title: str
    reservation_id: ReservationId
    due_date: datetime
    late_fee: Decimal


@dataclass(frozen=True)
class PurchaseConverted:
    recipient: Recipient
    item_title: str
    reservation_id: ReservationId
    purchase_amount: Decimal
    charged_to_wallet: bool
