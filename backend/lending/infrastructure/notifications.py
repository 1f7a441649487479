"""Log Notification Dispatcher - renders lending notices and writes them to the log.

Invariants:
    - One rendered message per payload; nothing is queried or persisted here
    - Every line carries reservation_id as a structured extra field

Design Decisions:
    - Delivery channel is the log stream; an SMTP/queue dispatcher can replace this
      class anywhere a NotificationDispatcher is accepted
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from lending.core.notifications import (
    DueSoonReminder, LateReminder, PurchaseConverted, Recipient,
    ReservationConfirmed, ReservationReturned,
)

logger = logging.getLogger(__name__)

SIGNATURE = "Best regards,\nRoyal Library of Belgium"


@dataclass(frozen=True)
class RenderedMessage:
    sender: str
    to: str
    subject: str
    body: str


def _date(value: datetime) -> str:
    return value.strftime("%Y-%m-%d")


def _money(value: Decimal) -> str:
    return f"€{value:.2f}"


def _greeting(recipient: Recipient) -> str:
    return f"Dear {recipient.name},"


class LogNotificationDispatcher:
    """NotificationDispatcher that logs each rendered message at INFO."""

    def __init__(self, sender: str):
        self.sender = sender

    def _emit(self, recipient: Recipient, subject: str, lines: list[str], reservation_id) -> RenderedMessage:
        message = RenderedMessage(
            sender=self.sender,
            to=recipient.email,
            subject=subject,
            body="\n".join([_greeting(recipient), *lines, "", SIGNATURE]),
        )
        logger.info(
            f"Notification to {message.to}: {message.subject}\n{message.body}",
            extra={"reservation_id": str(reservation_id)},
        )
        return message

    async def reservation_confirmed(self, payload: ReservationConfirmed) -> None:
        self._emit(payload.recipient, "Reservation Confirmation", [
            "Thank you for your reservation.",
            f"Item: {payload.item_title}",
            f"Due date: {_date(payload.due_date)}",
            f"Reservation fee: {_money(payload.fee)}",
            f"Reservation ID: {payload.reservation_id}",
            "Please return the item by the due date to avoid late fees.",
        ], payload.reservation_id)

    async def reservation_returned(self, payload: ReservationReturned) -> None:
        lines = [
            "Thank you for returning the item.",
            f"Item: {payload.item_title}",
            f"Return date: {_date(payload.return_date)}",
        ]
        if payload.late_fee > 0:
            lines.append(f"Late fee applied: {_money(payload.late_fee)}")
        self._emit(payload.recipient, "Return Confirmation", lines, payload.reservation_id)

    async def due_soon(self, payload: DueSoonReminder) -> None:
        self._emit(payload.recipient, "Item Due Soon", [
            f"Your loan of {payload.item_title} is due on {_date(payload.due_date)}.",
            f"Reservation ID: {payload.reservation_id}",
            "Please return it on time to avoid late fees.",
        ], payload.reservation_id)

    async def late(self, payload: LateReminder) -> None:
        self._emit(payload.recipient, "Overdue Item", [
            f"Your loan of {payload.item_title} was due on {_date(payload.due_date)}.",
            f"Late fees accrued so far: {_money(payload.late_fee)}",
            f"Reservation ID: {payload.reservation_id}",
            "Late fees keep accruing daily until the item is returned.",
        ], payload.reservation_id)

    async def converted_to_purchase(self, payload: PurchaseConverted) -> None:
        lines = [
            f"Late fees on {payload.item_title} reached its retail price.",
            f"The loan has been converted to a purchase of {_money(payload.purchase_amount)}.",
            f"Reservation ID: {payload.reservation_id}",
        ]
        if payload.charged_to_wallet:
            lines.append("The amount has been charged to your wallet.")
        self._emit(payload.recipient, "Loan Converted to Purchase", lines, payload.reservation_id)
