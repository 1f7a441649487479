"""Log Notification Dispatcher - message rendering."""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from lending.core.notifications import (
    LateReminder, PurchaseConverted, Recipient, ReservationReturned,
)
from lending.infrastructure.notifications import LogNotificationDispatcher

ADA = Recipient(name="Ada Lovelace", email="ada@example.org")
DUE = datetime(2026, 3, 9, 9, 0, tzinfo=timezone.utc)


def _dispatcher():
    return LogNotificationDispatcher("Royal Library <library@royallibrary.be>")


async def test_late_reminder_lists_fee(caplog):
    rid = uuid4()
    with caplog.at_level(logging.INFO, logger="lending.infrastructure.notifications"):
        await _dispatcher().late(LateReminder(ADA, "Dune", rid, DUE, Decimal("1.60")))

    record = caplog.records[-1]
    assert record.reservation_id == str(rid)
    assert "Notification to ada@example.org: Overdue Item" in record.getMessage()
    assert "Late fees accrued so far: €1.60" in record.getMessage()
    assert "due on 2026-03-09" in record.getMessage()


async def test_on_time_return_has_no_fee_line(caplog):
    with caplog.at_level(logging.INFO, logger="lending.infrastructure.notifications"):
        await _dispatcher().reservation_returned(
            ReservationReturned(ADA, "Dune", uuid4(), DUE, Decimal("0.00")),
        )
    message = caplog.records[-1].getMessage()
    assert "Dear Ada Lovelace," in message
    assert "Late fee" not in message
    assert message.endswith("Royal Library of Belgium")


async def test_conversion_mentions_wallet_only_when_charged(caplog):
    dispatcher = _dispatcher()
    with caplog.at_level(logging.INFO, logger="lending.infrastructure.notifications"):
        await dispatcher.converted_to_purchase(
            PurchaseConverted(ADA, "Dune", uuid4(), Decimal("9.99"), charged_to_wallet=False),
        )
        await dispatcher.converted_to_purchase(
            PurchaseConverted(ADA, "Dune", uuid4(), Decimal("9.99"), charged_to_wallet=True),
        )
    record_only, charged = (r.getMessage() for r in caplog.records[-2:])
    assert "purchase of €9.99" in record_only
    assert "charged to your wallet" not in record_only
    assert "charged to your wallet" in charged
