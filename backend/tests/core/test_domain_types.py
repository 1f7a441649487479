"""Domain Types - status sets partition the reservation states."""

from lending.core.domain_types import (
    FINAL_STATUSES, OPEN_STATUSES, REMINDABLE_STATUSES, ReservationStatus,
)


def test_open_and_final_partition_all_statuses():
    assert OPEN_STATUSES | FINAL_STATUSES == set(ReservationStatus)
    assert not OPEN_STATUSES & FINAL_STATUSES


def test_remindable_statuses_are_open():
    assert REMINDABLE_STATUSES <= OPEN_STATUSES
    assert ReservationStatus.PENDING not in REMINDABLE_STATUSES


def test_status_values_match_db_strings():
    assert ReservationStatus("CONVERTED_TO_PURCHASE") is ReservationStatus.CONVERTED_TO_PURCHASE
