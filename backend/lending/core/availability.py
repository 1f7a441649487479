"""Availability Tracker - copy-count invariants for one catalog item.

Invariants:
    - total_copies >= available_copies >= 0 on every record
    - borrow_copy() never goes below 0 (ItemUnavailableError)
    - return_copy() never exceeds total_copies (InvariantViolationError)
    - forfeit_copy() shrinks total_copies only; a purchased copy never re-enters the pool

Design Decisions:
    - Frozen record, operations return a new record: the shell keeps the "before"
      for its compare-and-set write
"""

from dataclasses import dataclass, replace

from lending.core.domain_types import ItemId
from lending.core.errors import (
    ErrorContext, InvariantViolationError, ItemUnavailableError,
)


@dataclass(frozen=True)
class ItemAvailability:
    item_id: ItemId
    total_copies: int
    available_copies: int

    def __post_init__(self):
        if not (self.total_copies >= self.available_copies >= 0):
            raise InvariantViolationError(
                f"Item {self.item_id}: availability {self.available_copies}/"
                f"{self.total_copies} out of bounds",
                ErrorContext(item_id=str(self.item_id)),
            )

    @property
    def is_available(self) -> bool:
        return self.available_copies > 0

    @property
    def copies_out(self) -> int:
        return self.total_copies - self.available_copies

    def borrow_copy(self) -> "ItemAvailability":
        if not self.is_available:
            raise ItemUnavailableError(
                str(self.item_id), ErrorContext(item_id=str(self.item_id)),
            )
        return replace(self, available_copies=self.available_copies - 1)

    def return_copy(self) -> "ItemAvailability":
        if self.available_copies >= self.total_copies:
            raise InvariantViolationError(
                f"Item {self.item_id}: cannot return more copies than total "
                f"({self.total_copies})",
                ErrorContext(item_id=str(self.item_id)),
            )
        return replace(self, available_copies=self.available_copies + 1)

    def forfeit_copy(self) -> "ItemAvailability":
        if self.copies_out == 0:
            raise InvariantViolationError(
                f"Item {self.item_id}: no copy is out, nothing to forfeit",
                ErrorContext(item_id=str(self.item_id)),
            )
        return replace(self, total_copies=self.total_copies - 1)
