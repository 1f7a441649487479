"""Read Records - the slices of User and Item the lending core needs.

Invariants:
    - Built by repositories from ORM rows; never mutated
    - ItemInfo carries its ItemAvailability so borrow/return plans see one snapshot
"""

from dataclasses import dataclass
from decimal import Decimal

from lending.core.availability import ItemAvailability
from lending.core.domain_types import ItemId, UserId


@dataclass(frozen=True)
class UserInfo:
    id: UserId
    name: str
    email: str
    is_active: bool = True


@dataclass(frozen=True)
class ItemInfo:
    id: ItemId
    title: str
    retail_price: Decimal
    availability: ItemAvailability
