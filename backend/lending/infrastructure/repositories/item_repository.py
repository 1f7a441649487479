"""Item Repository - availability reads and compare-and-set writes.

Invariants:
    - update_availability() matches on the "before" pair (available, total);
      zero rows -> ConcurrencyError, so two borrows of the last copy cannot both win
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from lending.core.availability import ItemAvailability
from lending.core.domain_types import ItemId
from lending.core.errors import ConcurrencyError, ErrorContext
from lending.core.records import ItemInfo
from lending.models.item import Item


def to_info(row: Item) -> ItemInfo:
    return ItemInfo(
        id=ItemId(row.id),
        title=row.title,
        retail_price=row.retail_price,
        availability=ItemAvailability(
            item_id=ItemId(row.id),
            total_copies=row.total_copies,
            available_copies=row.available_copies,
        ),
    )


class SqlItemRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_info(self, item_id: ItemId) -> ItemInfo | None:
        result = await self.db.execute(
            select(Item)
            .where(Item.id == item_id)
            .execution_options(populate_existing=True),
        )
        row = result.scalar_one_or_none()
        return to_info(row) if row else None

    async def update_availability(
        self, before: ItemAvailability, after: ItemAvailability,
    ) -> ItemAvailability:
        result = await self.db.execute(
            update(Item)
            .where(Item.id == before.item_id)
            .where(Item.available_copies == before.available_copies)
            .where(Item.total_copies == before.total_copies)
            .values(
                available_copies=after.available_copies,
                total_copies=after.total_copies,
            ),
        )
        if result.rowcount != 1:
            raise ConcurrencyError(
                f"Item {before.item_id} availability changed concurrently",
                ErrorContext(item_id=str(before.item_id)),
            )
        return after
