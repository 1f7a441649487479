"""User Repository - read-only identity lookups for the lending core."""

from sqlalchemy.ext.asyncio import AsyncSession

from lending.core.domain_types import UserId
from lending.core.records import UserInfo
from lending.models.user import User


class SqlUserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_info(self, user_id: UserId) -> UserInfo | None:
        row = await self.db.get(User, user_id)
        if row is None:
            return None
        return UserInfo(
            id=UserId(row.id), name=row.name, email=row.email,
            is_active=row.is_active,
        )
