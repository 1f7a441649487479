"""Item ORM - a catalog title with a pool of lendable copies.

Invariants:
    - total_copies >= available_copies >= 0 (CHECK constraint mirrors ItemAvailability)
    - retail_price >= 0; reaching it in late fees converts a loan to a purchase
    - available_copies only changes through compare-and-set UPDATEs in ItemRepository

Design Decisions:
    - JSON columns for authors/categories: catalog metadata is not queried by the core
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String, Text, Integer, Numeric, DateTime, JSON, CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from lending.db.base import Base


class Item(Base):
    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint(
            "available_copies >= 0 AND available_copies <= total_copies",
            name="ck_items_copies_bounds",
        ),
        CheckConstraint("retail_price >= 0", name="ck_items_retail_price"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    isbn: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    authors: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    publication_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    publisher: Mapped[str | None] = mapped_column(String(200), nullable=True)
    categories: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    retail_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_copies: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    available_copies: Mapped[int] = mapped_column(Integer, nullable=False, default=4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
