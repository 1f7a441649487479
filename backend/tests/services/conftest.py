"""Service test fixtures - async DB, fixed clock, recording notifier, HTTP client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - Services and assertions share test_db; repositories read with populate_existing
    - get_db, get_clock and get_notifier are overridden for route tests
    - db_manager is patched so scheduler jobs open sessions on the test engine

Design Decisions:
    - SQLite in-memory: fast, no external dependency; PostgreSQL-only features are
      not exercised by the lending code
    - The clock only moves when a test moves it
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

import lending.infrastructure.database as db_module
from lending.api.dependencies import get_clock, get_notifier
from lending.config import get_settings
from lending.core.policy import LendingPolicy
from lending.db.base import Base
from lending.infrastructure.database import DatabaseSessionManager, get_db
from lending.main import app
from lending.models.item import Item
from lending.models.user import User
from lending.models.wallet import Wallet
from lending.services.jobs import build_scheduler
from lending.services.reconciliation import ReconciliationService
from lending.services.reservation_service import ReservationService
from lending.services.wallet_service import WalletService

START = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


# Seeded rows are handed back as plain snapshots: a service rollback on the
# shared session expires ORM instances, and reading an expired attribute
# would lazy-load outside the async context.

@dataclass(frozen=True)
class SeededUser:
    id: UUID
    name: str
    email: str


@dataclass(frozen=True)
class SeededItem:
    id: UUID
    title: str
    retail_price: Decimal


@dataclass(frozen=True)
class SeededWallet:
    id: UUID
    user_id: UUID
    balance: Decimal


class FixedClock:
    def __init__(self, now: datetime = START):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


class RecordingNotifier:
    """Collects every payload; kinds listed in fail_on raise instead."""

    def __init__(self):
        self.sent: list[tuple[str, object]] = []
        self.fail_on: set[str] = set()

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.sent]

    def of_kind(self, kind: str) -> list:
        return [payload for k, payload in self.sent if k == kind]

    async def _record(self, kind: str, payload) -> None:
        if kind in self.fail_on:
            raise ConnectionError(f"{kind} delivery down")
        self.sent.append((kind, payload))

    async def reservation_confirmed(self, payload) -> None:
        await self._record("confirmed", payload)

    async def reservation_returned(self, payload) -> None:
        await self._record("returned", payload)

    async def due_soon(self, payload) -> None:
        await self._record("due_soon", payload)

    async def late(self, payload) -> None:
        await self._record("late", payload)

    async def converted_to_purchase(self, payload) -> None:
        await self._record("converted", payload)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def policy():
    return LendingPolicy()


@pytest.fixture
def reservation_service(test_db, policy, clock, notifier):
    return ReservationService(test_db, policy, clock, notifier)


@pytest.fixture
def reconciliation(test_db, policy, clock, notifier):
    return ReconciliationService(test_db, policy, clock, notifier)


@pytest.fixture
def wallet_service(test_db):
    return WalletService(test_db)


@pytest.fixture
def seed(test_db):
    """Row factories committed straight through the ORM."""
    counter = {"n": 0}

    class _Seed:
        async def user(self, name="Ada Lovelace", active=True) -> SeededUser:
            counter["n"] += 1
            user = User(
                name=name, email=f"member{counter['n']}@example.org",
                is_active=active,
            )
            test_db.add(user)
            await test_db.commit()
            return SeededUser(user.id, user.name, user.email)

        async def item(self, copies=4, available=None, price="9.99", title="Dune") -> SeededItem:
            counter["n"] += 1
            item = Item(
                isbn=f"978-{counter['n']:09d}", title=title, authors=["F. Herbert"],
                categories=["fiction"], retail_price=Decimal(price),
                total_copies=copies,
                available_copies=copies if available is None else available,
            )
            test_db.add(item)
            await test_db.commit()
            return SeededItem(item.id, item.title, item.retail_price)

        async def wallet(self, user: SeededUser, balance="50.00") -> SeededWallet:
            wallet = Wallet(user_id=user.id, balance=Decimal(balance))
            test_db.add(wallet)
            await test_db.commit()
            return SeededWallet(wallet.id, wallet.user_id, wallet.balance)

        async def member(self, balance="50.00", active=True) -> tuple[SeededUser, SeededWallet]:
            user = await self.user(active=active)
            return user, await self.wallet(user, balance)

    return _Seed()


@pytest.fixture
async def client(test_engine, test_session_factory, clock, notifier):
    """FastAPI test client with DB, clock and notifier dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_notifier] = lambda: notifier

    # Scheduler jobs open their own sessions through db_manager
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager
    app.state.scheduler = build_scheduler(get_settings(), clock, notifier)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
    del app.state.scheduler
