"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without a
local store file, and a dict-backed ``AsyncMock`` in place of Redis so the
store lock keeps real SET NX semantics.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from unipool.domain.entities import Booking, RatingRecord, Ride, Snapshot, User
from unipool.domain.enums import RatingCategory, Role
from unipool.infrastructure.database import Base
from unipool.infrastructure import models  # noqa: F401  (registers kv_store)
from unipool.infrastructure.store import Store

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

# Sunday, 18 Oct 2026, noon UTC
SUNDAY_NOON = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_fake_redis() -> AsyncMock:
    """AsyncMock honouring ``SET NX`` and the compare-and-delete release."""
    data: dict[str, str] = {}
    redis = AsyncMock()

    async def _set(key, value, nx=False, ex=None):
        if nx and key in data:
            return None
        data[key] = value
        return True

    async def _eval(script, numkeys, key, token):
        if data.get(key) == token:
            del data[key]
            return 1
        return 0

    redis.set.side_effect = _set
    redis.eval.side_effect = _eval
    redis.data = data
    return redis


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create tables on a fresh in-memory database, then dispose it."""
    engine = create_async_engine(TEST_DB_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def fake_redis() -> AsyncMock:
    return make_fake_redis()


@pytest.fixture
def store(session_factory, fake_redis) -> Store:
    return Store(session_factory, fake_redis, key="test_db")


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(SUNDAY_NOON)


@pytest.fixture
def make_user():
    def _make(
        user_id: str,
        role: Role = Role.RIDER,
        driver_scores: tuple[int, ...] = (),
    ) -> User:
        user = User(id=user_id, name=f"User {user_id}", email=f"{user_id}@fcc.edu", role=role)
        for idx, score in enumerate(driver_scores):
            user.ratings.upsert(
                RatingCategory.DRIVER,
                RatingRecord(rating=score, rater_id=f"rater{idx}"),
            )
        return user

    return _make


@pytest.fixture
def make_ride(clock):
    def _make(
        ride_id: str = "r1",
        minutes: float = 10,
        dropoff: str = "FCC",
        pickup: str = "Gulberg III",
        seats: int = 3,
        available: Optional[int] = None,
        driver_id: str = "d1",
    ) -> Ride:
        return Ride(
            id=ride_id,
            pickup=pickup,
            dropoff=dropoff,
            departure_time=clock.now + timedelta(minutes=minutes),
            driver_id=driver_id,
            seats=seats,
            available_seats=available,
        )

    return _make


@pytest.fixture
def seed(store):
    """Save the given records as the whole store document."""

    async def _seed(
        users: tuple[User, ...] = (),
        rides: tuple[Ride, ...] = (),
        bookings: tuple[Booking, ...] = (),
    ) -> None:
        await store.save(
            Snapshot(users=list(users), rides=list(rides), bookings=list(bookings))
        )

    return _seed
