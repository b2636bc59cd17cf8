"""
Shared pytest configuration and fixtures.

Environment is set before the application is imported so that settings
and the engine pick up the in-memory database.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.session import Base
from app.models import expense, group, group_member, settlement, user  # noqa: F401
from app.services.currency_service import RateCache

from factories import FakeFetcher, InMemoryLedger


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fetcher():
    return FakeFetcher({
        "USD": {"USD": Decimal("1"), "INR": Decimal("80"), "EUR": Decimal("0.5")},
        "EUR": {"EUR": Decimal("1"), "INR": Decimal("160"), "USD": Decimal("2")},
        "INR": {"INR": Decimal("1"), "USD": Decimal("0.0125"), "EUR": Decimal("0.00625")},
    })


@pytest.fixture
def rates(fetcher, clock):
    return RateCache(fetcher, clock=clock, timeout=1.0)


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db(engine):
    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
