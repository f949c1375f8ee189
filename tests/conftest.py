"""
Pytest configuration and fixtures for the off-hours bot tests.
"""

import asyncio
from datetime import datetime, timedelta
from typing import AsyncGenerator, List
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from offhours.config.settings import Settings
from offhours.domain.whitelist import Base


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TZ = "America/New_York"


def local(year: int, month: int, day: int, hour: int, minute: int = 0, second: int = 0) -> datetime:
    """Build an aware datetime on the test timezone's wall clock."""
    return datetime(year, month, day, hour, minute, second, tzinfo=ZoneInfo(TZ))


class FakeClock:
    """Settable clock; sleeping through it advances time."""

    def __init__(self, now: datetime):
        self.now = now
        self.sleeps: List[float] = []

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the windows used throughout the tests."""
    return Settings(
        timezone=TZ,
        open_hour=8,
        close_hour=18,
        lunch_start_hour=14,
        lunch_end_hour=16,
        lunch_chat_kinds=["group"],
        user_delay_seconds=10,
        group_delay_seconds=30,
        response_lock_margin_seconds=0.5,
        user_cooldown_seconds=10,
        group_cooldown_seconds=60,
        prepare_hour=18,
        prepare_minute=0,
        broadcast_hour=18,
        broadcast_minute=15,
        broadcast_pause_min_seconds=60,
        broadcast_pause_max_seconds=300,
        off_hours_message="We are closed.",
        lunch_message="We are at lunch.",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(local(2025, 1, 1, 19, 0))


@pytest.fixture
def mock_transport() -> AsyncMock:
    """Mock bridge transport."""
    transport = AsyncMock()
    transport.list_participating_groups.return_value = {}
    return transport


@pytest.fixture
def mock_scheduler() -> MagicMock:
    """Stands in for the APScheduler instance; records add_job calls."""
    return MagicMock()


@pytest_asyncio.fixture
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_factory() as session:
        yield session
        await session.rollback()
