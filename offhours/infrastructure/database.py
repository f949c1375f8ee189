"""
SQLite storage for the group whitelist.

Only the whitelist is persisted, so admin edits survive a restart. Dedupe,
cooldown, lock and ledger state live in memory for the life of the process.
"""

from pathlib import Path

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from offhours.config.settings import get_settings
from offhours.domain.whitelist import Base

settings = get_settings()

# One shared connection; aiosqlite is driven from a single event loop
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

whitelist_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_database() -> None:
    """Create the data directory and the whitelist table if missing."""
    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class DatabaseSession:
    """Session for a single whitelist read or replace; rolled back on error."""

    async def __aenter__(self) -> AsyncSession:
        self.session = whitelist_session_factory()
        return self.session

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            await self.session.rollback()
        await self.session.close()
