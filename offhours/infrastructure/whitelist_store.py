"""
Persistence for the group whitelist.
"""

import logging
from typing import Iterable, List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from offhours.domain.whitelist import WhitelistEntry

logger = logging.getLogger(__name__)


async def load_whitelist(session: AsyncSession) -> List[str]:
    """Return every persisted whitelist entry."""
    result = await session.execute(select(WhitelistEntry.jid).order_by(WhitelistEntry.jid))
    return list(result.scalars().all())


async def replace_whitelist(session: AsyncSession, jids: Iterable[str]) -> None:
    """
    Replace the persisted whitelist in one transaction.

    Args:
        session: Database session
        jids: Group identifiers to store
    """
    jids = list(jids)
    await session.execute(delete(WhitelistEntry))
    session.add_all([WhitelistEntry(jid=jid) for jid in jids])
    await session.commit()
    logger.info(f"Persisted whitelist with {len(jids)} entries")
