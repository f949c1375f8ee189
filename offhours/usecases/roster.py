"""
Day-scoped snapshot of the group chats the account belongs to.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from offhours.domain.chat import is_group_jid
from offhours.infrastructure.transport import ChatTransport
from offhours.utils.time import day_key

logger = logging.getLogger(__name__)


def _display_name(jid: str, meta: Any) -> str:
    if isinstance(meta, dict):
        return meta.get("subject") or meta.get("name") or jid
    return jid


class DailyRoster:
    """
    Group roster captured at most once per civil day.

    The broadcast snapshot (groups) is frozen once prepared for a day. The name
    directory used by the admin listing is refreshed independently so that
    browsing groups never changes what the broadcast will cover.
    """

    def __init__(self, transport: ChatTransport, timezone: str):
        self.transport = transport
        self.timezone = timezone
        self.day_key: Optional[str] = None
        self.groups: List[str] = []
        self.directory_day_key: Optional[str] = None
        self.names: Dict[str, str] = {}
        self._lock = asyncio.Lock()

    def is_prepared(self, now: datetime) -> bool:
        return self.day_key == day_key(now, self.timezone)

    async def _fetch(self) -> Dict[str, str]:
        participating = await self.transport.list_participating_groups()
        return {
            jid: _display_name(jid, meta)
            for jid, meta in (participating or {}).items()
            if is_group_jid(jid)
        }

    async def prepare(self, now: datetime) -> List[str]:
        """
        Snapshot today's groups unless already done for this day.

        A failed fetch records an empty roster for the day rather than leaving it
        unset, so the broadcast for that day becomes a no-op.

        Args:
            now: Current time

        Returns:
            Group ids in roster order
        """
        key = day_key(now, self.timezone)
        async with self._lock:
            if self.day_key == key:
                return list(self.groups)
            try:
                names = await self._fetch()
            except Exception as e:
                logger.exception(f"Error fetching groups for {key}: {e}")
                names = {}
            else:
                self.names = names
                self.directory_day_key = key
            self.groups = list(names)
            self.day_key = key
            logger.info(f"Prepared {len(self.groups)} groups for day {key}")
            return list(self.groups)

    async def directory(self, now: datetime) -> Dict[str, str]:
        """Name-annotated group listing for today, refreshed when stale."""
        key = day_key(now, self.timezone)
        async with self._lock:
            if self.directory_day_key != key:
                self.names = await self._fetch()
                self.directory_day_key = key
                logger.info(f"Refreshed group directory for day {key}")
            return dict(self.names)
