"""
Optional allow-list of group chats the bot acts on.
"""

import logging
from typing import Iterable, List, Set, Tuple

from offhours.domain.chat import is_group_jid

logger = logging.getLogger(__name__)


def partition_group_jids(jids: Iterable[str]) -> Tuple[List[str], List[str]]:
    """
    Split submitted identifiers into group ids and everything else.

    Returns:
        (kept, dropped) - kept is de-duplicated and sorted
    """
    kept: Set[str] = set()
    dropped: List[str] = []
    for jid in jids:
        jid = jid.strip()
        if is_group_jid(jid):
            kept.add(jid)
        else:
            dropped.append(jid)
    return sorted(kept), dropped


class GroupWhitelist:
    """An empty whitelist admits every group; otherwise only listed groups."""

    def __init__(self, jids: Iterable[str] = ()):
        self._jids: Set[str] = set()
        self.load(jids)

    def __len__(self) -> int:
        return len(self._jids)

    def __contains__(self, jid: str) -> bool:
        return jid in self._jids

    def allows(self, jid: str) -> bool:
        return not self._jids or jid in self._jids

    def jids(self) -> List[str]:
        return sorted(self._jids)

    def load(self, jids: Iterable[str]) -> None:
        """Replace contents without reporting, for startup loading."""
        self._jids = {jid for jid in jids if is_group_jid(jid)}

    def replace(self, jids: Iterable[str]) -> Tuple[List[str], List[str]]:
        """
        Replace the whitelist with the group identifiers among jids.

        Returns:
            (kept, dropped) - kept is the new whitelist, sorted
        """
        kept, dropped = partition_group_jids(jids)
        self._jids = set(kept)
        if dropped:
            logger.info(f"Dropped {len(dropped)} non-group whitelist entries")
        logger.info(f"Whitelist replaced with {len(kept)} groups")
        return kept, dropped
