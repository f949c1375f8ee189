"""
In-memory bookkeeping for the responder and the daily broadcast.

Nothing here is persisted; a restart starts from empty state.
"""

from datetime import datetime
from typing import Dict, Optional, Set


class DedupeCache:
    """Bounded set of seen message ids, evicting by insertion order."""

    def __init__(self, max_entries: int = 5000, keep_entries: int = 4000):
        if keep_entries > max_entries:
            raise ValueError("keep_entries must not exceed max_entries")
        self.max_entries = max_entries
        self.keep_entries = keep_entries
        # dict preserves insertion order
        self._seen: Dict[str, None] = {}

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, message_id: str) -> bool:
        return message_id in self._seen

    def record(self, message_id: str) -> bool:
        """
        Mark a message id as seen.

        Returns:
            True if the id had already been recorded, False if it is new
        """
        if message_id in self._seen:
            return True
        self._seen[message_id] = None
        if len(self._seen) > self.max_entries:
            self._compact()
        return False

    def _compact(self) -> None:
        tail = list(self._seen)[-self.keep_entries:]
        self._seen = dict.fromkeys(tail)


class ChatRateLimiter:
    """Per-chat cooldown after a send, and a lock while a delayed send is pending."""

    def __init__(self) -> None:
        self.cooldown_until: Dict[str, datetime] = {}
        self.responding_until: Dict[str, datetime] = {}

    def cooldown_active(self, chat: str, now: datetime) -> bool:
        until = self.cooldown_until.get(chat)
        return until is not None and now < until

    def set_cooldown(self, chat: str, until: datetime) -> None:
        self.cooldown_until[chat] = until

    def try_reserve(self, chat: str, now: datetime, until: datetime) -> bool:
        """Take the response lock unless one is still held. Must not await in between."""
        held = self.responding_until.get(chat)
        if held is not None and now < held:
            return False
        self.responding_until[chat] = until
        return True

    def release(self, chat: str) -> None:
        self.responding_until.pop(chat, None)


class DayLedger:
    """Chats that already got a given kind of reply on the current civil day."""

    def __init__(self) -> None:
        self.day_key: Optional[str] = None
        self._chats: Set[str] = set()

    def _roll(self, key: str) -> None:
        if self.day_key != key:
            self.day_key = key
            self._chats = set()

    def contains(self, chat: str, key: str) -> bool:
        self._roll(key)
        return chat in self._chats

    def add(self, chat: str, key: str) -> None:
        self._roll(key)
        self._chats.add(chat)

    def chats(self, key: str) -> Set[str]:
        self._roll(key)
        return set(self._chats)
