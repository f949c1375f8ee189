"""
Reactive responder: answers inbound chat messages with the off-hours or lunch
notice after a short, human-paced delay.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional, Set

from offhours.config.settings import Settings
from offhours.domain.chat import ChatKind, InboundMessage
from offhours.domain.service_window import TimeWindowClassifier
from offhours.infrastructure.transport import ChatTransport
from offhours.usecases.group_whitelist import GroupWhitelist
from offhours.usecases.state import ChatRateLimiter, DayLedger, DedupeCache
from offhours.utils.time import Clock, day_key

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ReactiveResponder:
    """Runs the per-message checks and owns the resulting delayed sends."""

    def __init__(
        self,
        settings: Settings,
        transport: ChatTransport,
        classifier: TimeWindowClassifier,
        whitelist: GroupWhitelist,
        clock: Clock,
        dedupe: Optional[DedupeCache] = None,
        limiter: Optional[ChatRateLimiter] = None,
        ledger: Optional[DayLedger] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.settings = settings
        self.transport = transport
        self.classifier = classifier
        self.whitelist = whitelist
        self.clock = clock
        if dedupe is None:
            dedupe = DedupeCache(settings.dedupe_max_entries, settings.dedupe_keep_entries)
        self.dedupe = dedupe
        self.limiter = limiter if limiter is not None else ChatRateLimiter()
        self.ledger = ledger if ledger is not None else DayLedger()
        self._sleep = sleep
        self._lunch_kinds = {ChatKind(kind) for kind in settings.lunch_chat_kinds}
        self._tasks: Set[asyncio.Task] = set()

    def delay_for(self, kind: ChatKind) -> float:
        if kind is ChatKind.GROUP:
            return self.settings.group_delay_seconds
        return self.settings.user_delay_seconds

    def cooldown_for(self, kind: ChatKind) -> float:
        if kind is ChatKind.GROUP:
            return self.settings.group_cooldown_seconds
        return self.settings.user_cooldown_seconds

    def notice_for(self, kind: ChatKind, now: datetime) -> Optional[str]:
        """
        Notice that applies to a chat of this kind right now.

        Lunch takes priority over off-hours, but only for chat kinds lunch
        replies are enabled for.
        """
        if self.classifier.is_lunch(now) and kind in self._lunch_kinds:
            return self.settings.lunch_message
        if self.classifier.is_off_hours(now):
            return self.settings.off_hours_message
        return None

    def submit(self, message: InboundMessage) -> Optional[asyncio.Task]:
        """
        Run the admission checks for a message and schedule its reply.

        Everything up to the lock reservation runs without yielding to the event
        loop, so two deliveries for the same chat can never both pass.

        Args:
            message: Normalized inbound message

        Returns:
            The task performing the delayed send, or None if no reply is due
        """
        kind = message.kind
        if message.is_self_sent or kind not in (ChatKind.GROUP, ChatKind.USER):
            return None

        if message.id:
            if self.dedupe.record(message.id):
                logger.debug(f"Message {message.id} already processed, skipping")
                return None

        if not message.text.strip():
            return None

        chat = message.chat
        if kind is ChatKind.GROUP and not self.whitelist.allows(chat):
            logger.debug(f"Group {chat} not whitelisted, skipping")
            return None

        now = self.clock()
        if self.notice_for(kind, now) is None:
            return None

        today = day_key(now, self.settings.timezone)
        if kind is ChatKind.GROUP and self.ledger.contains(chat, today):
            logger.debug(f"Group {chat} already answered today, skipping")
            return None

        if self.limiter.cooldown_active(chat, now):
            return None

        delay = self.delay_for(kind)
        lock_until = now + timedelta(seconds=delay + self.settings.response_lock_margin_seconds)
        if not self.limiter.try_reserve(chat, now, lock_until):
            logger.debug(f"Reply to {chat} already pending, skipping")
            return None

        logger.info(f"Scheduling reply to {chat} in {delay:.0f}s")
        task = asyncio.create_task(self._deliver(chat, kind, delay))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _deliver(self, chat: str, kind: ChatKind, delay: float) -> bool:
        try:
            await self._sleep(delay)

            # Decided now, not at arrival: the window may have changed during the delay
            now = self.clock()
            text = self.notice_for(kind, now)
            if text is None:
                logger.info(f"Window closed before reply to {chat}, not sending")
                return False

            await self.transport.send_text(chat, text)

            sent_at = self.clock()
            self.limiter.set_cooldown(chat, sent_at + timedelta(seconds=self.cooldown_for(kind)))
            if kind is ChatKind.GROUP:
                self.ledger.add(chat, day_key(sent_at, self.settings.timezone))
            logger.info(f"Notice sent to {chat}")
            return True
        except Exception as e:
            logger.exception(f"Error sending notice to {chat}: {e}")
            return False
        finally:
            self.limiter.release(chat)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every in-flight reply to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
