"""
Daily off-hours broadcast to group chats.

Each civil day runs IDLE -> PREPARED -> BROADCASTING -> IDLE. The transition
function is pure; actual waiting is delegated to APScheduler date jobs.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from apscheduler.triggers.date import DateTrigger

from offhours.config.settings import Settings
from offhours.domain.chat import is_group_jid
from offhours.infrastructure.transport import ChatTransport
from offhours.usecases.group_whitelist import GroupWhitelist
from offhours.usecases.responder import Sleep
from offhours.usecases.roster import DailyRoster
from offhours.usecases.state import DayLedger
from offhours.utils.time import Clock, day_key, local_time_on_day, next_local_occurrence

logger = logging.getLogger(__name__)

PREPARE_JOB_ID = "daily_prepare"
BROADCAST_JOB_ID = "daily_broadcast"


class BroadcastPhase(str, Enum):
    """Phase of the daily broadcast cycle."""
    IDLE = "idle"
    PREPARED = "prepared"
    BROADCASTING = "broadcasting"


@dataclass(frozen=True)
class DailyTimes:
    """Local times of the prepare and broadcast transitions."""
    timezone: str
    prepare_hour: int
    prepare_minute: int
    broadcast_hour: int
    broadcast_minute: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "DailyTimes":
        return cls(
            timezone=settings.timezone,
            prepare_hour=settings.prepare_hour,
            prepare_minute=settings.prepare_minute,
            broadcast_hour=settings.broadcast_hour,
            broadcast_minute=settings.broadcast_minute,
        )

    def prepare_at(self, now: datetime) -> datetime:
        return local_time_on_day(now, self.timezone, self.prepare_hour, self.prepare_minute)

    def broadcast_at(self, now: datetime) -> datetime:
        return local_time_on_day(now, self.timezone, self.broadcast_hour, self.broadcast_minute)


@dataclass(frozen=True)
class Transition:
    target: BroadcastPhase
    run_at: datetime

    def is_due(self, now: datetime) -> bool:
        return self.run_at <= now


def next_transition(phase: BroadcastPhase, now: datetime, times: DailyTimes) -> Optional[Transition]:
    """
    Next transition of the daily cycle from the given phase.

    Starting IDLE between the prepare and broadcast times means the scheduled
    prepare was missed (restart), so it is due immediately.

    Returns:
        The transition to schedule, or None while a broadcast is running
    """
    if phase is BroadcastPhase.BROADCASTING:
        return None

    broadcast_at = times.broadcast_at(now)
    if phase is BroadcastPhase.PREPARED:
        return Transition(BroadcastPhase.BROADCASTING, max(broadcast_at, now))

    if times.prepare_at(now) <= now < broadcast_at:
        return Transition(BroadcastPhase.PREPARED, now)
    run_at = next_local_occurrence(now, times.timezone, times.prepare_hour, times.prepare_minute)
    return Transition(BroadcastPhase.PREPARED, run_at)


class BroadcastScheduler:
    """Drives the daily prepare/broadcast cycle."""

    def __init__(
        self,
        settings: Settings,
        transport: ChatTransport,
        roster: DailyRoster,
        whitelist: GroupWhitelist,
        scheduler,
        clock: Clock,
        sleep: Sleep = asyncio.sleep,
        pause: Optional[Callable[[], float]] = None,
    ):
        self.settings = settings
        self.transport = transport
        self.roster = roster
        self.whitelist = whitelist
        self.scheduler = scheduler
        self.clock = clock
        self.times = DailyTimes.from_settings(settings)
        self.phase = BroadcastPhase.IDLE
        self.ledger = DayLedger()
        self._sleep = sleep
        self._pause = pause or (
            lambda: random.uniform(settings.broadcast_pause_min_seconds, settings.broadcast_pause_max_seconds)
        )

    def _schedule(self, transition: Transition) -> None:
        if transition.target is BroadcastPhase.PREPARED:
            job_id, func = PREPARE_JOB_ID, self.run_prepare
        else:
            job_id, func = BROADCAST_JOB_ID, self.run_broadcast

        self.scheduler.add_job(
            func,
            trigger=DateTrigger(run_date=transition.run_at),
            id=job_id,
            replace_existing=True,
            misfire_grace_time=None,
        )
        logger.info(f"Scheduled {transition.target.value} for {transition.run_at}")

    async def arm(self) -> None:
        """
        (Re)arm the daily cycle, e.g. whenever the connection opens.

        Pending jobs are replaced. A prepare that is due now runs inline before
        the broadcast job is scheduled.
        """
        now = self.clock()
        transition = next_transition(self.phase, now, self.times)
        if transition is None:
            logger.info("Broadcast in progress, not re-arming")
            return

        if transition.target is BroadcastPhase.PREPARED and transition.is_due(now):
            logger.info("Inside prepare window, preparing immediately")
            await self.run_prepare()
            return
        self._schedule(transition)

    async def run_prepare(self) -> None:
        """IDLE -> PREPARED: snapshot the roster and schedule the broadcast."""
        now = self.clock()
        await self.roster.prepare(now)
        self.phase = BroadcastPhase.PREPARED

        transition = next_transition(self.phase, self.clock(), self.times)
        if transition is not None:
            self._schedule(transition)

    async def run_broadcast(self) -> int:
        """
        PREPARED -> BROADCASTING -> IDLE: send the off-hours notice to every
        eligible group in the roster, then arm the next day.

        Returns:
            Number of groups the notice was sent to
        """
        self.phase = BroadcastPhase.BROADCASTING
        sent = 0
        try:
            now = self.clock()
            key = day_key(now, self.settings.timezone)
            groups = await self.roster.prepare(now)
            targets = [
                jid for jid in groups
                if is_group_jid(jid) and self.whitelist.allows(jid) and not self.ledger.contains(jid, key)
            ]
            logger.info(f"Broadcasting off-hours notice to {len(targets)} groups (day {key})")

            for index, jid in enumerate(targets):
                try:
                    await self.transport.send_text(jid, self.settings.off_hours_message)
                    self.ledger.add(jid, key)
                    sent += 1
                except Exception as e:
                    logger.exception(f"Error sending to group {jid}: {e}")

                if index < len(targets) - 1:
                    await self._sleep(self._pause())

            logger.info(f"Broadcast finished: {sent}/{len(targets)} groups")
        finally:
            self.phase = BroadcastPhase.IDLE

        await self.arm()
        return sent
