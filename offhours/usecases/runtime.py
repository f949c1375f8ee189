"""
Process-wide bot state and component wiring.

All mutable state (dedupe cache, rate limits, ledgers, roster, whitelist) hangs
off one BotRuntime, so tests can build a fresh one per case.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from offhours.config.settings import Settings, get_settings
from offhours.domain.service_window import TimeWindowClassifier
from offhours.infrastructure.connection import ConnectionMonitor
from offhours.infrastructure.scheduler import get_scheduler
from offhours.infrastructure.transport import ChatTransport, HttpBridgeTransport
from offhours.usecases.broadcast import BroadcastScheduler
from offhours.usecases.group_whitelist import GroupWhitelist
from offhours.usecases.responder import ReactiveResponder
from offhours.usecases.roster import DailyRoster
from offhours.utils.time import Clock, make_clock

logger = logging.getLogger(__name__)


@dataclass
class BotRuntime:
    settings: Settings
    transport: ChatTransport
    whitelist: GroupWhitelist
    classifier: TimeWindowClassifier
    responder: ReactiveResponder
    roster: DailyRoster
    broadcaster: BroadcastScheduler
    connection: ConnectionMonitor
    clock: Clock

    async def shutdown(self) -> None:
        await self.responder.drain()
        await self.transport.aclose()


def build_runtime(
    settings: Settings,
    scheduler,
    transport: Optional[ChatTransport] = None,
    clock: Optional[Clock] = None,
) -> BotRuntime:
    """Wire every component around one shared set of state."""
    clock = clock or make_clock(settings.timezone)
    transport = transport or HttpBridgeTransport(settings.bridge_url, settings.sessions_dir)
    whitelist = GroupWhitelist()
    classifier = TimeWindowClassifier(settings)
    roster = DailyRoster(transport, settings.timezone)

    responder = ReactiveResponder(settings, transport, classifier, whitelist, clock)
    broadcaster = BroadcastScheduler(settings, transport, roster, whitelist, scheduler, clock)
    connection = ConnectionMonitor(
        transport,
        on_open=broadcaster.arm,
        reconnect_attempts=settings.reconnect_attempts,
    )
    return BotRuntime(
        settings=settings,
        transport=transport,
        whitelist=whitelist,
        classifier=classifier,
        responder=responder,
        roster=roster,
        broadcaster=broadcaster,
        connection=connection,
        clock=clock,
    )


# Global runtime instance
runtime: Optional[BotRuntime] = None


def get_runtime() -> BotRuntime:
    """Get or create the runtime instance."""
    global runtime

    if runtime is None:
        runtime = build_runtime(get_settings(), get_scheduler())
        logger.info("Runtime initialized")

    return runtime


def reset_runtime() -> None:
    global runtime
    runtime = None
