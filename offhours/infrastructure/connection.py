"""
Connection lifecycle handling for the WhatsApp Web session.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from offhours.domain.chat import ConnectionUpdate
from offhours.infrastructure.transport import ChatTransport, LoggedOutError, TransportError

logger = logging.getLogger(__name__)

# Status code the bridge reports when the device was unlinked
LOGGED_OUT_STATUS = 401


class ConnectionMonitor:
    """Tracks pairing state and re-establishes the session after a drop."""

    def __init__(
        self,
        transport: ChatTransport,
        on_open: Callable[[], Awaitable[None]],
        reconnect_attempts: int = 5,
        wait=None,
    ):
        self.transport = transport
        self.on_open = on_open
        self.reconnect_attempts = reconnect_attempts
        self.wait = wait or wait_exponential(multiplier=1, min=1, max=30)
        self.connected = False
        self.logged_out = False
        self.latest_qr: Optional[str] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def status(self) -> str:
        if self.connected:
            return "connected"
        if self.latest_qr:
            return "qr_ready"
        return "waiting"

    async def handle_update(self, update: ConnectionUpdate) -> Optional[asyncio.Task]:
        """
        Apply a connection update from the bridge.

        Returns:
            The reconnect task when one was started
        """
        if update.qr:
            self.latest_qr = update.qr
            logger.info("New pairing QR received")

        if update.connection == "open":
            self.connected = True
            self.logged_out = False
            self.latest_qr = None
            logger.info("Connected to WhatsApp")
            try:
                await self.on_open()
            except Exception as e:
                logger.exception(f"Error arming daily schedules: {e}")
            return None

        if update.connection == "close":
            self.connected = False
            should_reconnect = update.status_code != LOGGED_OUT_STATUS
            logger.info(f"Connection closed (status {update.status_code}). Reconnect: {should_reconnect}")
            if not should_reconnect:
                self.logged_out = True
                return None
            return self.request_session()

        return None

    def request_session(self) -> asyncio.Task:
        """Start a background (re)connect without blocking the caller."""
        task = asyncio.create_task(self.reconnect())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def reconnect(self) -> bool:
        """Re-establish the session, retrying transient failures."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.reconnect_attempts),
            wait=self.wait,
            retry=retry_if_exception_type(TransportError) & retry_if_not_exception_type(LoggedOutError),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    await self.transport.connect()
        except LoggedOutError:
            self.logged_out = True
            logger.error("Session logged out; not reconnecting")
            return False
        except TransportError as e:
            logger.error(f"Failed to reconnect after {self.reconnect_attempts} attempts: {e}")
            return False
        logger.info("Reconnect requested")
        return True
