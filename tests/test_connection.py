"""
Unit tests for connection lifecycle handling.
"""

from unittest.mock import AsyncMock

import pytest
from tenacity import wait_none

from offhours.domain.chat import ConnectionUpdate
from offhours.infrastructure.connection import LOGGED_OUT_STATUS, ConnectionMonitor
from offhours.infrastructure.transport import LoggedOutError, TransportError


@pytest.fixture
def on_open():
    return AsyncMock()


@pytest.fixture
def monitor(mock_transport, on_open):
    return ConnectionMonitor(mock_transport, on_open=on_open, reconnect_attempts=3, wait=wait_none())


class TestConnectionMonitor:
    """Tests for ConnectionMonitor.handle_update."""

    @pytest.mark.asyncio
    async def test_qr_update(self, monitor):
        await monitor.handle_update(ConnectionUpdate(qr="2@abc"))

        assert monitor.latest_qr == "2@abc"
        assert monitor.status == "qr_ready"

    @pytest.mark.asyncio
    async def test_open_arms_schedules(self, monitor, on_open):
        """Connection open clears the QR and arms the daily cycle."""
        await monitor.handle_update(ConnectionUpdate(qr="2@abc"))

        await monitor.handle_update(ConnectionUpdate(connection="open"))

        on_open.assert_awaited_once()
        assert monitor.connected is True
        assert monitor.latest_qr is None
        assert monitor.status == "connected"

    @pytest.mark.asyncio
    async def test_open_survives_arm_failure(self, monitor, on_open):
        on_open.side_effect = RuntimeError("boom")

        await monitor.handle_update(ConnectionUpdate(connection="open"))

        assert monitor.connected is True

    @pytest.mark.asyncio
    async def test_close_reconnects(self, monitor, mock_transport):
        await monitor.handle_update(ConnectionUpdate(connection="open"))

        task = await monitor.handle_update(ConnectionUpdate(connection="close", status_code=428))

        assert task is not None
        assert await task is True
        mock_transport.connect.assert_awaited_once()
        assert monitor.connected is False

    @pytest.mark.asyncio
    async def test_logged_out_does_not_reconnect(self, monitor, mock_transport):
        task = await monitor.handle_update(
            ConnectionUpdate(connection="close", status_code=LOGGED_OUT_STATUS)
        )

        assert task is None
        assert monitor.logged_out is True
        mock_transport.connect.assert_not_awaited()


class TestReconnect:
    """Tests for the retrying reconnect."""

    @pytest.mark.asyncio
    async def test_retries_transient_failures(self, monitor, mock_transport):
        mock_transport.connect.side_effect = [TransportError("down"), TransportError("down"), None]

        assert await monitor.reconnect() is True
        assert mock_transport.connect.await_count == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self, monitor, mock_transport):
        mock_transport.connect.side_effect = TransportError("down")

        assert await monitor.reconnect() is False
        assert mock_transport.connect.await_count == 3

    @pytest.mark.asyncio
    async def test_logged_out_is_not_retried(self, monitor, mock_transport):
        mock_transport.connect.side_effect = LoggedOutError("unlinked")

        assert await monitor.reconnect() is False
        assert monitor.logged_out is True
        mock_transport.connect.assert_awaited_once()
