"""
Unit tests for the HTTP bridge transport.
"""

import json

import httpx
import pytest

from offhours.infrastructure.transport import HttpBridgeTransport, LoggedOutError, TransportError


def make_transport(handler) -> HttpBridgeTransport:
    client = httpx.AsyncClient(base_url="http://bridge", transport=httpx.MockTransport(handler))
    return HttpBridgeTransport("http://bridge", "sessions-test", client=client)


class TestHttpBridgeTransport:
    """Tests for HttpBridgeTransport."""

    @pytest.mark.asyncio
    async def test_send_text_posts_message(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"status": "sent"})

        transport = make_transport(handler)
        await transport.send_text("a@g.us", "closed")
        await transport.aclose()

        assert seen == {"path": "/messages", "body": {"jid": "a@g.us", "text": "closed"}}

    @pytest.mark.asyncio
    async def test_list_groups(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"a@g.us": {"subject": "Alpha"}})

        transport = make_transport(handler)

        assert await transport.list_participating_groups() == {"a@g.us": {"subject": "Alpha"}}

    @pytest.mark.asyncio
    async def test_server_error_raises(self):
        transport = make_transport(lambda request: httpx.Response(500, text="oops"))

        with pytest.raises(TransportError):
            await transport.send_text("a@g.us", "closed")

    @pytest.mark.asyncio
    async def test_unauthorized_means_logged_out(self):
        transport = make_transport(lambda request: httpx.Response(401))

        with pytest.raises(LoggedOutError):
            await transport.connect()

    @pytest.mark.asyncio
    async def test_network_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        transport = make_transport(handler)

        with pytest.raises(TransportError):
            await transport.list_participating_groups()
