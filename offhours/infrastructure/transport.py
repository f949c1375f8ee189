"""
Outbound transport to the WhatsApp Web bridge.

The bridge owns the socket, credentials and message encoding; this module only
issues HTTP calls against it.
"""

import logging
from typing import Any, Dict, Optional, Protocol

import httpx

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when the bridge rejects or fails a request."""


class LoggedOutError(TransportError):
    """Raised when the bridge reports the session was logged out."""


class ChatTransport(Protocol):
    """What the bot needs from the chat network."""

    async def send_text(self, jid: str, text: str) -> None:
        ...

    async def list_participating_groups(self) -> Dict[str, Dict[str, Any]]:
        ...

    async def connect(self) -> None:
        ...

    async def aclose(self) -> None:
        ...


class HttpBridgeTransport:
    """ChatTransport backed by the bridge's HTTP API."""

    def __init__(
        self,
        base_url: str,
        sessions_dir: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        self.sessions_dir = sessions_dir
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        if response.status_code == 401:
            raise LoggedOutError(f"{method} {url}: session logged out")
        if response.status_code >= 400:
            raise TransportError(f"{method} {url} returned {response.status_code}: {response.text}")
        return response

    async def send_text(self, jid: str, text: str) -> None:
        """
        Send a text message.

        Args:
            jid: Chat identifier
            text: Message body
        """
        await self._request("POST", "/messages", json={"jid": jid, "text": text})
        logger.info(f"Message sent to {jid}")

    async def list_participating_groups(self) -> Dict[str, Dict[str, Any]]:
        """
        Fetch every group the account currently participates in.

        Returns:
            Mapping of group id to metadata (at least "subject")
        """
        response = await self._request("GET", "/groups")
        payload = response.json()
        if not isinstance(payload, dict):
            raise TransportError("Unexpected groups payload")
        return payload

    async def connect(self) -> None:
        """Ask the bridge to (re)establish the stored session."""
        await self._request("POST", "/connect", json={"sessions_dir": self.sessions_dir})

    async def aclose(self) -> None:
        await self._client.aclose()
