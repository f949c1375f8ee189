"""
Chat identifiers and inbound message schemas.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

GROUP_SUFFIX = "@g.us"
USER_SUFFIX = "@s.whatsapp.net"
BROADCAST_SUFFIX = "@broadcast"
STATUS_JID = "status@broadcast"


class ChatKind(str, Enum):
    """Chat kind, derived from the identifier suffix."""
    GROUP = "group"
    USER = "user"
    BROADCAST = "broadcast"
    STATUS = "status"
    OTHER = "other"


def chat_kind(jid: str) -> ChatKind:
    """Classify a chat identifier by its suffix."""
    if jid == STATUS_JID:
        return ChatKind.STATUS
    if jid.endswith(GROUP_SUFFIX):
        return ChatKind.GROUP
    if jid.endswith(USER_SUFFIX):
        return ChatKind.USER
    if jid.endswith(BROADCAST_SUFFIX):
        return ChatKind.BROADCAST
    return ChatKind.OTHER


def is_group_jid(jid: str) -> bool:
    return chat_kind(jid) is ChatKind.GROUP


# Content shapes carrying text, in lookup order
_TEXT_PATHS = (
    ("conversation",),
    ("extendedTextMessage", "text"),
    ("imageMessage", "caption"),
    ("videoMessage", "caption"),
    ("documentMessage", "caption"),
    ("buttonsResponseMessage", "selectedDisplayText"),
    ("templateButtonReplyMessage", "selectedDisplayText"),
    ("listResponseMessage", "title"),
    ("listResponseMessage", "singleSelectReply", "selectedRowId"),
)


def _lookup(content: Dict[str, Any], path: tuple) -> Optional[str]:
    node: Any = content
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node if isinstance(node, str) and node else None


def extract_text(content: Optional[Dict[str, Any]]) -> str:
    """
    Pull the user-visible text out of a raw message content object.

    Plain, extended, caption and button/list reply shapes are checked first at the
    top level, then one level down inside an ephemeral wrapper.

    Args:
        content: The raw "message" object from the bridge

    Returns:
        The first text found, or an empty string
    """
    if not isinstance(content, dict):
        return ""

    candidates = [content]
    ephemeral = content.get("ephemeralMessage")
    if isinstance(ephemeral, dict) and isinstance(ephemeral.get("message"), dict):
        candidates.append(ephemeral["message"])

    for candidate in candidates:
        for path in _TEXT_PATHS:
            text = _lookup(candidate, path)
            if text:
                return text
    return ""


class InboundMessage(BaseModel):
    """A normalized inbound chat message."""
    id: Optional[str] = None
    chat: str = ""
    is_self_sent: bool = False
    text: str = ""

    @property
    def kind(self) -> ChatKind:
        return chat_kind(self.chat)

    @classmethod
    def from_raw(cls, raw: Dict[str, Any]) -> "InboundMessage":
        """Build from a raw WhatsApp Web message ({"key": {...}, "message": {...}})."""
        key = raw.get("key") or {}
        return cls(
            id=key.get("id"),
            chat=key.get("remoteJid") or "",
            is_self_sent=bool(key.get("fromMe")),
            text=extract_text(raw.get("message")),
        )


class MessagesUpsert(BaseModel):
    """Schema for a batch of messages delivered by the bridge."""
    messages: List[Dict[str, Any]] = Field(default_factory=list)
    type: Optional[str] = None

    def first(self) -> Optional[InboundMessage]:
        """Only the first message of a batch is acted on."""
        if not self.messages:
            return None
        return InboundMessage.from_raw(self.messages[0])


class ConnectionUpdate(BaseModel):
    """Schema for a connection lifecycle update delivered by the bridge."""
    connection: Optional[str] = None
    qr: Optional[str] = None
    status_code: Optional[int] = None
