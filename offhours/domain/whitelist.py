"""
Group whitelist model and schemas.
"""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field
from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class WhitelistEntry(Base):
    """SQLAlchemy model for a whitelisted group chat."""

    __tablename__ = "whitelist_entries"

    jid = Column(String(128), primary_key=True)
    added_at = Column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<WhitelistEntry(jid={self.jid})>"


# Pydantic Schemas

class WhitelistUpdate(BaseModel):
    """Schema for replacing the whitelist."""
    jids: List[str] = Field(default_factory=list)


class WhitelistResponse(BaseModel):
    """Schema for the whitelist listing."""
    jids: List[str]


class WhitelistUpdateResponse(WhitelistResponse):
    """Schema returned after a whitelist replacement."""
    dropped: List[str] = Field(default_factory=list)
