"""
Normalized activity contracts for the bot.

Every transport converts its inbound payloads into an Activity; replies leave
the core as OutboundMessage. Stable and independent of any single channel.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class Channel(str, Enum):
    """Channels the bot can be reached on."""

    TELEGRAM = "telegram"
    DIRECT = "direct"


class ActivityType(str, Enum):
    MESSAGE = "message"
    CONVERSATION_UPDATE = "conversationUpdate"
    OTHER = "other"


class ChannelAccount(BaseModel):
    """A participant in a conversation (user or bot)."""

    id: str
    name: Optional[str] = None


class Activity(BaseModel):
    """Normalized inbound event (transport → core)."""

    type: ActivityType
    channel: Channel
    conversation_id: str
    id: Optional[str] = None
    from_: ChannelAccount = Field(alias="from")
    recipient: ChannelAccount
    text: Optional[str] = None
    members_added: list[ChannelAccount] = Field(default_factory=list)
    attachments: list[dict[str, Any]] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class OutboundMessage(BaseModel):
    """Normalized outbound message (core → transport)."""

    channel: Channel
    conversation_id: str
    text: str
    reply_to_message_id: Optional[str] = None


class OutboundSendResult(BaseModel):
    """Result of sending an outbound message (success + optional message_id)."""

    success: bool
    platform_message_id: Optional[str] = None


class TurnResult(BaseModel):
    """What happened during one turn, reported back to the transport."""

    conversation_key: str
    committed: bool
    replies: list[str] = Field(default_factory=list)
    transport_errors: list[str] = Field(default_factory=list)
    error: Optional[str] = None
    conflict: bool = False
