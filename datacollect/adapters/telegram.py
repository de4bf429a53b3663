"""
Telegram platform adapter.

Uses python-telegram-bot for parsing webhook payloads and sending messages.
A message announcing new_chat_members becomes a conversationUpdate activity;
any other message becomes a message activity.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from telegram import Bot, Update
from telegram.error import TelegramError

from datacollect.adapters.base import BasePlatformAdapter
from datacollect.exceptions import TransportError
from datacollect.schemas.activity import (
    Activity,
    ActivityType,
    Channel,
    ChannelAccount,
    OutboundMessage,
    OutboundSendResult,
)

logger = logging.getLogger(__name__)


class TelegramAdapter(BasePlatformAdapter):
    """Telegram adapter: parse webhook updates, send messages via Bot API."""

    channel = Channel.TELEGRAM
    TELEGRAM_SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

    def __init__(self, bot_token: str, webhook_secret: Optional[str] = None) -> None:
        self._bot_token = bot_token
        self._webhook_secret = webhook_secret
        self._bot: Optional[Bot] = None

    def _get_bot(self) -> Bot:
        if self._bot is None:
            self._bot = Bot(token=self._bot_token)
        return self._bot

    @property
    def bot_id(self) -> str:
        """Bot user id; Telegram tokens are "<bot id>:<secret>"."""
        return self._bot_token.split(":", 1)[0]

    def verify_webhook(
        self, secret: Optional[str], request_headers: Optional[dict[str, str]] = None
    ) -> bool:
        """Validate X-Telegram-Bot-Api-Secret-Token if webhook secret is configured."""
        expected = secret or self._webhook_secret
        if not expected:
            return True
        request_headers = request_headers or {}
        header_lower = self.TELEGRAM_SECRET_HEADER.lower()
        actual = None
        for key, value in request_headers.items():
            if key.lower() == header_lower:
                actual = value
                break
        return actual == expected

    def parse_webhook(self, raw_payload: dict[str, Any]) -> Activity:
        """Parse Telegram webhook payload into a normalized activity."""
        update = Update.de_json(raw_payload, self._get_bot())
        if update is None:
            raise ValueError("Invalid Telegram update: de_json returned None")
        if not update.message:
            raise ValueError("Telegram update has no message")
        msg = update.message
        from_user = msg.from_user
        chat_id = str(msg.chat_id) if msg.chat_id else (str(from_user.id) if from_user else "")
        sender = ChannelAccount(
            id=str(from_user.id) if from_user else chat_id,
            name=from_user.full_name if from_user else None,
        )
        recipient = ChannelAccount(id=self.bot_id)

        if msg.new_chat_members:
            return Activity(
                type=ActivityType.CONVERSATION_UPDATE,
                channel=Channel.TELEGRAM,
                conversation_id=chat_id,
                id=str(msg.message_id),
                from_=sender,
                recipient=recipient,
                members_added=[
                    ChannelAccount(id=str(u.id), name=u.full_name)
                    for u in msg.new_chat_members
                ],
            )

        attachments: list[dict[str, Any]] = []
        if msg.photo:
            attachments.append(
                {"type": "photo", "file_ids": [p.file_id for p in msg.photo]}
            )
        if msg.document:
            attachments.append({"type": "document", "file_id": msg.document.file_id})
        if msg.voice:
            attachments.append({"type": "voice", "file_id": msg.voice.file_id})
        return Activity(
            type=ActivityType.MESSAGE,
            channel=Channel.TELEGRAM,
            conversation_id=chat_id,
            id=str(msg.message_id) if msg.message_id else None,
            from_=sender,
            recipient=recipient,
            text=msg.text,
            attachments=attachments,
        )

    async def send(self, outbound: OutboundMessage) -> OutboundSendResult:
        """Send message via Telegram Bot API. chat_id = conversation_id."""
        if not self.accepts(outbound):
            return OutboundSendResult(success=False, platform_message_id=None)

        send_kw: dict[str, Any] = {
            "chat_id": outbound.conversation_id,
            "text": outbound.text,
        }
        if outbound.reply_to_message_id:
            send_kw["reply_to_message_id"] = int(outbound.reply_to_message_id)
        try:
            sent = await self._get_bot().send_message(**send_kw)
        except TelegramError as e:
            raise TransportError(f"Telegram send failed: {e}") from e
        return OutboundSendResult(
            success=True,
            platform_message_id=(
                str(sent.message_id) if sent and sent.message_id else None
            ),
        )
