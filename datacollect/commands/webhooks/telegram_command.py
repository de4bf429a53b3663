"""
Command to handle Telegram webhook updates.

Each update is one bot turn: the secret header is checked, the update is
converted into an Activity and the bot's replies go out via the Bot API.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, Request

from datacollect.commands.base_telegram import BaseTelegramCommand
from datacollect.commands.process_turn_command import ProcessTurnCommand
from datacollect.core.bot import DataCollectionBot


class TelegramWebhookCommand(BaseTelegramCommand):
    def __init__(self, bot: DataCollectionBot) -> None:
        super().__init__()
        self.bot = bot
        self.logger = logging.getLogger(__name__)

    async def execute(self, request: Request, body: Any) -> dict[str, str]:
        """
        Run one Telegram update through the bot.

        Returns:
            dict: {"status": "ok"} once the turn is committed.

        Raises:
            HTTPException: 503 if Telegram is disabled, 403 on a bad secret,
                400 on an unusable update, 409/500 if the turn was not committed.
        """
        adapter = self.require_adapter()
        if not adapter.verify_webhook(
            self.settings.telegram_webhook_secret, dict(request.headers)
        ):
            raise HTTPException(status_code=403, detail="Invalid webhook secret")
        if not isinstance(body, dict):
            raise HTTPException(status_code=400, detail="Body must be a JSON object")
        try:
            activity = adapter.parse_webhook(body)
        except (ValueError, KeyError, TypeError) as e:
            self.logger.warning("Telegram webhook parse error: %s", e)
            raise HTTPException(
                status_code=400, detail="Invalid Telegram update"
            ) from e

        self.logger.info(
            "Telegram %s activity for chat %s",
            activity.type.value,
            activity.conversation_id,
        )
        await ProcessTurnCommand(self.bot, adapter.send).execute(activity)
        return {"status": "ok"}
