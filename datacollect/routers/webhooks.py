"""
Webhook routes for inbound chat platform updates.

Platforms POST raw updates here; each update is processed as one bot turn.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from datacollect.commands.webhooks.telegram_command import TelegramWebhookCommand
from datacollect.core.bot import DataCollectionBot
from datacollect.routers.utils.dependencies import get_bot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/telegram")
async def telegram_webhook(
    request: Request,
    bot: DataCollectionBot = Depends(get_bot),
) -> dict[str, str]:
    """Receive a Telegram webhook update and run it through the bot."""
    try:
        body = await request.json()
    except ValueError as e:
        logger.warning("Telegram webhook invalid JSON: %s", e)
        raise HTTPException(status_code=400, detail="Invalid JSON body") from e
    command = TelegramWebhookCommand(bot)
    return await command.execute(request, body)
