"""
Turn API: run a normalized activity through the bot.

Replies are collected in memory and returned in the response, so any
request/response client can act as a transport.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from datacollect.commands.process_turn_command import ProcessTurnCommand
from datacollect.core.bot import DataCollectionBot
from datacollect.core.runtime import CollectingSender
from datacollect.routers.utils.dependencies import get_bot
from datacollect.schemas.activity import Activity

router = APIRouter(prefix="/turns", tags=["turns"])


@router.post("", response_model=dict[str, Any])
async def process_turn(
    activity: Activity,
    bot: DataCollectionBot = Depends(get_bot),
) -> dict[str, Any]:
    """Process one activity. Returns {"data": TurnResult}."""
    result = await ProcessTurnCommand(bot, CollectingSender()).execute(activity)
    return {"data": result.model_dump()}
