"""
Command to run one bot turn and translate its outcome for HTTP callers.

Failed turns become HTTPExceptions so at-least-once transports redeliver:
409 when the failure was a concurrency conflict, 500 otherwise.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException

from datacollect.core.bot import DataCollectionBot
from datacollect.core.runtime import OutboundSender
from datacollect.schemas.activity import Activity, TurnResult

logger = logging.getLogger(__name__)


class ProcessTurnCommand:
    def __init__(self, bot: DataCollectionBot, sender: OutboundSender) -> None:
        self.bot = bot
        self.sender = sender

    async def execute(self, activity: Activity) -> TurnResult:
        """
        Process the activity through the bot.

        Raises:
            HTTPException: 409 on concurrency conflict, 500 on other
                persistence failures.
        """
        result = await self.bot.on_turn(activity, self.sender)
        if result.transport_errors:
            logger.warning(
                "Turn for %s had %d undelivered repl(ies)",
                result.conversation_key,
                len(result.transport_errors),
            )
        if not result.committed:
            if result.conflict:
                raise HTTPException(
                    status_code=409,
                    detail="Conversation state changed concurrently; retry the turn",
                )
            raise HTTPException(status_code=500, detail="Turn could not be processed")
        return result
