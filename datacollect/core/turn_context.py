from __future__ import annotations

import logging
from dataclasses import dataclass, field

from datacollect.core.runtime import OutboundSender
from datacollect.exceptions import TransportError
from datacollect.schemas.activity import Activity, OutboundMessage
from datacollect.state.accessors import TurnStateScope

logger = logging.getLogger(__name__)


@dataclass
class TurnContext:
    """Everything one turn needs, passed explicitly to dialogs and services."""

    activity: Activity
    conversation_key: str
    state: TurnStateScope
    sender: OutboundSender
    replies: list[str] = field(default_factory=list)
    transport_errors: list[str] = field(default_factory=list)

    async def send_text(self, text: str) -> bool:
        """
        Send a reply to the conversation this turn belongs to.

        Delivery failures are recorded on the turn and logged; they never
        abort the turn or roll back state.
        """
        outbound = OutboundMessage(
            channel=self.activity.channel,
            conversation_id=self.activity.conversation_id,
            text=text,
        )
        try:
            result = await self.sender(outbound)
        except TransportError as e:
            logger.warning("Reply to %s failed: %s", self.conversation_key, e)
            self.transport_errors.append(str(e))
            return False
        if not result.success:
            logger.warning("Reply to %s was not accepted by the platform", self.conversation_key)
            self.transport_errors.append("Platform did not accept the message")
            return False
        self.replies.append(text)
        return True
