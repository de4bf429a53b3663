from __future__ import annotations

from typing import Awaitable, Callable

from datacollect.schemas.activity import OutboundMessage, OutboundSendResult

OutboundSender = Callable[[OutboundMessage], Awaitable[OutboundSendResult]]


class CollectingSender:
    """OutboundSender that keeps replies in memory, for request/response transports."""

    def __init__(self) -> None:
        self.sent: list[OutboundMessage] = []

    async def __call__(self, msg: OutboundMessage) -> OutboundSendResult:
        self.sent.append(msg)
        return OutboundSendResult(success=True, platform_message_id=str(len(self.sent)))
