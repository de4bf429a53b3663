"""
Channel adapter interface.

An adapter turns one platform's webhook payloads into Activity objects and
delivers OutboundMessage replies back to that platform. The bot core never
sees platform payloads.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Optional

from datacollect.schemas.activity import (
    Activity,
    Channel,
    OutboundMessage,
    OutboundSendResult,
)


class BasePlatformAdapter(ABC):
    channel: ClassVar[Channel]

    @abstractmethod
    def parse_webhook(self, raw_payload: dict[str, Any]) -> Activity:
        """Build an Activity from a webhook payload. Raises ValueError if the payload is unusable."""
        ...

    @abstractmethod
    async def send(self, outbound: OutboundMessage) -> OutboundSendResult:
        """Deliver a reply. Raises TransportError when the platform call fails."""
        ...

    def accepts(self, outbound: OutboundMessage) -> bool:
        return outbound.channel == self.channel

    def verify_webhook(
        self, secret: Optional[str], request_headers: Optional[dict[str, str]] = None
    ) -> bool:
        """Platforms without webhook signing accept every request."""
        return True
