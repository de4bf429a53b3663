"""Telegram wiring shared by commands that receive or answer Telegram updates."""

from __future__ import annotations

from fastapi import HTTPException

from datacollect.adapters.telegram import TelegramAdapter
from datacollect.config import Settings, get_settings


class BaseTelegramCommand:
    """Loads settings once and builds a TelegramAdapter when the integration is on."""

    def __init__(self) -> None:
        self.settings = get_settings()
        self._adapter = self.build_adapter(self.settings)

    @staticmethod
    def build_adapter(settings: Settings) -> TelegramAdapter | None:
        if not settings.telegram_enabled or not settings.telegram_bot_token:
            return None
        return TelegramAdapter(
            bot_token=settings.telegram_bot_token,
            webhook_secret=settings.telegram_webhook_secret,
        )

    def require_adapter(self) -> TelegramAdapter:
        """Return the adapter, or fail the request with 503 when Telegram is off."""
        if self._adapter is None:
            raise HTTPException(
                status_code=503,
                detail="Telegram integration is not configured or disabled",
            )
        return self._adapter
