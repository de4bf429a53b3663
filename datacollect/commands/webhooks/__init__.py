"""Webhook command handlers."""

from datacollect.commands.base_telegram import BaseTelegramCommand
from datacollect.commands.webhooks.telegram_command import TelegramWebhookCommand

__all__ = ["BaseTelegramCommand", "TelegramWebhookCommand"]
