"""Platform adapters for chat integrations."""

from datacollect.adapters.base import BasePlatformAdapter
from datacollect.adapters.telegram import TelegramAdapter

__all__ = ["BasePlatformAdapter", "TelegramAdapter"]
