"""Process-wide logging setup for the API and worker entry points."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from datacollect.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
ROOT_LOGGER_NAME = "datacollect"


class LoggingConfig:
    """Configure stdlib logging once, using LOG_LEVEL from settings."""

    _configured = False

    def __init__(self, level: Optional[str] = None) -> None:
        if LoggingConfig._configured:
            return
        level_name = (level or get_settings().log_level or "INFO").upper()
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(getattr(logging, level_name, logging.INFO))
        root.addHandler(handler)
        root.propagate = False
        LoggingConfig._configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the datacollect namespace."""
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
