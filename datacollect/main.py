from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi_pagination import add_pagination

from datacollect.config import get_settings
from datacollect.core.app_state import BotServices, build_services_from_settings
from datacollect.core.bot import DataCollectionBot
from datacollect.db import db_manager
from datacollect.infra.logging_config import LoggingConfig
from datacollect.routers import answers_router, turns, webhooks

logger = logging.getLogger(__name__)


def create_app(testing: bool = False, services: Optional[BotServices] = None) -> FastAPI:
    """
    Build the FastAPI application.

    services lets callers (tests, embedding hosts) supply pre-wired stores;
    otherwise they are built from STORAGE_BACKEND.
    """
    settings = get_settings()
    LoggingConfig()

    if services is None:
        if settings.storage_backend.lower() == "database" and (
            testing or settings.is_test
        ):
            db_manager.create_all()
        services = build_services_from_settings(settings)

    app = FastAPI(title=settings.app_name)
    app.state.bot = DataCollectionBot(services)

    app.include_router(webhooks.router)
    app.include_router(turns.router)
    app.include_router(answers_router.router)
    add_pagination(app)

    logger.info(
        "%s started (environment=%s, storage=%s)",
        settings.app_name,
        settings.environment,
        settings.storage_backend,
    )
    return app
