"""
Application factory.

Settings are loaded eagerly so that missing configuration fails the
process at startup rather than on the first download.
"""

import logging
from typing import Callable, Optional

from fastapi import FastAPI
from sqlalchemy.orm import Session

from marketplace_core.api.routes import downloads_router, membership_router
from marketplace_core.config import Settings, configure_logging, load_settings
from marketplace_core.database import create_session_factory
from marketplace_core.downloads.tokens import DownloadTokenConfig, DownloadTokenService
from marketplace_core.platform.errors import register_error_handlers
from marketplace_core.utils import Clock, utc_now

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    session_factory: Optional[Callable[[], Session]] = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Pre-built settings. Loaded from the environment if omitted.
        session_factory: Session factory override (tests).
        clock: Time source shared by the evaluator and token service.

    Raises:
        ConfigurationError: If settings are loaded and invalid
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Marketplace Access Core")
    app.state.settings = settings
    app.state.clock = clock
    app.state.session_factory = session_factory or create_session_factory(settings.database_url)
    app.state.token_service = DownloadTokenService(
        DownloadTokenConfig(
            secret=settings.download_token_secret,
            lifetime_minutes=settings.download_token_lifetime_minutes,
        ),
        clock=clock,
    )

    register_error_handlers(app)
    app.include_router(downloads_router)
    app.include_router(membership_router)

    logger.info("Marketplace access core started", extra={"environment": settings.environment})
    return app
