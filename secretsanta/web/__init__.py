from __future__ import annotations

from pathlib import Path
from typing import Optional

from aiohttp import web
from loguru import logger

from secretsanta.core.config import Settings
from secretsanta.services.matching import MatchingService
from secretsanta.services.rate_limit import RateLimiter
from secretsanta.web.handlers import routes
from secretsanta.web.utils import RATE_LIMITER_KEY, SERVICE_KEY, SETTINGS_KEY

ASSETS_DIR = Path(__file__).parent / "assets"


async def on_startup(app: web.Application) -> None:
    settings = app[SETTINGS_KEY]
    logger.info("server starting...")
    logger.info("Host         - {host}", host=settings.host)
    logger.info("Port         - {port}", port=settings.port)
    logger.info("Public URL   - {url}", url=settings.public_base_url or "from request")
    logger.info("Max attempts - {attempts}", attempts=app[SERVICE_KEY].max_attempts)
    logger.info("server started")


async def on_shutdown(app: web.Application) -> None:
    logger.info("server stopping...")
    pending = len(app[SERVICE_KEY].store)
    if pending:
        logger.bind(pending=pending).warning("Unredeemed links are lost on shutdown")
    logger.info("server stopped")


def create_app(settings: Settings, service: Optional[MatchingService] = None) -> web.Application:
    app = web.Application()
    app[SETTINGS_KEY] = settings
    app[SERVICE_KEY] = service if service is not None else MatchingService(max_attempts=settings.max_attempts)
    app[RATE_LIMITER_KEY] = RateLimiter(settings.rate_limit_calls, settings.rate_limit_period)

    app.add_routes(routes)
    app.router.add_static("/assets/", ASSETS_DIR, name="assets")

    app.on_startup.append(on_startup)
    app.on_shutdown.append(on_shutdown)
    return app


__all__ = ["create_app", "ASSETS_DIR"]
