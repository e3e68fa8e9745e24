from __future__ import annotations

import asyncio

import uvloop
from aiohttp import web
from loguru import logger

from secretsanta.core.config import load_settings
from secretsanta.core.logging import setup_logging
from secretsanta.web import create_app


async def main() -> None:
    settings = load_settings()
    setup_logging(settings.log_level, settings.log_path)

    runner = web.AppRunner(create_app(settings))
    await runner.setup()
    site = web.TCPSite(runner, settings.host, settings.port)
    await site.start()
    logger.info("Listening on {host}:{port}", host=settings.host, port=settings.port)

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


def run() -> None:
    try:
        uvloop.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
