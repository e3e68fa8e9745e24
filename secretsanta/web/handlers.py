from __future__ import annotations

import asyncio

from aiohttp import web
from loguru import logger

from secretsanta.services.matching import MatchingError
from secretsanta.web.pages import render_invalid_page, render_match_page
from secretsanta.web.utils import (
    MATCHES_ROUTE,
    SERVICE_KEY,
    RequestError,
    base_url,
    build_link,
    check_rate_limit,
    client_key,
    log_handler_exception,
    parse_names,
)

routes = web.RouteTableDef()


@routes.post(f"/{MATCHES_ROUTE}")
async def generate_links_handler(request: web.Request) -> web.Response:
    limited = check_rate_limit(request, "generate")
    if limited is not None:
        return limited

    try:
        try:
            payload = await request.json()
        except ValueError:
            return web.Response(status=400, text="Request body must be valid JSON.")

        try:
            names = parse_names(payload)
        except RequestError as exc:
            return web.Response(status=400, text=str(exc))

        logger.bind(client=client_key(request), participants=len(names)).info(
            "Request received to generate links"
        )

        try:
            matches = await asyncio.to_thread(request.app[SERVICE_KEY].generate_matches, names)
        except MatchingError as exc:
            logger.bind(client=client_key(request)).info("Match generation rejected: {error}", error=str(exc))
            return web.Response(status=400, text=str(exc))

        base = base_url(request)
        links = [build_link(base, pair.name, pair.token) for pair in matches]
        return web.json_response(links, status=201)
    except Exception as exc:
        log_handler_exception("generate", client_key(request), exc)
        return web.Response(status=500, text="Something went wrong. Please try again later.")


@routes.get(f"/{MATCHES_ROUTE}/{{from}}/{{token}}")
async def find_match_handler(request: web.Request) -> web.Response:
    limited = check_rate_limit(request, "redeem")
    if limited is not None:
        return limited

    from_name = request.match_info["from"]
    token = request.match_info["token"]
    logger.bind(client=client_key(request), name=from_name).info("Request received to find match")

    try:
        target, found = request.app[SERVICE_KEY].find_target(token)
        if not found:
            return web.Response(status=404, text=render_invalid_page(), content_type="text/html")
        return web.Response(text=render_match_page(from_name, target), content_type="text/html")
    except Exception as exc:
        log_handler_exception("redeem", client_key(request), exc)
        return web.Response(status=500, text="Something went wrong. Please try again later.")


@routes.delete(f"/{MATCHES_ROUTE}")
async def clear_matches_handler(request: web.Request) -> web.Response:
    logger.bind(client=client_key(request)).info("Request received to clear matches")
    request.app[SERVICE_KEY].clear_matches()
    return web.Response(status=204)
