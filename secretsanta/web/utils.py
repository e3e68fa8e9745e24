from __future__ import annotations

import math
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from aiohttp import web
from loguru import logger

from secretsanta.core.config import Settings
from secretsanta.services.matching import MatchingService
from secretsanta.services.rate_limit import RateLimiter

SETTINGS_KEY = web.AppKey("settings", Settings)
SERVICE_KEY = web.AppKey("matching_service", MatchingService)
RATE_LIMITER_KEY = web.AppKey("rate_limiter", RateLimiter)

MATCHES_ROUTE = "matches"
MIN_PARTICIPANTS = 2


class RequestError(ValueError):
    pass


def client_key(request: web.Request) -> str:
    return request.remote or "unknown"


def check_rate_limit(request: web.Request, action: str) -> Optional[web.Response]:
    key = f"{client_key(request)}:{action}"
    result = request.app[RATE_LIMITER_KEY].allow(key)
    if result.allowed:
        return None
    logger.bind(client=client_key(request), action=action).warning("Rate limit exceeded")
    return web.Response(
        status=429,
        text="You're doing that too often. Please slow down.",
        headers={"Retry-After": str(max(1, math.ceil(result.retry_after)))},
    )


def parse_names(payload: Any) -> Dict[str, List[str]]:
    if not isinstance(payload, dict) or not isinstance(payload.get("names"), dict):
        raise RequestError('Request body must be a JSON object with a "names" mapping.')

    names: Dict[str, List[str]] = {}
    for name, excludes in payload["names"].items():
        if not name.strip():
            raise RequestError("Participant names must be non-empty strings.")
        if excludes is None:
            excludes = []
        if not isinstance(excludes, list) or not all(isinstance(item, str) for item in excludes):
            raise RequestError(f"Exclusions for {name} must be a list of names.")
        names[name] = excludes

    if len(names) < MIN_PARTICIPANTS:
        raise RequestError(f"At least {MIN_PARTICIPANTS} participants are required.")
    return names


def base_url(request: web.Request) -> str:
    configured = request.app[SETTINGS_KEY].public_base_url
    if configured:
        return configured
    return f"{request.scheme}://{request.host}"


def build_link(base: str, name: str, token: str) -> str:
    return f"{base}/{MATCHES_ROUTE}/{quote(name, safe='')}/{quote(token, safe='')}"


def log_handler_exception(action: str, client: Optional[str], error: Exception) -> None:
    logger.bind(action=action, client=client).exception(
        "Handler error: {error}", error=str(error)
    )
