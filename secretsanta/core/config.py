import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    public_base_url: Optional[str]
    log_level: str
    log_path: str
    max_attempts: int
    rate_limit_calls: int
    rate_limit_period: int


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}.") from None
    if value < 1:
        raise ValueError(f"{name} must be a positive integer, got {value}.")
    return value


def load_settings() -> Settings:
    host = os.getenv("HOST", "0.0.0.0")
    port = _positive_int("PORT", 8080)
    public_base_url = os.getenv("PUBLIC_BASE_URL") or None
    log_level = os.getenv("LOG_LEVEL", "INFO")
    log_path = os.getenv("LOG_PATH", "logs/secretsanta.log")

    if port > 65535:
        raise ValueError(f"PORT must be between 1 and 65535, got {port}.")

    return Settings(
        host=host,
        port=port,
        public_base_url=public_base_url.rstrip("/") if public_base_url else None,
        log_level=log_level,
        log_path=log_path,
        max_attempts=_positive_int("MAX_ATTEMPTS", 10),
        rate_limit_calls=_positive_int("RATE_LIMIT_CALLS", 30),
        rate_limit_period=_positive_int("RATE_LIMIT_PERIOD", 10),
    )
