from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, minimum: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if minimum is not None:
        value = max(minimum, value)
    return value


def _env_float(
    name: str,
    default: float,
    minimum: float | None = None,
    maximum: float | None = None,
) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if value != value:
        return default
    if minimum is not None:
        value = max(minimum, value)
    if maximum is not None:
        value = min(maximum, value)
    return value


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None:
        return default
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items if items else default


DEFAULT_DIRECTORY_URLS = [
    "https://de1.api.radio-browser.info",
    "https://fr1.api.radio-browser.info",
    "https://at1.api.radio-browser.info",
]


@dataclass(slots=True)
class Settings:
    app_name: str
    environment: str
    allowed_origins: List[str]
    redis_url: str
    cache_ttl_seconds: int
    refresh_limit_per_window: int
    rate_limit_window_seconds: int
    directory_base_urls: List[str]
    directory_limit: int
    directory_timeout_seconds: float
    directory_user_agent: str
    fetch_on_startup: bool
    default_volume: float
    globe_radius: float
    marker_radius: float
    rotation_speed: float
    max_request_bytes: int

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            app_name=os.getenv("APP_NAME", "Global Radio"),
            environment=os.getenv("APP_ENV", "production"),
            allowed_origins=_env_list("ALLOWED_ORIGINS", ["http://localhost:5000"]),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
            cache_ttl_seconds=_env_int("CACHE_TTL_SECONDS", 600, minimum=30),
            refresh_limit_per_window=_env_int("REFRESH_LIMIT_PER_WINDOW", 6, minimum=1),
            rate_limit_window_seconds=_env_int("RATE_LIMIT_WINDOW_SECONDS", 60, minimum=10),
            directory_base_urls=[
                url.rstrip("/")
                for url in _env_list("DIRECTORY_BASE_URLS", list(DEFAULT_DIRECTORY_URLS))
            ],
            directory_limit=_env_int("DIRECTORY_LIMIT", 1000, minimum=1),
            directory_timeout_seconds=_env_float("DIRECTORY_TIMEOUT_SECONDS", 10.0, minimum=1.0),
            directory_user_agent=os.getenv("DIRECTORY_USER_AGENT", "global-radio/0.1").strip(),
            fetch_on_startup=_env_bool("FETCH_ON_STARTUP", True),
            default_volume=_env_float("DEFAULT_VOLUME", 0.7, minimum=0.0, maximum=1.0),
            globe_radius=_env_float("GLOBE_RADIUS", 2.0, minimum=0.1),
            marker_radius=_env_float("MARKER_RADIUS", 2.05, minimum=0.1),
            rotation_speed=_env_float("ROTATION_SPEED", 0.002, minimum=0.0),
            max_request_bytes=_env_int("MAX_REQUEST_BYTES", 65_536, minimum=1024),
        )
