from __future__ import annotations

import logging
from typing import Any

import requests

from .config import Settings
from .exceptions import FetchError
from .retry import retry

logger = logging.getLogger(__name__)

SEARCH_PATH = "/json/stations/search"


class DirectoryClient:
    """Bulk reader for the Radio Browser station directory.

    Mirrors are tried in order; each one gets a few attempts before the next
    is used. Any failure that survives every mirror becomes a FetchError.
    """

    def __init__(self, settings: Settings, session: requests.Session | None = None) -> None:
        self._base_urls = list(settings.directory_base_urls)
        self._limit = settings.directory_limit
        self._timeout = settings.directory_timeout_seconds
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "User-Agent": settings.directory_user_agent,
                "Accept": "application/json",
            }
        )

    @property
    def params(self) -> dict[str, Any]:
        return {
            "limit": self._limit,
            "hidebroken": "true",
            "order": "votes",
            "reverse": "true",
        }

    @retry(attempts=3, initial_delay=0.25, retry_on=(requests.ConnectionError, requests.Timeout))
    def _get(self, base_url: str) -> Any:
        response = self._session.get(base_url + SEARCH_PATH, params=self.params, timeout=self._timeout)
        response.raise_for_status()
        return response.json()

    def fetch_stations(self) -> list[dict[str, Any]]:
        if not self._base_urls:
            raise FetchError("No directory mirrors configured")

        last_error = "unknown error"
        for base_url in self._base_urls:
            try:
                payload = self._get(base_url)
            except ValueError as exc:
                last_error = f"{base_url}: invalid JSON ({exc})"
                logger.warning("Directory returned unparsable payload: %s", last_error)
                continue
            except requests.RequestException as exc:
                last_error = f"{base_url}: {exc}"
                logger.warning("Directory request failed: %s", last_error)
                continue

            if not isinstance(payload, list):
                last_error = f"{base_url}: expected a JSON array, got {type(payload).__name__}"
                logger.warning("Directory returned unexpected payload: %s", last_error)
                continue

            logger.info("Fetched %s directory entries from %s", len(payload), base_url)
            return payload

        raise FetchError(f"Station directory unavailable ({last_error})")
