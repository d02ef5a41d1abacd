from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Protocol

from .cache import RedisCache, make_cache_key
from .catalog import StationCatalog
from .config import Settings
from .exceptions import FetchError
from .geo import project
from .models import StationRecord
from .playback import BrowserMediaElement, MediaElement, PlaybackController, PlaybackTicket
from .scene import build_globe_figure

logger = logging.getLogger(__name__)


class StationDirectory(Protocol):
    def fetch_stations(self) -> list[dict[str, Any]]:
        ...


class RadioService:
    """Wires the directory, catalog, country selection and player together."""

    def __init__(
        self,
        settings: Settings,
        directory: StationDirectory,
        cache: RedisCache,
        media: MediaElement | None = None,
    ) -> None:
        self._settings = settings
        self._directory = directory
        self._cache = cache
        # one entry per directory query, so a changed mirror list or limit misses
        self._cache_key = make_cache_key(
            "globe-radio:directory",
            {"mirrors": list(settings.directory_base_urls), "limit": settings.directory_limit},
        )
        self._lock = threading.RLock()
        self._selected_country: str | None = None
        self._fetch_generation = 0
        self._last_fetch_error: str | None = None
        self._last_fetch_at: str | None = None
        self.catalog = StationCatalog()
        self.player = PlaybackController(media or BrowserMediaElement(), volume=settings.default_volume)

    @property
    def selected_country(self) -> str | None:
        return self._selected_country

    @property
    def last_fetch_error(self) -> str | None:
        return self._last_fetch_error

    def _load_raw(self, force: bool) -> tuple[list[Any], bool]:
        if not force:
            cached = self._cache.get_json(self._cache_key)
            if isinstance(cached, list):
                return cached, True

        return self._directory.fetch_stations(), False

    def refresh(self, force: bool = False) -> dict[str, Any]:
        """Reload the catalog; a fetch overtaken by a newer refresh is discarded."""
        with self._lock:
            self._fetch_generation += 1
            generation = self._fetch_generation

        try:
            raw, cache_hit = self._load_raw(force)
        except FetchError as exc:
            with self._lock:
                if generation == self._fetch_generation:
                    self._last_fetch_error = exc.message
            logger.error("Station directory fetch failed: %s", exc.message)
            return {
                "status": "error",
                "error": exc.message,
                "stations_loaded": 0,
                "stations_total": self.catalog.count,
            }

        with self._lock:
            if generation != self._fetch_generation:
                logger.info("Discarding superseded directory response (generation %s)", generation)
                return {
                    "status": "discarded",
                    "stations_loaded": 0,
                    "stations_total": self.catalog.count,
                }
            records = self.catalog.load(raw)
            if not cache_hit:
                self._cache.set_json(self._cache_key, raw, self._settings.cache_ttl_seconds)
            self._last_fetch_error = None
            self._last_fetch_at = datetime.now(timezone.utc).isoformat()

        return {
            "status": "ok",
            "cache_hit": cache_hit,
            "stations_loaded": len(records),
            "stations_total": len(records),
            "countries": len(self.catalog.countries()),
            "catalog_version": self.catalog.version,
        }

    def select_country(self, country: str | None) -> list[StationRecord]:
        with self._lock:
            self._selected_country = country
        if country is None:
            return []
        return self.catalog.stations_in(country)

    def clear_selection(self) -> None:
        self.select_country(None)

    def stations(self, country: str | None = None, term: str = "") -> list[StationRecord]:
        records = self.catalog.records
        if country is not None:
            records = self.catalog.filter_by_country(records, country)
        return self.catalog.search(records, term)

    def country_markers(self) -> list[dict[str, Any]]:
        selected = self._selected_country
        markers = []
        for country in self.catalog.countries():
            payload = country.to_dict()
            payload["position"] = list(
                project(country.latitude, country.longitude, self._settings.marker_radius)
            )
            payload["selected"] = country.name == selected
            markers.append(payload)
        return markers

    def globe_figure(self) -> str:
        return build_globe_figure(self.catalog.countries(), self._selected_country, self._settings)

    def select_station(self, station_id: str) -> PlaybackTicket:
        station = self.catalog.get(station_id)
        return self.player.select(station)

    def status(self) -> dict[str, Any]:
        return {
            "status": "ok",
            "service": self._settings.app_name,
            "stations": self.catalog.count,
            "countries": len(self.catalog.countries()),
            "catalog_version": self.catalog.version,
            "selected_country": self._selected_country,
            "last_fetch_at": self._last_fetch_at,
            "last_fetch_error": self._last_fetch_error,
            "cache_backend": self._cache.backend,
            "player_state": self.player.state.value,
        }
