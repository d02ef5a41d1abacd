from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from .exceptions import RecordShapeError

REQUIRED_FIELDS = ("country", "geo_lat", "geo_long", "url_resolved")


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _coordinate(item: dict[str, Any], key: str) -> float:
    raw = item.get(key)
    if isinstance(raw, bool):
        raise RecordShapeError(f"{key} is not numeric: {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError, OverflowError) as exc:
        raise RecordShapeError(f"{key} is not numeric: {raw!r}") from exc
    if not math.isfinite(value):
        raise RecordShapeError(f"{key} is not finite: {raw!r}")
    return value


def _bitrate(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError, OverflowError):
        return None
    return value if value >= 0 else None


@dataclass(frozen=True, slots=True)
class StationRecord:
    """One eligible station from the directory."""

    station_id: str
    name: str
    country: str
    language: str
    tags: str
    url_resolved: str
    url: str
    codec: str
    bitrate: int | None
    latitude: float
    longitude: float
    country_code: str = ""
    favicon: str = ""
    homepage: str = ""
    votes: int = 0

    @classmethod
    def from_raw(cls, item: Any) -> "StationRecord":
        """Build a record from a directory entry.

        Raises RecordShapeError when the entry is not an object, misses one of
        country/geo_lat/geo_long/url_resolved, or carries unparsable
        coordinates.
        """
        if not isinstance(item, dict):
            raise RecordShapeError(f"expected object, got {type(item).__name__}")

        missing = [key for key in REQUIRED_FIELDS if not _present(item.get(key))]
        if missing:
            raise RecordShapeError(f"missing {', '.join(missing)}")

        latitude = _coordinate(item, "geo_lat")
        longitude = _coordinate(item, "geo_long")
        url_resolved = _text(item["url_resolved"])
        station_id = _text(item.get("stationuuid")) or url_resolved

        return cls(
            station_id=station_id,
            name=_text(item.get("name")),
            country=_text(item["country"]),
            language=_text(item.get("language")),
            tags=_text(item.get("tags")),
            url_resolved=url_resolved,
            url=_text(item.get("url")),
            codec=_text(item.get("codec")),
            bitrate=_bitrate(item.get("bitrate")),
            latitude=latitude,
            longitude=longitude,
            country_code=_text(item.get("countrycode")),
            favicon=_text(item.get("favicon")),
            homepage=_text(item.get("homepage")),
            votes=_bitrate(item.get("votes")) or 0,
        )

    @property
    def stream_url(self) -> str:
        return self.url_resolved or self.url

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.station_id,
            "name": self.name,
            "country": self.country,
            "country_code": self.country_code,
            "language": self.language,
            "tags": self.tags,
            "stream_url": self.stream_url,
            "url": self.url,
            "codec": self.codec,
            "bitrate": self.bitrate,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "favicon": self.favicon,
            "homepage": self.homepage,
            "votes": self.votes,
        }


@dataclass(slots=True)
class CountryAggregate:
    name: str
    latitude: float
    longitude: float
    station_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "station_count": self.station_count,
        }
