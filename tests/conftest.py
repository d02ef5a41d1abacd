from __future__ import annotations

import copy
from pathlib import Path
import sys

import pytest

root = Path(__file__).resolve().parents[1]
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from globe_radio.config import Settings
from globe_radio.exceptions import FetchError
from globe_radio.playback import MediaElement


RAW_STATIONS = [
    {
        "stationuuid": "fr-1",
        "name": "FIP",
        "country": "France",
        "countrycode": "FR",
        "language": "french",
        "tags": "jazz,eclectic",
        "url": "http://icecast.radiofrance.fr/fip-midfi.mp3",
        "url_resolved": "https://icecast.radiofrance.fr/fip-midfi.mp3",
        "codec": "MP3",
        "bitrate": 128,
        "geo_lat": 48.85,
        "geo_long": 2.35,
        "votes": 900,
    },
    {
        "stationuuid": "de-1",
        "name": "Deutschlandfunk",
        "country": "Germany",
        "language": "german",
        "tags": "news,talk",
        "url": "https://st01.dlf.de/dlf/01/128/mp3/stream.mp3",
        "url_resolved": "https://st01.sslstream.dlf.de/dlf/01/128/mp3/stream.mp3",
        "codec": "MP3",
        "bitrate": "192",
        "geo_lat": "52.52",
        "geo_long": "13.40",
        "votes": 800,
    },
    {
        "stationuuid": "fr-2",
        "name": "Radio Nova",
        "country": "France",
        "language": "french",
        "tags": "hip hop,electro",
        "url": "http://novazz.ice.infomaniak.ch/novazz-128.mp3",
        "url_resolved": "http://novazz.ice.infomaniak.ch/novazz-128.mp3",
        "codec": "MP3",
        "bitrate": 128,
        "geo_lat": 48.86,
        "geo_long": 2.34,
        "votes": 700,
    },
    {
        "stationuuid": "us-1",
        "name": "No Coordinates FM",
        "country": "United States",
        "tags": "rock",
        "url_resolved": "https://example.com/us-1",
        "geo_lat": None,
        "geo_long": None,
    },
    {
        "stationuuid": "gb-1",
        "name": "Unresolved Radio",
        "country": "United Kingdom",
        "tags": "pop",
        "url": "https://example.com/gb-1.pls",
        "url_resolved": "",
        "geo_lat": 51.5,
        "geo_long": -0.12,
    },
    {
        "stationuuid": "xx-1",
        "name": "Broken Coordinates",
        "country": "Nowhere",
        "tags": "",
        "url_resolved": "https://example.com/xx-1",
        "geo_lat": "north",
        "geo_long": "west",
    },
    {
        "stationuuid": "fr-3",
        "name": "Radio Lyon",
        "country": "france",
        "language": "french",
        "tags": "local",
        "url": "https://example.com/lyon",
        "url_resolved": "https://example.com/lyon",
        "codec": "AAC",
        "bitrate": None,
        "geo_lat": 45.76,
        "geo_long": 4.83,
    },
    {
        "stationuuid": "jp-1",
        "name": "J-Pop Powerplay",
        "country": "Japan",
        "language": "japanese",
        "tags": "j-pop,anime",
        "url": "https://example.com/jpop",
        "url_resolved": "https://example.com/jpop",
        "codec": "AAC+",
        "bitrate": -1,
        "geo_lat": 35.68,
        "geo_long": 139.69,
    },
]

ELIGIBLE_IDS = ["fr-1", "de-1", "fr-2", "fr-3", "jp-1"]


class FakeDirectory:
    def __init__(self, stations=None, error: str | None = None) -> None:
        self.stations = RAW_STATIONS if stations is None else stations
        self.error = error
        self.calls = 0

    def fetch_stations(self):
        self.calls += 1
        if self.error:
            raise FetchError(self.error)
        return copy.deepcopy(self.stations)


class FakeMedia(MediaElement):
    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.source = None
        self.volume = None
        self.reject_play = False
        self.reject_load = False

    def set_source(self, url):
        self.calls.append(("set_source", url))
        self.source = url

    def load(self):
        self.calls.append(("load",))
        if self.reject_load:
            raise RuntimeError("unsupported codec")

    def play(self):
        self.calls.append(("play",))
        if self.reject_play:
            raise RuntimeError("autoplay blocked")

    def pause(self):
        self.calls.append(("pause",))

    def set_volume(self, volume):
        self.calls.append(("set_volume", volume))
        self.volume = volume

    def release(self):
        self.calls.append(("release",))
        self.source = None


@pytest.fixture()
def raw_stations():
    return copy.deepcopy(RAW_STATIONS)


@pytest.fixture()
def settings(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6391/0")
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:5000")
    monkeypatch.setenv("DIRECTORY_BASE_URLS", "https://mirror-a.test,https://mirror-b.test")
    return Settings.from_env()


@pytest.fixture()
def directory():
    return FakeDirectory()


@pytest.fixture()
def media():
    return FakeMedia()


@pytest.fixture()
def app(settings, directory):
    from globe_radio import create_app

    flask_app = create_app(settings, directory=directory)
    flask_app.config.update(TESTING=True)
    return flask_app


@pytest.fixture()
def client(app):
    return app.test_client()
