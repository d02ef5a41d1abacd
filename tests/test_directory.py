from __future__ import annotations

import pytest
import requests

from globe_radio.directory import SEARCH_PATH, DirectoryClient
from globe_radio.exceptions import FetchError


class FakeResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self._payload = payload
        self.status_code = status_code
        self._bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.headers = {}
        self.requests = []
        self._responses = dict(responses)

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        outcome = self._responses[url]
        if isinstance(outcome, list):
            outcome = outcome.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr("globe_radio.retry.time.sleep", lambda _: None)


def _url(base):
    return base + SEARCH_PATH


def test_fetch_sends_directory_query(settings, raw_stations):
    session = FakeSession({_url("https://mirror-a.test"): FakeResponse(raw_stations)})
    client = DirectoryClient(settings, session=session)

    result = client.fetch_stations()

    assert result == raw_stations
    url, params, timeout = session.requests[0]
    assert url == "https://mirror-a.test/json/stations/search"
    assert params == {"limit": 1000, "hidebroken": "true", "order": "votes", "reverse": "true"}
    assert timeout == 10.0
    assert session.headers["User-Agent"] == "global-radio/0.1"


def test_transient_connection_error_is_retried(settings):
    session = FakeSession(
        {
            _url("https://mirror-a.test"): [
                requests.ConnectionError("reset by peer"),
                FakeResponse([{"stationuuid": "a"}]),
            ]
        }
    )

    result = DirectoryClient(settings, session=session).fetch_stations()

    assert result == [{"stationuuid": "a"}]
    assert len(session.requests) == 2


def test_falls_back_to_next_mirror(settings):
    session = FakeSession(
        {
            _url("https://mirror-a.test"): FakeResponse(status_code=503),
            _url("https://mirror-b.test"): FakeResponse([{"stationuuid": "b"}]),
        }
    )

    result = DirectoryClient(settings, session=session).fetch_stations()

    assert result == [{"stationuuid": "b"}]
    assert [request[0] for request in session.requests] == [
        _url("https://mirror-a.test"),
        _url("https://mirror-b.test"),
    ]


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(status_code=500),
        FakeResponse(bad_json=True),
        FakeResponse({"error": "not a list"}),
        requests.Timeout("read timed out"),
    ],
)
def test_failure_on_every_mirror_raises_fetch_error(settings, response):
    session = FakeSession(
        {
            _url("https://mirror-a.test"): response,
            _url("https://mirror-b.test"): response,
        }
    )

    with pytest.raises(FetchError) as excinfo:
        DirectoryClient(settings, session=session).fetch_stations()

    assert excinfo.value.status_code == 502
    assert "mirror-b.test" in excinfo.value.message


def test_no_mirrors_configured(settings):
    settings.directory_base_urls = []

    with pytest.raises(FetchError):
        DirectoryClient(settings, session=FakeSession({})).fetch_stations()
