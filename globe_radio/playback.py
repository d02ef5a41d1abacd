from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .exceptions import PlaybackError
from .models import StationRecord

logger = logging.getLogger(__name__)


def clamp_volume(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


class MediaElement(ABC):
    """Audio decode/output primitive driven by the controller.

    Implementations raise from ``load`` or ``play`` when the platform refuses
    the stream; the controller turns that into a PlaybackError.
    """

    @abstractmethod
    def set_source(self, url: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def load(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def play(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def pause(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def set_volume(self, volume: float) -> None:
        raise NotImplementedError

    @abstractmethod
    def release(self) -> None:
        raise NotImplementedError


class BrowserMediaElement(MediaElement):
    """Records the commanded state for the page's ``<audio>`` element.

    The page polls the snapshot and applies it; decode failures and blocked
    autoplay come back later through ``PlaybackController.on_error``.
    """

    def __init__(self) -> None:
        self.source: str | None = None
        self.paused = True
        self.volume = 1.0
        self.load_count = 0

    def set_source(self, url: str) -> None:
        self.source = url

    def load(self) -> None:
        if not self.source:
            raise ValueError("no source set")
        self.load_count += 1
        self.paused = True

    def play(self) -> None:
        if not self.source:
            raise ValueError("no source loaded")
        self.paused = False

    def pause(self) -> None:
        self.paused = True

    def set_volume(self, volume: float) -> None:
        self.volume = volume

    def release(self) -> None:
        self.source = None
        self.paused = True

    def snapshot(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "paused": self.paused,
            "volume": self.volume,
            "load_count": self.load_count,
        }


class PlaybackState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    ERRORED = "errored"


@dataclass(frozen=True, slots=True)
class PlaybackTicket:
    """Identity of one load; media callbacks must present the current one."""

    station_id: str
    generation: int

    def to_dict(self) -> dict[str, Any]:
        return {"station_id": self.station_id, "generation": self.generation}


class PlaybackController:
    """Owns the current station and the playback state machine.

    Every load issues a new PlaybackTicket. ``on_ready_to_play``,
    ``on_ended`` and ``on_error`` ignore callbacks carrying any other ticket,
    so a late event from a superseded station never touches current state.
    """

    _RELOAD = (PlaybackState.IDLE, PlaybackState.ERRORED)

    def __init__(self, media: MediaElement, volume: float = 0.7) -> None:
        self._media = media
        self._lock = threading.RLock()
        self._state = PlaybackState.IDLE
        self._station: StationRecord | None = None
        self._ticket: PlaybackTicket | None = None
        self._generation = 0
        self._volume = clamp_volume(volume)
        self._last_error: str | None = None
        self._media.set_volume(self._volume)

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def current_station(self) -> StationRecord | None:
        return self._station

    @property
    def ticket(self) -> PlaybackTicket | None:
        return self._ticket

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def last_error(self) -> str | None:
        return self._last_error

    @property
    def is_loading(self) -> bool:
        return self._state is PlaybackState.LOADING

    def _fail(self, message: str) -> PlaybackError:
        self._state = PlaybackState.ERRORED
        self._last_error = message
        station_id = self._station.station_id if self._station else None
        logger.warning("Playback error (station=%s): %s", station_id, message)
        return PlaybackError(message, station_id=station_id)

    def _begin_load(self, station: StationRecord) -> PlaybackTicket:
        self._generation += 1
        self._ticket = PlaybackTicket(station.station_id, self._generation)
        self._station = station
        self._last_error = None
        self._state = PlaybackState.LOADING
        try:
            self._media.set_source(station.stream_url)
            self._media.set_volume(self._volume)
            self._media.load()
        except Exception as exc:
            raise self._fail(f"Could not load stream: {exc}") from exc
        return self._ticket

    def _is_current(self, ticket: PlaybackTicket | None) -> bool:
        if ticket is None or ticket != self._ticket:
            logger.debug("Ignoring stale media callback: %s (current %s)", ticket, self._ticket)
            return False
        return True

    def select(self, station: StationRecord) -> PlaybackTicket:
        with self._lock:
            if self._station is not None:
                self._media.pause()
            ticket = self._begin_load(station)
            logger.info("Selected station %s (%s)", station.name, station.station_id)
            return ticket

    def play(self) -> PlaybackState:
        with self._lock:
            if self._station is None:
                raise self._fail("No station selected")
            if self._state is PlaybackState.PLAYING:
                return self._state
            if self._state in self._RELOAD:
                self._begin_load(self._station)
            try:
                self._media.play()
            except Exception as exc:
                raise self._fail(f"Playback rejected: {exc}") from exc
            self._state = PlaybackState.PLAYING
            return self._state

    def pause(self) -> PlaybackState:
        with self._lock:
            if self._state is PlaybackState.PLAYING:
                self._media.pause()
                self._state = PlaybackState.PAUSED
            return self._state

    def stop(self) -> PlaybackState:
        with self._lock:
            self._media.pause()
            self._media.release()
            self._station = None
            self._ticket = None
            self._last_error = None
            self._state = PlaybackState.IDLE
            return self._state

    def set_volume(self, volume: float) -> float:
        with self._lock:
            self._volume = clamp_volume(volume)
            self._media.set_volume(self._volume)
            return self._volume

    def on_ready_to_play(self, ticket: PlaybackTicket | None) -> bool:
        with self._lock:
            if not self._is_current(ticket) or self._state is not PlaybackState.LOADING:
                return False
            self._state = PlaybackState.READY
            return True

    def on_ended(self, ticket: PlaybackTicket | None) -> bool:
        with self._lock:
            if not self._is_current(ticket) or self._state is not PlaybackState.PLAYING:
                return False
            self._media.pause()
            self._state = PlaybackState.IDLE
            return True

    def on_error(self, ticket: PlaybackTicket | None, message: str = "") -> PlaybackError | None:
        with self._lock:
            if not self._is_current(ticket):
                return None
            return self._fail(message or "Media element reported an error")

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            payload: dict[str, Any] = {
                "state": self._state.value,
                "station": self._station.to_dict() if self._station else None,
                "ticket": self._ticket.to_dict() if self._ticket else None,
                "volume": self._volume,
                "is_loading": self.is_loading,
                "last_error": self._last_error,
            }
            if isinstance(self._media, BrowserMediaElement):
                payload["media"] = self._media.snapshot()
            return payload
