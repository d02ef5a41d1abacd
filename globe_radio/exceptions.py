from __future__ import annotations


class AppError(Exception):
    """Base application exception with status metadata."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(AppError):
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class NotFoundError(AppError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, status_code=404)


class RateLimitError(AppError):
    def __init__(self, message: str = "Too many requests"):
        super().__init__(message, status_code=429)


class FetchError(AppError):
    """The station directory could not be reached or returned garbage."""

    def __init__(self, message: str):
        super().__init__(message, status_code=502)


class RecordShapeError(AppError):
    """A single directory entry could not be turned into a station record."""

    def __init__(self, message: str):
        super().__init__(message, status_code=422)


class PlaybackError(AppError):
    """The media element refused to load or play the current station."""

    def __init__(self, message: str, station_id: str | None = None):
        super().__init__(message, status_code=409)
        self.station_id = station_id
