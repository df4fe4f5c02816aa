"""Custom exception hierarchy for pylivetrack."""

from __future__ import annotations


class LiveTrackError(Exception):
    """Base exception for all pylivetrack errors."""


class LiveTrackConfigError(LiveTrackError):
    """Invalid or missing configuration."""


class EngineNotStartedError(LiveTrackError):
    """Engine used outside its ``async with`` block where a transport is needed."""


class FeedError(LiveTrackError):
    """A poll of the live feed failed; prior state is left untouched."""

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class FeedTransportError(FeedError):
    """HTTP-level failure (network error or non-2xx status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        super().__init__(message, url=url)


class FeedParseError(FeedError):
    """Response body is not valid JSON or not a list of vehicle records."""
