"""Engine configuration for pylivetrack."""

from __future__ import annotations

import dataclasses
import os
from enum import StrEnum
from typing import Any

from pylivetrack._constants import FEED_URL
from pylivetrack.exceptions import LiveTrackConfigError


class ExpiryPolicy(StrEnum):
    """How agents disappear from the display."""

    ABSENCE = "absence"
    LAST_SEEN = "last_seen"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class TrackerConfig:
    """Engine configuration.

    Parameters
    ----------
    feed_url : str
        URL of the live vehicle feed (HTTP GET, JSON array response).
    poll_interval : float
        Seconds between polls.
    min_animation_ms : float
        Lower bound for a tween duration.
    max_animation_ms : float
        Upper bound for a tween duration.
    ms_per_pixel : float
        Tween duration per on-screen pixel travelled, before clamping.
    frame_interval : float
        Seconds between animation frames for the asyncio frame clock.
    snap_epsilon_deg : float
        Moves smaller than this (in degrees of lat and lon) snap instead
        of animating.
    move_epsilon_m : float
        Minimum movement in metres before a heading is derived from two
        consecutive positions.
    expiry : ExpiryPolicy
        ``ABSENCE`` removes agents missing from the latest poll.
        ``LAST_SEEN`` keeps them until absent for ``stale_ttl`` seconds.
    stale_ttl : float
        Seconds an agent may be absent under ``LAST_SEEN``.
    synthesize_missing_ids : bool
        Use ``"lat,lon"`` as identity for records that carry none. Two
        vehicles at the same position collide, so this is opt-in.
    request_timeout : float or None
        Total timeout for one feed request. ``None`` keeps the
        transport default.
    projection_zoom : int
        Zoom level used by the recording surface's Web Mercator projection.
    """

    feed_url: str = FEED_URL
    poll_interval: float = 6.0
    min_animation_ms: float = 250.0
    max_animation_ms: float = 3000.0
    ms_per_pixel: float = 8.0
    frame_interval: float = 1 / 60
    snap_epsilon_deg: float = 1e-7
    move_epsilon_m: float = 2.0
    expiry: ExpiryPolicy = ExpiryPolicy.ABSENCE
    stale_ttl: float = 30.0
    synthesize_missing_ids: bool = False
    request_timeout: float | None = None
    projection_zoom: int = 12

    def __post_init__(self) -> None:
        if not self.feed_url:
            raise LiveTrackConfigError("feed_url must be set")
        if self.poll_interval <= 0:
            raise LiveTrackConfigError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.frame_interval <= 0:
            raise LiveTrackConfigError(f"frame_interval must be positive, got {self.frame_interval}")
        if self.min_animation_ms < 0 or self.min_animation_ms > self.max_animation_ms:
            raise LiveTrackConfigError(
                f"animation bounds must satisfy 0 <= min <= max, got {self.min_animation_ms}..{self.max_animation_ms}"
            )
        if self.stale_ttl <= 0:
            raise LiveTrackConfigError(f"stale_ttl must be positive, got {self.stale_ttl}")
        try:
            object.__setattr__(self, "expiry", ExpiryPolicy(self.expiry))
        except ValueError as exc:
            raise LiveTrackConfigError(f"unknown expiry policy: {self.expiry!r}") from exc

    @classmethod
    def from_env(cls, **overrides: Any) -> TrackerConfig:
        """Create configuration from ``LIVETRACK_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_FLOAT_MAP = {
            "LIVETRACK_POLL_INTERVAL": "poll_interval",
            "LIVETRACK_MIN_ANIMATION_MS": "min_animation_ms",
            "LIVETRACK_MAX_ANIMATION_MS": "max_animation_ms",
            "LIVETRACK_MS_PER_PIXEL": "ms_per_pixel",
            "LIVETRACK_FRAME_INTERVAL": "frame_interval",
            "LIVETRACK_MOVE_EPSILON_M": "move_epsilon_m",
            "LIVETRACK_STALE_TTL": "stale_ttl",
            "LIVETRACK_REQUEST_TIMEOUT": "request_timeout",
        }
        config_kwargs: dict[str, Any] = {}

        url = env.get("LIVETRACK_FEED_URL")
        if url is not None:
            config_kwargs["feed_url"] = url.strip()

        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(val)
            except ValueError as exc:
                raise LiveTrackConfigError(f"{env_key} must be a number, got {val!r}") from exc

        expiry_env = env.get("LIVETRACK_EXPIRY")
        if expiry_env is not None and "expiry" not in overrides:
            config_kwargs["expiry"] = expiry_env.strip().lower()

        if "synthesize_missing_ids" not in overrides:
            config_kwargs["synthesize_missing_ids"] = _env_bool(
                env.get("LIVETRACK_SYNTHESIZE_MISSING_IDS"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
