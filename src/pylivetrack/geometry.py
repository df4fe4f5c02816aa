"""Pure geometry helpers: headings, distances, easing and tween durations."""

from __future__ import annotations

import math

from pylivetrack._constants import EARTH_RADIUS_M, TILE_SIZE_PX

# Web Mercator is undefined at the poles; clamp like slippy-map tiles do.
_MAX_MERCATOR_LAT = 85.05112878


def clamp(value: float, lower: float, upper: float) -> float:
    """Return *value* limited to ``[lower, upper]``."""
    return max(lower, min(upper, value))


def normalize_degrees(value: float) -> float:
    """Fold any angle into ``[0, 360)``."""
    result = value % 360.0
    # -1e-15 % 360 == 360.0 in floating point.
    return 0.0 if result >= 360.0 else result


def estimate_heading(prev_lat: float, prev_lon: float, cur_lat: float, cur_lon: float) -> float:
    """Great-circle initial bearing from the previous to the current point.

    Returns compass degrees in ``[0, 360)`` (0 = north, 90 = east).
    """
    phi1 = math.radians(prev_lat)
    phi2 = math.radians(cur_lat)
    d_lambda = math.radians(cur_lon - prev_lon)
    y = math.sin(d_lambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lambda)
    return normalize_degrees(math.degrees(math.atan2(y, x)))


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in metres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def ease_in_out_cubic(t: float) -> float:
    """Standard cubic ease-in/ease-out on ``t`` in ``[0, 1]``."""
    t = clamp(t, 0.0, 1.0)
    if t < 0.5:
        return 4 * t * t * t
    return 1 - ((-2 * t + 2) ** 3) / 2


def lerp(start: float, end: float, fraction: float) -> float:
    return start + (end - start) * fraction


def animation_duration(
    pixel_distance: float,
    *,
    ms_per_pixel: float,
    min_ms: float,
    max_ms: float,
) -> float:
    """Tween duration in milliseconds for an on-screen jump of *pixel_distance*.

    Linear in distance and clamped to ``[min_ms, max_ms]``, so agents that
    barely moved settle quickly while long jumps still glide.
    """
    return clamp(abs(pixel_distance) * ms_per_pixel, min_ms, max_ms)


def web_mercator_px(lat: float, lon: float, zoom: int) -> tuple[float, float]:
    """Project a coordinate to global Web Mercator pixels at *zoom*."""
    scale = TILE_SIZE_PX * (2**zoom)
    lat = clamp(lat, -_MAX_MERCATOR_LAT, _MAX_MERCATOR_LAT)
    x = (lon + 180.0) / 360.0 * scale
    sin_lat = math.sin(math.radians(lat))
    y = (0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi)) * scale
    return x, y


def pixel_distance(a: tuple[float, float], b: tuple[float, float]) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])
