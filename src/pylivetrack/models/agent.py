"""Vehicle records: raw feed state, lookup metadata and enriched state."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, ClassVar, NamedTuple

from pydantic import AliasChoices, Field, field_validator

from pylivetrack.ingestion.normalize import finite_number, safe_float, safe_str
from pylivetrack.models._base import EpochTimestamp, LiveTrackBaseModel, is_unknown_bearing


class LatLng(NamedTuple):
    """A geographic position in decimal degrees."""

    lat: float
    lon: float


class RawAgentState(LiveTrackBaseModel):
    """One vehicle as reported by the live feed.

    Coordinates are ``None`` unless the feed sent real numbers; string
    coordinates are rejected rather than parsed.

    Parameters
    ----------
    identity : str or None
        Vehicle id. Missing in degenerate feeds.
    lat, lon : float or None
        Position in degrees.
    bearing : float or None
        Heading in compass degrees. The feed's ``0`` means "unknown" and
        is turned into ``None`` here, so nothing downstream needs to know
        about that convention.
    speed : float or None
        Speed as reported (m/s for GTFS-RT).
    trip_id : str or None
        Key into the trip lookup table.
    route_id : str or None
        Route id, informational only.
    timestamp : datetime or None
        Time of the position fix.
    """

    _SENTINEL_RULES: ClassVar[dict[str, Callable[..., bool]]] = {
        "bearing": is_unknown_bearing,
    }

    identity: str | None = Field(default=None, validation_alias=AliasChoices("id", "identity", "vehicleId"))
    lat: float | None = Field(default=None, validation_alias=AliasChoices("lat", "latitude"))
    lon: float | None = Field(default=None, validation_alias=AliasChoices("lon", "lng", "longitude"))
    bearing: float | None = None
    speed: float | None = None
    trip_id: str | None = Field(default=None, validation_alias=AliasChoices("tripId", "trip_id"))
    route_id: str | None = Field(default=None, validation_alias=AliasChoices("routeId", "route_id"))
    timestamp: EpochTimestamp = None

    @field_validator("identity", "trip_id", "route_id", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> str | None:
        text = safe_str(value)
        if text is None:
            return None
        return text.strip() or None

    @field_validator("lat", "lon", mode="before")
    @classmethod
    def _coerce_coordinates(cls, value: Any) -> float | None:
        return finite_number(value)

    @field_validator("bearing", "speed", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @property
    def has_valid_position(self) -> bool:
        return self.lat is not None and self.lon is not None and -90.0 <= self.lat <= 90.0 and -180.0 <= self.lon <= 180.0

    @property
    def position(self) -> LatLng:
        if self.lat is None or self.lon is None:
            raise ValueError(f"vehicle {self.identity!r} has no position")
        return LatLng(self.lat, self.lon)


class TripInfo(LiveTrackBaseModel):
    """Static metadata for one trip, as held by the lookup table."""

    line: str | None = None
    headsign: str | None = None
    category: str | None = Field(default=None, validation_alias=AliasChoices("type", "category"))
    description: str | None = Field(default=None, validation_alias=AliasChoices("desc", "description"))

    @field_validator("line", "headsign", "category", "description", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> str | None:
        text = safe_str(value)
        if text is None:
            return None
        return text.strip() or None


class EnrichedAgentState(RawAgentState):
    """A raw record that passed validation and lookup, ready to render."""

    identity: str = Field(validation_alias=AliasChoices("id", "identity", "vehicleId"))
    lat: float = Field(validation_alias=AliasChoices("lat", "latitude"))
    lon: float = Field(validation_alias=AliasChoices("lon", "lng", "longitude"))
    line: str
    destination: str | None = None
    category: str | None = None
    description: str | None = None

    @classmethod
    def from_raw(
        cls,
        raw: RawAgentState,
        *,
        identity: str,
        line: str,
        trip: TripInfo,
    ) -> EnrichedAgentState:
        return cls(
            identity=identity,
            lat=raw.lat,
            lon=raw.lon,
            bearing=raw.bearing,
            speed=raw.speed,
            trip_id=raw.trip_id,
            route_id=raw.route_id,
            timestamp=raw.timestamp,
            line=line,
            destination=trip.headsign,
            category=trip.category,
            description=trip.description,
            raw=raw.raw,
        )
