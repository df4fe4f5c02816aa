"""Typed models for feed records and lookup metadata."""

from pylivetrack.models._base import LiveTrackBaseModel, parse_epoch_timestamp
from pylivetrack.models.agent import EnrichedAgentState, LatLng, RawAgentState, TripInfo

__all__ = [
    "EnrichedAgentState",
    "LatLng",
    "LiveTrackBaseModel",
    "RawAgentState",
    "TripInfo",
    "parse_epoch_timestamp",
]
