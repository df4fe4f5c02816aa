"""Validation and enrichment of raw vehicle records.

Enrichment is a hard gate: a vehicle is only rendered when its trip id
resolves to lookup metadata carrying a line designation. Every other
outcome is a :class:`Skipped` result naming the reason, never an exception.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pylivetrack.ingestion.normalize import normalize_line_code, synthetic_identity
from pylivetrack.models.agent import EnrichedAgentState, RawAgentState, TripInfo

LookupFn = Callable[[str], TripInfo | Mapping[str, Any] | None]


class SkipReason(StrEnum):
    MISSING_IDENTITY = "missing_identity"
    INVALID_POSITION = "invalid_position"
    MISSING_TRIP = "missing_trip"
    UNKNOWN_TRIP = "unknown_trip"
    MISSING_LINE = "missing_line"


@dataclass(frozen=True, slots=True)
class Rendered:
    state: EnrichedAgentState


@dataclass(frozen=True, slots=True)
class Skipped:
    reason: SkipReason
    record: RawAgentState


EnrichmentResult = Rendered | Skipped


class TripLookup:
    """Read-only adapter over the external trip metadata table.

    Accepts any callable returning :class:`TripInfo`, a mapping with
    ``line``/``headsign``/``type``/``desc`` keys, or ``None`` for a miss.
    """

    def __init__(self, fn: LookupFn) -> None:
        self._fn = fn

    @classmethod
    def from_mapping(cls, table: Mapping[str, Any]) -> TripLookup:
        return cls(table.get)

    @classmethod
    def from_json_file(cls, path: str | Path) -> TripLookup:
        """Load a ``{trip_id: {line, headsign, type, desc}}`` JSON document."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a JSON object keyed by trip id")
        return cls.from_mapping(data)

    def __call__(self, trip_id: str) -> TripInfo | None:
        entry = self._fn(trip_id)
        if entry is None:
            return None
        if isinstance(entry, TripInfo):
            return entry
        if not isinstance(entry, Mapping):
            return None
        try:
            return TripInfo.model_validate(dict(entry))
        except ValidationError:
            return None


def validate_record(record: RawAgentState, *, synthesize_missing_ids: bool = False) -> Skipped | str:
    """Shape check run before enrichment.

    Returns the identity to track the record under, or a :class:`Skipped`.
    """
    if not record.has_valid_position:
        return Skipped(SkipReason.INVALID_POSITION, record)
    if record.identity is not None:
        return record.identity
    if synthesize_missing_ids:
        assert record.lat is not None and record.lon is not None  # noqa: S101
        return synthetic_identity(record.lat, record.lon)
    return Skipped(SkipReason.MISSING_IDENTITY, record)


def enrich(
    record: RawAgentState,
    lookup: TripLookup | LookupFn,
    *,
    synthesize_missing_ids: bool = False,
) -> EnrichmentResult:
    """Validate *record* and attach its trip metadata."""
    identity = validate_record(record, synthesize_missing_ids=synthesize_missing_ids)
    if isinstance(identity, Skipped):
        return identity

    if record.trip_id is None:
        return Skipped(SkipReason.MISSING_TRIP, record)

    resolver = lookup if isinstance(lookup, TripLookup) else TripLookup(lookup)
    trip = resolver(record.trip_id)
    if trip is None:
        return Skipped(SkipReason.UNKNOWN_TRIP, record)

    line = normalize_line_code(trip.line)
    if line is None:
        return Skipped(SkipReason.MISSING_LINE, record)

    return Rendered(EnrichedAgentState.from_raw(record, identity=identity, line=line, trip=trip))
