"""Base model and shared validators for feed records.

Every feed model inherits from :class:`LiveTrackBaseModel` which
provides:

* Frozen, ``extra="ignore"`` configuration with population by name.
* A ``model_validator(mode="before")`` that stashes the original
  payload in ``raw`` when it was not passed explicitly.
* Post-construction sentinel normalisation via ``_SENTINEL_RULES``:
  the feed uses in-band values (``bearing == 0``) to mean "absent",
  and these are converted to ``None`` exactly once, here.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 100_000_000_000


def is_unknown_bearing(value: float) -> bool:
    """Return ``True`` for the feed's "no bearing" values (``0`` or non-finite)."""
    return value == 0 or not math.isfinite(value)


def parse_epoch_timestamp(value: Any) -> datetime | None:
    """Convert an epoch timestamp (seconds **or** milliseconds) to a UTC datetime.

    Returns ``None`` when the value is missing, non-numeric or not positive.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    try:
        ts = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(ts) or ts <= 0:
        return None
    if ts >= _MS_THRESHOLD:
        ts /= 1000.0
    return datetime.fromtimestamp(ts, tz=UTC)


EpochTimestamp = Annotated[datetime | None, BeforeValidator(parse_epoch_timestamp)]
"""Annotated type that coerces epoch ints (seconds or ms) to UTC datetimes."""


class LiveTrackBaseModel(BaseModel):
    """Base for feed and lookup models."""

    _SENTINEL_RULES: ClassVar[dict[str, Callable[..., bool]]] = {}
    """Per-field sentinel predicates.

    Subclasses declare ``{"field_name": predicate}`` pairs. After model
    construction a field is set to ``None`` when *predicate(value)* is
    ``True``.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, repr=False)
    """Original payload dict."""

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        if "raw" in values:
            return values
        cleaned = {key: value for key, value in values.items() if value is not None}
        cleaned["raw"] = dict(values)
        return cleaned

    @model_validator(mode="after")
    def _normalise_sentinels(self) -> LiveTrackBaseModel:
        sentinel_rules: dict[str, Callable[..., bool]] = getattr(type(self), "_SENTINEL_RULES", {})
        for field_name, predicate in sentinel_rules.items():
            val = getattr(self, field_name, None)
            if val is not None and predicate(val):
                object.__setattr__(self, field_name, None)
        return self
