"""Feed payload parsing.

The feed returns either a bare JSON array of vehicle objects or an object
wrapping that array under ``"vehicles"``. Anything else is a parse failure.
Individual records are validated leniently: a record that cannot be read
becomes a :class:`RawAgentState` without identity/position and is filtered
later with an explicit skip reason.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from pylivetrack.exceptions import FeedParseError
from pylivetrack.models.agent import RawAgentState

_logger = logging.getLogger(__name__)

_ENVELOPE_KEY = "vehicles"


def decode_feed_body(body: bytes | str, *, url: str = "") -> Any:
    """Decode a UTF-8 JSON response body, raising :class:`FeedParseError` on failure."""
    try:
        text = body.decode("utf-8") if isinstance(body, bytes) else body
        return json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        preview = body[:200].decode("utf-8", "replace") if isinstance(body, bytes) else body[:200]
        raise FeedParseError(f"Invalid JSON from {url or 'feed'}: {preview}", url=url) from exc


def unwrap_vehicle_list(payload: Any, *, url: str = "") -> list[Any]:
    """Return the list of vehicle objects carried by *payload*."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        wrapped = payload.get(_ENVELOPE_KEY)
        if isinstance(wrapped, list):
            return wrapped
        if wrapped is None and _ENVELOPE_KEY in payload:
            return []
    raise FeedParseError(
        f"Expected a JSON array of vehicles from {url or 'feed'}, got {type(payload).__name__}",
        url=url,
    )


def parse_record(item: Any) -> RawAgentState:
    """Parse one vehicle object; unreadable input yields an empty record."""
    if not isinstance(item, dict):
        return RawAgentState(raw={"value": item})
    try:
        return RawAgentState.model_validate(item)
    except ValidationError as exc:
        _logger.debug("Unreadable vehicle record %r: %s", item, exc)
        return RawAgentState(raw=item)


def parse_feed_payload(payload: Any, *, url: str = "") -> list[RawAgentState]:
    """Parse a decoded feed payload into raw vehicle records."""
    return [parse_record(item) for item in unwrap_vehicle_list(payload, url=url)]
