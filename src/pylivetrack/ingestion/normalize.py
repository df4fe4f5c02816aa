"""Normalization helpers.

Centralizes defensive parsing of feed values.
"""

from __future__ import annotations

import math
import re
from typing import Any

# First "number followed by letters" token, e.g. "  5b x" -> "5B", "SJ 1033" -> "1033".
_LINE_TOKEN = re.compile(r"\d+[A-Z]*")


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def finite_number(value: Any) -> float | None:
    """Return *value* as float only if it already is a finite JSON number.

    Strings are rejected: a coordinate that arrives as text is a malformed
    record, not something to repair.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    result = float(value)
    if not math.isfinite(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def normalize_line_code(value: Any) -> str | None:
    """Normalize a line designation for display.

    Whitespace is removed, the text is uppercased and collapsed to its first
    number+letters token. Designations without digits (``"Pågatåg"``) are kept
    as the uppercased, whitespace-free text.
    """
    text = safe_str(value)
    if text is None:
        return None
    compact = "".join(text.split()).upper()
    if not compact:
        return None
    match = _LINE_TOKEN.search(compact)
    if match is not None:
        return match.group(0)
    return compact


def synthetic_identity(lat: float, lon: float) -> str:
    """Identity for records without one; two vehicles on the same spot collide."""
    return f"{lat:.6f},{lon:.6f}"
