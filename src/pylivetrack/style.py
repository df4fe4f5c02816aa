"""Category colours and icon specifications."""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from enum import StrEnum

from pylivetrack._constants import BEARING_SIGNATURE_STEP, CATEGORY_COLORS, FALLBACK_FILL, STROKE_DARKEN
from pylivetrack.geometry import clamp, normalize_degrees


class IconKind(StrEnum):
    DOT = "dot"
    ARROW = "arrow"


@dataclass(frozen=True, slots=True)
class CategoryStyle:
    fill_color: str
    stroke_color: str


@dataclass(frozen=True, slots=True)
class IconSpec:
    """Everything that determines how a vehicle's marker looks.

    Two specs with equal :attr:`signature` render identically, so a marker
    is only redrawn when the signature changes.
    """

    kind: IconKind
    fill_color: str
    stroke_color: str
    text: str
    bearing: float | None = None

    @property
    def signature(self) -> str:
        bearing = "-" if self.bearing is None else f"{self.bearing:g}"
        return f"{self.kind}|{bearing}|{self.fill_color}|{self.stroke_color}|{self.text}"


def fold_text(text: str) -> str:
    """Lowercase and strip diacritics (``"Spårvagn"`` -> ``"sparvagn"``)."""
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def darken(hex_color: str, fraction: float = STROKE_DARKEN) -> str:
    """Scale each RGB channel of ``#rrggbb`` towards black by *fraction*."""
    value = hex_color.lstrip("#")
    if len(value) == 3:
        value = "".join(ch * 2 for ch in value)
    if len(value) != 6:
        raise ValueError(f"expected #rrggbb colour, got {hex_color!r}")
    factor = 1.0 - clamp(fraction, 0.0, 1.0)
    channels = [int(value[i : i + 2], 16) for i in (0, 2, 4)]
    return "#" + "".join(f"{round(channel * factor):02x}" for channel in channels)


def style_for_category(description: str | None) -> CategoryStyle:
    """Pick the fill colour for a vehicle description; first keyword match wins."""
    fill = FALLBACK_FILL
    if description:
        folded = fold_text(description)
        for keyword, color in CATEGORY_COLORS:
            if keyword in folded:
                fill = color
                break
    return CategoryStyle(fill_color=fill, stroke_color=darken(fill))


def quantize_bearing(bearing: float) -> float:
    step = BEARING_SIGNATURE_STEP
    return normalize_degrees(round(bearing / step) * step)


def icon_for(*, line: str, description: str | None, bearing: float | None) -> IconSpec:
    """Arrow icon when the heading is known, plain dot otherwise."""
    style = style_for_category(description)
    if bearing is None:
        return IconSpec(IconKind.DOT, style.fill_color, style.stroke_color, line)
    return IconSpec(IconKind.ARROW, style.fill_color, style.stroke_color, line, quantize_bearing(bearing))
