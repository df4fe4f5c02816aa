"""Rendering surface seam.

The map widget is external; the engine only talks to it through
:class:`RenderSurface`. :class:`RecordingSurface` is an in-memory
implementation used for headless runs and tests.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Protocol

from pylivetrack.geometry import web_mercator_px
from pylivetrack.models.agent import LatLng
from pylivetrack.style import IconSpec


class RenderSurface(Protocol):
    """Primitives the engine needs from the map widget.

    Labels are keyed by vehicle identity and ``pinned`` flag, so a hover
    label and a pinned label never share a key.
    """

    def add_marker(self, identity: str, position: LatLng, icon: IconSpec) -> None: ...

    def set_marker_icon(self, identity: str, icon: IconSpec) -> None: ...

    def move_marker(self, identity: str, position: LatLng) -> None: ...

    def remove_marker(self, identity: str) -> None: ...

    def add_label(self, identity: str, position: LatLng, text: str, *, pinned: bool) -> None: ...

    def update_label(self, identity: str, text: str, *, pinned: bool) -> None: ...

    def move_label(self, identity: str, position: LatLng, *, pinned: bool) -> None: ...

    def remove_label(self, identity: str, *, pinned: bool) -> None: ...

    def project(self, position: LatLng) -> tuple[float, float]:
        """Geographic position to screen pixels."""
        ...


@dataclass
class RecordedMarker:
    position: LatLng
    icon: IconSpec


@dataclass
class RecordedLabel:
    position: LatLng
    text: str


@dataclass
class RecordingSurface:
    """In-memory :class:`RenderSurface` that remembers what is on screen.

    ``calls`` counts every primitive invoked, so tests can assert how often
    the engine touched the surface (e.g. icon re-renders).
    """

    zoom: int = 12
    markers: dict[str, RecordedMarker] = field(default_factory=dict)
    labels: dict[tuple[str, bool], RecordedLabel] = field(default_factory=dict)
    calls: Counter[str] = field(default_factory=Counter)

    def add_marker(self, identity: str, position: LatLng, icon: IconSpec) -> None:
        self.calls["add_marker"] += 1
        self.markers[identity] = RecordedMarker(position, icon)

    def set_marker_icon(self, identity: str, icon: IconSpec) -> None:
        self.calls["set_marker_icon"] += 1
        self.markers[identity].icon = icon

    def move_marker(self, identity: str, position: LatLng) -> None:
        self.calls["move_marker"] += 1
        self.markers[identity].position = position

    def remove_marker(self, identity: str) -> None:
        self.calls["remove_marker"] += 1
        self.markers.pop(identity, None)

    def add_label(self, identity: str, position: LatLng, text: str, *, pinned: bool) -> None:
        self.calls["add_label"] += 1
        self.labels[(identity, pinned)] = RecordedLabel(position, text)

    def update_label(self, identity: str, text: str, *, pinned: bool) -> None:
        self.calls["update_label"] += 1
        self.labels[(identity, pinned)].text = text

    def move_label(self, identity: str, position: LatLng, *, pinned: bool) -> None:
        self.calls["move_label"] += 1
        self.labels[(identity, pinned)].position = position

    def remove_label(self, identity: str, *, pinned: bool) -> None:
        self.calls["remove_label"] += 1
        self.labels.pop((identity, pinned), None)

    def project(self, position: LatLng) -> tuple[float, float]:
        return web_mercator_px(position.lat, position.lon, self.zoom)

    def label_for(self, identity: str, *, pinned: bool) -> RecordedLabel | None:
        return self.labels.get((identity, pinned))
