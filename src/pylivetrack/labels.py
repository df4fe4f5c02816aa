"""Hover and pinned label state machine.

At most one hover label and at most one pinned label exist at any time,
and never both for the same vehicle: pinning a vehicle clears its hover
label. Labels follow their vehicle's displayed position frame by frame.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from pylivetrack.models.agent import EnrichedAgentState, LatLng
from pylivetrack.surface import RenderSurface

_logger = logging.getLogger(__name__)


class LabelTarget(Protocol):
    state: EnrichedAgentState
    displayed_position: LatLng


def _fmt(value: object) -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:.1f}"
    if isinstance(value, datetime):
        return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    return str(value)


def hover_text(state: EnrichedAgentState) -> str:
    headline = state.line if state.destination is None else f"{state.line} → {state.destination}"
    if state.description:
        return f"{headline}\n{state.description}"
    return headline


def pinned_text(state: EnrichedAgentState) -> str:
    return "\n".join(
        [
            hover_text(state),
            f"id: {_fmt(state.identity)}",
            f"tripId: {_fmt(state.trip_id)}",
            f"routeId: {_fmt(state.route_id)}",
            f"speed: {_fmt(state.speed)}",
            f"bearing: {_fmt(state.bearing)}",
            f"time: {_fmt(state.timestamp)}",
        ]
    )


class LabelStateMachine:
    """Tracks which vehicle owns the hover label and which owns the pinned one."""

    def __init__(self, surface: RenderSurface, resolve: Callable[[str], LabelTarget | None]) -> None:
        self._surface = surface
        self._resolve = resolve
        self._hovered: str | None = None
        self._pinned: str | None = None
        self._pointer_over_agent = False

    @property
    def hovered(self) -> str | None:
        return self._hovered

    @property
    def pinned(self) -> str | None:
        return self._pinned

    @property
    def pointer_over_agent(self) -> bool:
        return self._pointer_over_agent

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def pointer_enter(self, identity: str) -> None:
        self._pointer_over_agent = True
        if self._pinned == identity or self._hovered == identity:
            return
        self._hide_hover()
        target = self._resolve(identity)
        if target is None:
            return
        self._surface.add_label(identity, target.displayed_position, hover_text(target.state), pinned=False)
        self._hovered = identity

    def pointer_leave(self, identity: str) -> None:
        # A late leave from a vehicle we already moved off must not clear
        # the flag set by entering the next one.
        if self._hovered in (None, identity):
            self._pointer_over_agent = False
        if self._hovered == identity and self._pinned != identity:
            self._hide_hover()

    def click(self, identity: str) -> None:
        if self._pinned == identity:
            self._unpin()
            return
        self._unpin()
        self._hide_hover()
        target = self._resolve(identity)
        if target is None:
            return
        self._surface.add_label(identity, target.displayed_position, pinned_text(target.state), pinned=True)
        self._pinned = identity
        _logger.debug("Pinned label for %s", identity)

    def background_click(self) -> None:
        self._unpin()
        self._hide_hover()
        self._pointer_over_agent = False

    def pointer_moved(self, over_agent: bool = False) -> None:
        """Handle generic pointer movement on the map.

        *over_agent* is the host's hit-test for the pointer position. A move
        reported without one counts as off every vehicle, so a stale
        enter flag left by a missed leave event cannot keep a stray hover
        label alive, e.g. after a marker slid out from under a still pointer.
        """
        if over_agent:
            return
        self._pointer_over_agent = False
        self._hide_hover()

    # ------------------------------------------------------------------
    # Vehicle lifecycle
    # ------------------------------------------------------------------

    def agent_removed(self, identity: str) -> None:
        if self._hovered == identity:
            self._hide_hover()
            self._pointer_over_agent = False
        if self._pinned == identity:
            self._unpin()

    def follow(self, identity: str, position: LatLng) -> None:
        """Keep labels owned by *identity* anchored at *position*."""
        if self._hovered == identity:
            self._surface.move_label(identity, position, pinned=False)
        if self._pinned == identity:
            self._surface.move_label(identity, position, pinned=True)

    def refresh(self, identity: str, state: EnrichedAgentState) -> None:
        """Re-render label text after *identity* got a new state."""
        if self._hovered == identity:
            self._surface.update_label(identity, hover_text(state), pinned=False)
        if self._pinned == identity:
            self._surface.update_label(identity, pinned_text(state), pinned=True)

    def _hide_hover(self) -> None:
        if self._hovered is None:
            return
        self._surface.remove_label(self._hovered, pinned=False)
        self._hovered = None

    def _unpin(self) -> None:
        if self._pinned is None:
            return
        self._surface.remove_label(self._pinned, pinned=True)
        _logger.debug("Unpinned label for %s", self._pinned)
        self._pinned = None
