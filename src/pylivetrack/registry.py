"""Authoritative mapping from vehicle identity to its on-screen state.

This is the only component allowed to create, update or remove markers.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Collection, Iterator
from dataclasses import dataclass
from functools import partial

from pylivetrack.animation import Animation, MotionAnimator
from pylivetrack.config import ExpiryPolicy, TrackerConfig
from pylivetrack.geometry import animation_duration, estimate_heading, haversine_m, normalize_degrees, pixel_distance
from pylivetrack.labels import LabelStateMachine
from pylivetrack.models.agent import EnrichedAgentState, LatLng
from pylivetrack.style import IconSpec, icon_for
from pylivetrack.surface import RenderSurface

_logger = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class TrackedAgent:
    """Tracking state for one vehicle.

    ``displayed_position`` lags ``state.position`` while a tween is running.
    Once ``bearing_established`` is set it stays set: a poll without any
    heading information keeps the previous bearing instead of reverting the
    icon to a dot.
    """

    identity: str
    state: EnrichedAgentState
    displayed_position: LatLng
    icon: IconSpec
    bearing: float | None = None
    bearing_established: bool = False
    animation: Animation | None = None
    last_seen: float = 0.0

    @property
    def icon_signature(self) -> str:
        return self.icon.signature


class AgentRegistry:
    """Owns every :class:`TrackedAgent` and the markers drawn for them."""

    def __init__(
        self,
        config: TrackerConfig,
        surface: RenderSurface,
        animator: MotionAnimator,
        labels: LabelStateMachine,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._surface = surface
        self._animator = animator
        self._labels = labels
        self._clock = clock
        self._agents: dict[str, TrackedAgent] = {}

    def __len__(self) -> int:
        return len(self._agents)

    def __contains__(self, identity: object) -> bool:
        return identity in self._agents

    def __iter__(self) -> Iterator[TrackedAgent]:
        return iter(list(self._agents.values()))

    def get(self, identity: str) -> TrackedAgent | None:
        return self._agents.get(identity)

    @property
    def identities(self) -> frozenset[str]:
        return frozenset(self._agents)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def upsert(self, state: EnrichedAgentState) -> TrackedAgent:
        """Create or update the vehicle described by *state*.

        First sightings are drawn in place. Later sightings tween from the
        currently displayed position to the reported one.
        """
        agent = self._agents.get(state.identity)
        if agent is None:
            return self._create(state)

        bearing = self._resolve_bearing(state, agent)
        if bearing is not None:
            agent.bearing = bearing
            agent.bearing_established = True
        agent.state = state
        agent.last_seen = self._clock()

        icon = icon_for(line=state.line, description=state.description, bearing=agent.bearing)
        if icon.signature != agent.icon_signature:
            _logger.debug("Icon changed for %s: %s", state.identity, icon.signature)
            self._surface.set_marker_icon(state.identity, icon)
            agent.icon = icon

        self._labels.refresh(state.identity, state)

        start = agent.displayed_position
        end = state.position
        self._animator.animate(
            agent,
            start,
            end,
            self._duration_ms(start, end),
            on_frame=partial(self._labels.follow, state.identity),
        )
        return agent

    def remove(self, identity: str) -> bool:
        """Forget *identity*, its tween, its marker and any label on it."""
        agent = self._agents.pop(identity, None)
        if agent is None:
            return False
        self._animator.cancel(agent)
        self._surface.remove_marker(identity)
        self._labels.agent_removed(identity)
        _logger.debug("Removed %s", identity)
        return True

    def reconcile(self, present: Collection[str]) -> list[str]:
        """Drop tracked vehicles missing from the latest completed poll.

        Under :attr:`ExpiryPolicy.LAST_SEEN` a missing vehicle is only dropped
        once it has been unseen for ``stale_ttl`` seconds.
        """
        present_set = set(present)
        now = self._clock()
        removed: list[str] = []
        for identity, agent in list(self._agents.items()):
            if identity in present_set:
                continue
            if self._config.expiry is ExpiryPolicy.LAST_SEEN and now - agent.last_seen <= self._config.stale_ttl:
                continue
            self.remove(identity)
            removed.append(identity)
        return removed

    def clear(self) -> None:
        for identity in list(self._agents):
            self.remove(identity)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _create(self, state: EnrichedAgentState) -> TrackedAgent:
        bearing = self._resolve_bearing(state, None)
        icon = icon_for(line=state.line, description=state.description, bearing=bearing)
        agent = TrackedAgent(
            identity=state.identity,
            state=state,
            displayed_position=state.position,
            icon=icon,
            bearing=bearing,
            bearing_established=bearing is not None,
            last_seen=self._clock(),
        )
        self._agents[state.identity] = agent
        self._surface.add_marker(state.identity, state.position, icon)
        _logger.debug("Added %s (%s)", state.identity, icon.signature)
        return agent

    def _resolve_bearing(self, state: EnrichedAgentState, agent: TrackedAgent | None) -> float | None:
        """Feed bearing, else heading from the last reported position, else the last known one."""
        if state.bearing is not None:
            return normalize_degrees(state.bearing)
        if agent is None:
            return None
        previous = agent.state.position
        current = state.position
        if haversine_m(previous.lat, previous.lon, current.lat, current.lon) > self._config.move_epsilon_m:
            return estimate_heading(previous.lat, previous.lon, current.lat, current.lon)
        if agent.bearing_established:
            return agent.bearing
        return None

    def _duration_ms(self, start: LatLng, end: LatLng) -> float:
        distance = pixel_distance(self._surface.project(start), self._surface.project(end))
        return animation_duration(
            distance,
            ms_per_pixel=self._config.ms_per_pixel,
            min_ms=self._config.min_animation_ms,
            max_ms=self._config.max_animation_ms,
        )
