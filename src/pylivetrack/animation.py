"""Per-vehicle position tweens.

Each vehicle owns at most one running tween, held as an asyncio task in
its tracking record. Starting a new tween cancels the old one; there is
no shared flag to poll.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import Protocol

from pylivetrack.frames import FrameClock
from pylivetrack.geometry import ease_in_out_cubic, lerp
from pylivetrack.models.agent import LatLng
from pylivetrack.surface import RenderSurface

_logger = logging.getLogger(__name__)

FrameCallback = Callable[[LatLng], None]


@dataclass(slots=True)
class Animation:
    """Handle to one in-flight tween."""

    task: asyncio.Task[None]
    target: LatLng
    duration_ms: float

    def cancel(self) -> None:
        self.task.cancel()

    @property
    def done(self) -> bool:
        return self.task.done()


class Animatable(Protocol):
    identity: str
    displayed_position: LatLng
    animation: Animation | None


class MotionAnimator:
    """Drives eased position tweens for vehicles on a :class:`RenderSurface`."""

    def __init__(
        self,
        surface: RenderSurface,
        clock: FrameClock,
        *,
        snap_epsilon_deg: float = 1e-7,
    ) -> None:
        self._surface = surface
        self._clock = clock
        self._snap_epsilon = snap_epsilon_deg

    @staticmethod
    def cancel(agent: Animatable) -> None:
        if agent.animation is not None:
            agent.animation.cancel()
            agent.animation = None

    def animate(
        self,
        agent: Animatable,
        start: LatLng,
        end: LatLng,
        duration_ms: float,
        on_frame: FrameCallback | None = None,
    ) -> Animation | None:
        """Move *agent* from *start* to *end*, replacing any running tween.

        Returns the new handle, or ``None`` when the move was applied at once
        (negligible distance, zero duration or no running event loop).
        """
        self.cancel(agent)

        if self._negligible(start, end) or duration_ms <= 0:
            self._place(agent, end, on_frame)
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop means no frames to schedule.
            self._place(agent, end, on_frame)
            return None

        task = loop.create_task(self._run(agent, start, end, duration_ms, on_frame))
        handle = Animation(task=task, target=end, duration_ms=duration_ms)
        agent.animation = handle
        task.add_done_callback(partial(self._finished, agent))
        _logger.debug("Animating %s over %.0f ms", agent.identity, duration_ms)
        return handle

    @staticmethod
    def _finished(agent: Animatable, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        _logger.error("Animation for %s failed", agent.identity, exc_info=exc)
        current = agent.animation
        if current is not None and current.task is task:
            agent.animation = None

    def _negligible(self, start: LatLng, end: LatLng) -> bool:
        return abs(end.lat - start.lat) <= self._snap_epsilon and abs(end.lon - start.lon) <= self._snap_epsilon

    def _place(self, agent: Animatable, position: LatLng, on_frame: FrameCallback | None) -> None:
        agent.displayed_position = position
        self._surface.move_marker(agent.identity, position)
        if on_frame is not None:
            on_frame(position)

    async def _run(
        self,
        agent: Animatable,
        start: LatLng,
        end: LatLng,
        duration_ms: float,
        on_frame: FrameCallback | None,
    ) -> None:
        started_at = self._clock.now()
        while True:
            now = await self._clock.next_frame()
            fraction = (now - started_at) / duration_ms
            if fraction >= 1.0:
                break
            eased = ease_in_out_cubic(fraction)
            self._place(
                agent,
                LatLng(lerp(start.lat, end.lat, eased), lerp(start.lon, end.lon, eased)),
                on_frame,
            )

        # Land exactly on the target; interpolation never reaches it bit-for-bit.
        self._place(agent, end, on_frame)
        current = agent.animation
        if current is not None and current.task is asyncio.current_task():
            agent.animation = None
