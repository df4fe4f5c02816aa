"""Live tracking engine: the one object that owns all mutable display state."""

from __future__ import annotations

import logging
import time
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

import aiohttp

from pylivetrack._transport import FeedTransport, HttpFeedTransport
from pylivetrack.animation import MotionAnimator
from pylivetrack.config import TrackerConfig
from pylivetrack.exceptions import EngineNotStartedError
from pylivetrack.frames import AsyncioFrameClock, FrameClock
from pylivetrack.ingestion.enrich import LookupFn, Skipped, SkipReason, TripLookup, enrich
from pylivetrack.labels import LabelStateMachine, LabelTarget
from pylivetrack.models.agent import EnrichedAgentState, RawAgentState
from pylivetrack.poller import PollResult, SnapshotPoller
from pylivetrack.registry import AgentRegistry
from pylivetrack.surface import RenderSurface

_logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SnapshotReport:
    """What one applied snapshot did to the display."""

    rendered: tuple[str, ...]
    removed: tuple[str, ...]
    skipped: tuple[Skipped, ...]

    @property
    def skip_counts(self) -> Counter[SkipReason]:
        return Counter(item.reason for item in self.skipped)


class TrackingEngine:
    """Polls the feed and keeps a :class:`RenderSurface` in sync with it.

    Usage::

        async with TrackingEngine(config, surface, lookup) as engine:
            engine.start()
            ...

    Pointer events from the map widget are forwarded to the ``pointer_*``
    and ``click`` methods; visibility changes to :meth:`set_visible`.
    """

    def __init__(
        self,
        config: TrackerConfig,
        surface: RenderSurface,
        lookup: TripLookup | LookupFn,
        *,
        transport: FeedTransport | None = None,
        session: aiohttp.ClientSession | None = None,
        frame_clock: FrameClock | None = None,
        clock: Callable[[], float] = time.monotonic,
        on_status: Callable[[str], None] | None = None,
        visible: bool = True,
    ) -> None:
        self._config = config
        self._surface = surface
        self._lookup = lookup if isinstance(lookup, TripLookup) else TripLookup(lookup)
        self._http_session = session
        self._external_session = session is not None
        self._on_status = on_status
        self._visible = visible

        self.animator = MotionAnimator(
            surface,
            frame_clock or AsyncioFrameClock(config.frame_interval),
            snap_epsilon_deg=config.snap_epsilon_deg,
        )
        self.labels = LabelStateMachine(surface, self._label_target)
        self.registry = AgentRegistry(config, surface, self.animator, self.labels, clock=clock)
        self._poller: SnapshotPoller[SnapshotReport] | None = None
        if transport is not None:
            self._poller = self._build_poller(transport)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> TrackingEngine:
        if self._poller is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._poller = self._build_poller(HttpFeedTransport(self._config, self._http_session))
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()
        self.registry.clear()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    @property
    def poller(self) -> SnapshotPoller[SnapshotReport]:
        if self._poller is None:
            raise EngineNotStartedError("Engine not started. Use 'async with TrackingEngine(...) as engine:'")
        return self._poller

    def start(self) -> None:
        self.poller.start()

    async def stop(self) -> None:
        if self._poller is not None:
            await self._poller.stop()

    async def poll_once(self) -> PollResult[SnapshotReport] | None:
        return await self.poller.poll_once()

    def set_visible(self, visible: bool) -> None:
        self._visible = visible
        if self._poller is not None:
            self._poller.set_visible(visible)

    def apply_snapshot(self, records: Iterable[RawAgentState]) -> SnapshotReport:
        """Enrich *records*, upsert every survivor, then drop everything else.

        All upserts finish before reconciliation, so a vehicle present in
        both the previous and this snapshot is never removed and re-added.
        """
        accepted: dict[str, EnrichedAgentState] = {}
        skipped: list[Skipped] = []
        for record in records:
            result = enrich(record, self._lookup, synthesize_missing_ids=self._config.synthesize_missing_ids)
            if isinstance(result, Skipped):
                skipped.append(result)
                continue
            # Last record wins when the feed repeats an identity.
            accepted[result.state.identity] = result.state

        for state in accepted.values():
            self.registry.upsert(state)
        removed = self.registry.reconcile(accepted.keys())

        report = SnapshotReport(rendered=tuple(accepted), removed=tuple(removed), skipped=tuple(skipped))
        _logger.debug(
            "Snapshot applied: %d rendered, %d removed, skipped %s",
            len(report.rendered),
            len(report.removed),
            dict(report.skip_counts),
        )
        return report

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def pointer_enter(self, identity: str) -> None:
        self.labels.pointer_enter(identity)

    def pointer_leave(self, identity: str) -> None:
        self.labels.pointer_leave(identity)

    def click(self, identity: str) -> None:
        self.labels.click(identity)

    def background_click(self) -> None:
        self.labels.background_click()

    def pointer_moved(self, over_agent: bool = False) -> None:
        self.labels.pointer_moved(over_agent)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _build_poller(self, transport: FeedTransport) -> SnapshotPoller[SnapshotReport]:
        return SnapshotPoller(
            self._config,
            transport,
            self.apply_snapshot,
            on_status=self._on_status,
            visible=self._visible,
        )

    def _label_target(self, identity: str) -> LabelTarget | None:
        return self.registry.get(identity)
