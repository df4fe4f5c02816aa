"""Fixed-period, single-flight, visibility-gated feed polling."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

from pylivetrack._transport import FeedTransport
from pylivetrack.config import TrackerConfig
from pylivetrack.exceptions import FeedError
from pylivetrack.ingestion.feed import parse_feed_payload
from pylivetrack.models.agent import RawAgentState

_logger = logging.getLogger(__name__)

R = TypeVar("R")

STATUS_FETCHING = "Fetching…"


@dataclass(frozen=True)
class PollResult(Generic[R]):
    """Outcome of one completed poll."""

    report: R | None = None
    error: Exception | None = None
    vehicle_count: int = 0
    completed_at: datetime = field(default_factory=lambda: datetime.now().astimezone())

    @property
    def ok(self) -> bool:
        return self.error is None


class SnapshotPoller(Generic[R]):
    """Fetches the feed every ``poll_interval`` seconds and hands records to *apply*.

    A tick is skipped while a previous poll is still in flight or while the
    display is hidden. Becoming visible again polls immediately. A failed
    poll is logged and reported through *on_status*; it never stops the
    loop and never reaches *apply*.
    """

    def __init__(
        self,
        config: TrackerConfig,
        transport: FeedTransport,
        apply: Callable[[list[RawAgentState]], R],
        *,
        on_status: Callable[[str], None] | None = None,
        visible: bool = True,
    ) -> None:
        self._config = config
        self._transport = transport
        self._apply = apply
        self._on_status = on_status
        self._visible = visible
        self._in_flight = False
        self._wake = asyncio.Event()
        self._loop_task: asyncio.Task[None] | None = None
        self._poll_task: asyncio.Task[PollResult[R] | None] | None = None
        self.last_result: PollResult[R] | None = None

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def set_visible(self, visible: bool) -> None:
        """Gate polling on display visibility; regaining it polls at once."""
        was_visible = self._visible
        self._visible = visible
        if visible and not was_visible:
            _logger.debug("Display visible again; polling now")
            self._wake.set()

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def poll_once(self) -> PollResult[R] | None:
        """Run one poll. Returns ``None`` if it was skipped."""
        if not self._visible:
            _logger.debug("Display hidden; poll skipped")
            return None
        if self._in_flight:
            _logger.debug("Previous poll still running; poll skipped")
            return None

        self._in_flight = True
        try:
            self._status(STATUS_FETCHING)
            try:
                payload = await self._transport.fetch()
                records = parse_feed_payload(payload, url=self._config.feed_url)
            except FeedError as exc:
                _logger.warning("Poll failed: %s", exc)
                self._status(f"Error: {exc}")
                result: PollResult[R] = PollResult(error=exc)
            except Exception as exc:
                _logger.exception("Poll failed unexpectedly")
                self._status(f"Error: {exc}")
                result = PollResult(error=exc)
            else:
                try:
                    report = self._apply(records)
                except Exception as exc:
                    _logger.exception("Applying %d records failed", len(records))
                    self._status(f"Error: {exc}")
                    result = PollResult(error=exc, vehicle_count=len(records))
                else:
                    result = PollResult(report=report, vehicle_count=len(records))
                    self._status(f"OK • {len(records)} vehicles • {result.completed_at:%H:%M:%S}")
        finally:
            self._in_flight = False

        self.last_result = result
        return result

    def start(self) -> None:
        """Start the polling loop on the running event loop."""
        if self.is_running:
            return
        self._loop_task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        for task in (self._loop_task, self._poll_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._loop_task = None
        self._poll_task = None

    async def _run(self) -> None:
        while True:
            self._tick()
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._wake.wait(), timeout=self._config.poll_interval)
            self._wake.clear()

    def _tick(self) -> None:
        if not self._visible or self._in_flight:
            _logger.debug("Tick skipped (visible=%s, in_flight=%s)", self._visible, self._in_flight)
            return
        self._poll_task = asyncio.get_running_loop().create_task(self.poll_once())

    def _status(self, text: str) -> None:
        if self._on_status is not None:
            self._on_status(text)
