"""Frame-presentation clock used to pace animations."""

from __future__ import annotations

import asyncio
import time
from typing import Protocol


class FrameClock(Protocol):
    """Source of animation frames.

    ``now`` and the value returned by ``next_frame`` are milliseconds on
    the same monotonic timeline.
    """

    def now(self) -> float: ...

    async def next_frame(self) -> float:
        """Suspend until the next frame can be presented; return its time."""
        ...


class AsyncioFrameClock:
    """Fixed-rate frame clock on top of the running event loop."""

    def __init__(self, frame_interval: float = 1 / 60) -> None:
        self._frame_interval = frame_interval

    def now(self) -> float:
        return time.monotonic() * 1000.0

    async def next_frame(self) -> float:
        await asyncio.sleep(self._frame_interval)
        return self.now()
