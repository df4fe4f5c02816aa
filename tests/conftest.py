from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from pylivetrack.models.agent import EnrichedAgentState


class StepClock:
    """Frame clock that advances a fixed step per frame and yields once."""

    def __init__(self, step_ms: float = 16.0) -> None:
        self.t = 0.0
        self.step_ms = step_ms

    def now(self) -> float:
        return self.t

    async def next_frame(self) -> float:
        await asyncio.sleep(0)
        self.t += self.step_ms
        return self.t


class FakeClock:
    """Monotonic seconds clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.value = start

    def __call__(self) -> float:
        return self.value


async def wait_until(predicate: Callable[[], bool], tries: int = 500) -> None:
    for _ in range(tries):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


def make_state(identity: str = "v1", lat: float = 55.60, lon: float = 13.00, **extra: Any) -> EnrichedAgentState:
    fields: dict[str, Any] = {
        "identity": identity,
        "lat": lat,
        "lon": lon,
        "line": "5",
        "destination": "Centrum",
        "description": "Stadsbuss",
        "trip_id": "t1",
    }
    fields.update(extra)
    return EnrichedAgentState(**fields)
