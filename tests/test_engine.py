from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest
from conftest import StepClock

from pylivetrack import RecordingSurface, SkipReason, TrackerConfig, TrackingEngine
from pylivetrack.exceptions import EngineNotStartedError, FeedTransportError
from pylivetrack.style import IconKind

LOOKUP = {
    "t1": {"line": "5", "headsign": "Centrum", "desc": "Stadsbuss"},
    "t2": {"line": "8", "headsign": "Hyllie", "desc": "Regionbuss"},
}


@dataclass
class QueueTransport:
    payloads: list[Any] = field(default_factory=list)
    calls: int = 0

    async def fetch(self) -> Any:
        self.calls += 1
        item = self.payloads.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def _engine(*payloads: Any, config: TrackerConfig | None = None) -> tuple[TrackingEngine, RecordingSurface]:
    surface = RecordingSurface()
    engine = TrackingEngine(
        config or TrackerConfig(),
        surface,
        LOOKUP.get,
        transport=QueueTransport(list(payloads)),
        frame_clock=StepClock(),
    )
    return engine, surface


@pytest.mark.asyncio
async def test_scenario_single_vehicle_with_zero_bearing_renders_dot() -> None:
    engine, surface = _engine([{"id": "v1", "lat": 55.60, "lon": 13.00, "bearing": 0, "tripId": "t1"}])
    async with engine:
        result = await engine.poll_once()

        assert result is not None and result.ok
        assert list(surface.markers) == ["v1"]
        icon = surface.markers["v1"].icon
        assert icon.kind is IconKind.DOT
        assert icon.fill_color == "#0a7f3f"
        assert icon.text == "5"
        assert surface.labels == {}

        engine.pointer_enter("v1")
        label = surface.label_for("v1", pinned=False)
        assert label is not None
        assert label.text == "5 → Centrum\nStadsbuss"


@pytest.mark.asyncio
async def test_scenario_movement_without_bearing_derives_heading_and_animates() -> None:
    config = TrackerConfig()
    engine, surface = _engine(
        [{"id": "v1", "lat": 55.60, "lon": 13.00, "tripId": "t1"}],
        [{"id": "v1", "lat": 55.601, "lon": 13.002, "tripId": "t1"}],
        config=config,
    )
    async with engine:
        await engine.poll_once()
        await engine.poll_once()

        agent = engine.registry.get("v1")
        assert agent is not None
        assert agent.bearing is not None and 30.0 < agent.bearing < 60.0
        assert surface.markers["v1"].icon.kind is IconKind.ARROW

        handle = agent.animation
        assert handle is not None
        assert config.min_animation_ms <= handle.duration_ms <= config.max_animation_ms
        assert surface.markers["v1"].position == (55.60, 13.00)

        await handle.task
        assert surface.markers["v1"].position == (55.601, 13.002)
        assert agent.animation is None


@pytest.mark.asyncio
async def test_scenario_vanished_vehicle_is_removed_with_animation_and_label() -> None:
    engine, surface = _engine(
        [{"id": "v1", "lat": 55.60, "lon": 13.00, "tripId": "t1"}],
        [{"id": "v1", "lat": 55.65, "lon": 13.05, "tripId": "t1"}],
        [],
    )
    async with engine:
        await engine.poll_once()
        engine.click("v1")
        await engine.poll_once()

        agent = engine.registry.get("v1")
        assert agent is not None and agent.animation is not None
        handle = agent.animation

        result = await engine.poll_once()
        await asyncio.sleep(0)

        assert result is not None and result.report is not None
        assert result.report.removed == ("v1",)
        assert "v1" not in engine.registry
        assert surface.markers == {}
        assert surface.labels == {}
        assert engine.labels.pinned is None
        assert handle.task.cancelled()


@pytest.mark.asyncio
async def test_scenario_unknown_trip_renders_nothing() -> None:
    engine, surface = _engine([{"id": "v9", "lat": 55.60, "lon": 13.00, "tripId": "unknown-trip"}])
    async with engine:
        result = await engine.poll_once()

        assert result is not None and result.report is not None
        assert result.report.rendered == ()
        assert result.report.skip_counts == {SkipReason.UNKNOWN_TRIP: 1}
        assert len(engine.registry) == 0
        assert surface.calls["add_marker"] == 0


@pytest.mark.asyncio
async def test_registry_matches_enriched_identities_after_every_poll() -> None:
    engine, surface = _engine(
        [
            {"id": "a", "lat": 55.60, "lon": 13.00, "tripId": "t1"},
            {"id": "b", "lat": 55.61, "lon": 13.01, "tripId": "t2"},
            {"id": "c", "lat": "bad", "lon": 13.01, "tripId": "t2"},
        ],
        [
            {"id": "b", "lat": 55.61, "lon": 13.01, "tripId": "t2"},
            {"id": "d", "lat": 55.62, "lon": 13.02, "tripId": "t1"},
            {"id": "a", "lat": 55.60, "lon": 13.00, "tripId": "gone"},
        ],
    )
    async with engine:
        first = await engine.poll_once()
        assert first is not None and first.report is not None
        assert engine.registry.identities == set(first.report.rendered) == {"a", "b"}

        second = await engine.poll_once()
        assert second is not None and second.report is not None
        assert engine.registry.identities == set(second.report.rendered) == {"b", "d"}
        assert second.report.removed == ("a",)
        assert set(surface.markers) == {"b", "d"}


@pytest.mark.asyncio
async def test_present_vehicle_is_never_removed_and_readded() -> None:
    engine, surface = _engine(
        [{"id": "v1", "lat": 55.60, "lon": 13.00, "tripId": "t1"}],
        [{"id": "v1", "lat": 55.60, "lon": 13.00, "tripId": "t1"}],
    )
    async with engine:
        await engine.poll_once()
        await engine.poll_once()

    assert surface.calls["add_marker"] == 1
    # Removed once only, by engine shutdown.
    assert surface.calls["remove_marker"] == 1


@pytest.mark.asyncio
async def test_failed_poll_keeps_previous_display() -> None:
    engine, surface = _engine(
        [{"id": "v1", "lat": 55.60, "lon": 13.00, "tripId": "t1"}],
        FeedTransportError("HTTP 500 from feed", status_code=500),
    )
    async with engine:
        await engine.poll_once()
        result = await engine.poll_once()

        assert result is not None and not result.ok
        assert list(surface.markers) == ["v1"]
        assert "v1" in engine.registry


@pytest.mark.asyncio
async def test_duplicate_identity_in_one_snapshot_keeps_last_record() -> None:
    engine, surface = _engine(
        [
            {"id": "v1", "lat": 55.60, "lon": 13.00, "tripId": "t1"},
            {"id": "v1", "lat": 55.60, "lon": 13.00, "tripId": "t2"},
        ]
    )
    async with engine:
        await engine.poll_once()

        assert surface.calls["add_marker"] == 1
        assert surface.markers["v1"].icon.text == "8"


@pytest.mark.asyncio
async def test_hidden_engine_does_not_poll() -> None:
    engine, _ = _engine([])
    async with engine:
        engine.set_visible(False)
        assert await engine.poll_once() is None


def test_poller_requires_started_engine_without_transport() -> None:
    engine = TrackingEngine(TrackerConfig(), RecordingSurface(), LOOKUP.get)
    with pytest.raises(EngineNotStartedError):
        engine.start()
