from __future__ import annotations

from dataclasses import dataclass

from conftest import make_state

from pylivetrack.labels import LabelStateMachine, hover_text, pinned_text
from pylivetrack.models.agent import EnrichedAgentState, LatLng
from pylivetrack.surface import RecordingSurface


@dataclass
class _Target:
    state: EnrichedAgentState
    displayed_position: LatLng


def _machine() -> tuple[LabelStateMachine, RecordingSurface]:
    surface = RecordingSurface()
    targets = {
        identity: _Target(make_state(identity, lat=lat), LatLng(lat, 13.0))
        for identity, lat in (("a", 55.60), ("b", 55.61))
    }
    return LabelStateMachine(surface, targets.get), surface


def test_hover_shows_single_label_and_moves_between_agents() -> None:
    labels, surface = _machine()

    labels.pointer_enter("a")
    assert labels.hovered == "a"
    assert set(surface.labels) == {("a", False)}

    labels.pointer_enter("b")
    assert labels.hovered == "b"
    assert set(surface.labels) == {("b", False)}


def test_leave_hides_hover() -> None:
    labels, surface = _machine()
    labels.pointer_enter("a")
    labels.pointer_leave("a")

    assert labels.hovered is None
    assert surface.labels == {}
    assert not labels.pointer_over_agent


def test_late_leave_from_previous_agent_keeps_current_hover() -> None:
    labels, surface = _machine()
    labels.pointer_enter("a")
    labels.pointer_enter("b")
    labels.pointer_leave("a")

    assert labels.hovered == "b"
    assert labels.pointer_over_agent
    assert set(surface.labels) == {("b", False)}


def test_click_converts_hover_into_single_pinned_label() -> None:
    labels, surface = _machine()
    labels.pointer_enter("a")
    labels.click("a")

    assert labels.pinned == "a"
    assert labels.hovered is None
    assert set(surface.labels) == {("a", True)}


def test_pinning_one_agent_clears_hover_on_another() -> None:
    labels, surface = _machine()
    labels.pointer_enter("b")
    labels.click("a")

    assert labels.pinned == "a"
    assert labels.hovered is None
    assert set(surface.labels) == {("a", True)}


def test_pinning_replaces_previous_pin() -> None:
    labels, surface = _machine()
    labels.click("a")
    labels.click("b")

    assert labels.pinned == "b"
    assert set(surface.labels) == {("b", True)}


def test_second_click_unpins() -> None:
    labels, surface = _machine()
    labels.click("a")
    labels.click("a")

    assert labels.pinned is None
    assert surface.labels == {}


def test_pinned_agent_ignores_hover_and_leave() -> None:
    labels, surface = _machine()
    labels.click("a")
    labels.pointer_enter("a")
    assert labels.hovered is None

    labels.pointer_leave("a")
    assert labels.pinned == "a"
    assert set(surface.labels) == {("a", True)}


def test_hover_other_agent_while_one_is_pinned() -> None:
    labels, surface = _machine()
    labels.click("a")
    labels.pointer_enter("b")

    assert set(surface.labels) == {("a", True), ("b", False)}


def test_background_click_clears_everything() -> None:
    labels, surface = _machine()
    labels.click("a")
    labels.pointer_enter("b")
    labels.background_click()

    assert labels.pinned is None
    assert labels.hovered is None
    assert not labels.pointer_over_agent
    assert surface.labels == {}


def test_pointer_move_suppressed_while_over_agent() -> None:
    labels, surface = _machine()
    labels.pointer_enter("a")
    labels.pointer_moved(over_agent=True)

    assert labels.hovered == "a"
    assert set(surface.labels) == {("a", False)}


def test_pointer_move_off_agents_hides_stray_hover() -> None:
    labels, surface = _machine()
    labels.pointer_enter("a")
    labels.pointer_moved(over_agent=False)

    assert labels.hovered is None
    assert not labels.pointer_over_agent
    assert surface.labels == {}


def test_pointer_move_without_hit_test_recovers_from_missed_leave() -> None:
    labels, surface = _machine()
    labels.pointer_enter("a")
    assert labels.pointer_over_agent

    # The marker slid away and no leave event arrived.
    labels.pointer_moved()

    assert labels.hovered is None
    assert not labels.pointer_over_agent
    assert surface.labels == {}


def test_pointer_move_keeps_pinned_label() -> None:
    labels, surface = _machine()
    labels.click("a")
    labels.pointer_moved(over_agent=False)

    assert labels.pinned == "a"
    assert set(surface.labels) == {("a", True)}


def test_agent_removed_clears_hover_and_pin() -> None:
    labels, surface = _machine()
    labels.pointer_enter("a")
    labels.agent_removed("a")
    assert labels.hovered is None

    labels.click("b")
    labels.agent_removed("b")
    assert labels.pinned is None
    assert surface.labels == {}


def test_follow_moves_only_owned_labels() -> None:
    labels, surface = _machine()
    labels.click("a")
    labels.pointer_enter("b")

    labels.follow("a", LatLng(55.7, 13.1))

    pinned = surface.label_for("a", pinned=True)
    hovered = surface.label_for("b", pinned=False)
    assert pinned is not None and pinned.position == (55.7, 13.1)
    assert hovered is not None and hovered.position == (55.61, 13.0)


def test_unknown_agent_gets_no_label() -> None:
    labels, surface = _machine()
    labels.pointer_enter("ghost")
    labels.click("ghost")

    assert labels.hovered is None
    assert labels.pinned is None
    assert surface.labels == {}


def test_label_text() -> None:
    state = make_state(speed=8.25, route_id="r1")
    assert hover_text(state) == "5 → Centrum\nStadsbuss"
    text = pinned_text(state)
    assert "id: v1" in text
    assert "tripId: t1" in text
    assert "routeId: r1" in text
    assert "speed: 8.2" in text or "speed: 8.3" in text
    assert "bearing: -" in text
    assert "time: -" in text
