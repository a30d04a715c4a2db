"""Tests for scene composition and hit testing."""

import pytest

from relboard.canvas.geometry import box_center
from relboard.canvas.scene import (
    LocalOverlay,
    compose_scene,
    hit_test_edge,
    hit_test_person,
    reconcile_pending_types,
)
from relboard.models import Connection, Person

ALICE = Person("a", "Alice", 0, 0)
BOB = Person("b", "Bob", 200, 0)
LINK = Connection("c1", "a", "b", "kissed")


def test_remote_positions_without_overlay():
    scene = compose_scene([ALICE, BOB], [LINK])
    assert scene.person("a").x == 0
    edge = scene.edge("c1")
    assert edge.start == box_center(0, 0)
    assert edge.end == box_center(200, 0)
    assert edge.style.label == "Kissed"


def test_drag_overlay_moves_card_and_edge():
    overlay = LocalOverlay(drag_positions={"a": (0, 100)})
    scene = compose_scene([ALICE, BOB], [LINK], overlay)
    assert (scene.person("a").x, scene.person("a").y) == (0, 100)
    assert scene.person("a").is_dragging
    assert not scene.person("b").is_dragging
    assert scene.edge("c1").start == box_center(0, 100)


def test_inputs_are_not_mutated():
    people = [ALICE, BOB]
    compose_scene(people, [LINK], LocalOverlay(drag_positions={"a": (5, 5)}))
    assert people == [ALICE, BOB]
    assert ALICE.position == (0, 0)


def test_edges_with_missing_endpoints_are_skipped():
    dangling = Connection("c2", "a", "ghost", "dated")
    scene = compose_scene([ALICE, BOB], [LINK, dangling])
    assert [e.id for e in scene.edges] == ["c1"]


def test_pending_type_overrides_remote_type():
    overlay = LocalOverlay(pending_types={"c1": "talked"}, pulsing=frozenset({"c1"}))
    edge = compose_scene([ALICE, BOB], [LINK], overlay).edge("c1")
    assert edge.connection_type == "talked"
    assert edge.style.label == "Talked"
    assert edge.is_pulsing
    assert edge.stroke_width == 10


def test_selected_flag():
    scene = compose_scene([ALICE, BOB], [], LocalOverlay(selected_id="b"))
    assert scene.person("b").is_selected
    assert not scene.person("a").is_selected


def test_reconcile_drops_confirmed_and_deleted():
    connections = [Connection("c1", "a", "b", "fucked"), Connection("c2", "a", "c", "kissed")]
    pending = {"c1": "fucked", "c2": "talked", "gone": "dated"}
    assert reconcile_pending_types(pending, connections) == {"c2": "talked"}


class TestHitTesting:

    def test_hit_edge_at_curve_middle(self):
        scene = compose_scene([ALICE, BOB], [LINK])
        # centres (64, 40) -> (264, 40), control (164, 100), midpoint (164, 70)
        assert hit_test_edge(scene, (164, 70)) == "c1"
        assert hit_test_edge(scene, (164, 76)) == "c1"

    def test_miss_edge_outside_tolerance(self):
        scene = compose_scene([ALICE, BOB], [LINK])
        assert hit_test_edge(scene, (164, 200)) is None

    def test_hit_person_prefers_topmost(self):
        overlap = Person("z", "Zed", 50, 0)
        scene = compose_scene([ALICE, overlap], [])
        assert hit_test_person(scene, (60, 10)) == "z"
        assert hit_test_person(scene, (10, 10)) == "a"
        assert hit_test_person(scene, (500, 500)) is None
