"""
Scene composition - merges remote snapshots with local optimistic overlays.

`compose_scene` is pure: it is called on every remote update and every overlay
change, and never mutates the snapshots it is given.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from relboard.canvas.connection_types import style_for, stroke_width, TypeStyle
from relboard.canvas.constants import EDGE_HIT_TOLERANCE
from relboard.canvas.geometry import (
    Point,
    box_center,
    control_point,
    distance_to_curve,
    point_in_box,
    quadratic_path,
)
from relboard.models import Connection, Person


@dataclass(frozen=True)
class LocalOverlay:
    """Local, unconfirmed state layered over the remote snapshot."""
    drag_positions: Mapping[str, Point] = field(default_factory=dict)
    pending_types: Mapping[str, str] = field(default_factory=dict)
    pulsing: frozenset = frozenset()
    selected_id: Optional[str] = None
    hovered_connection_id: Optional[str] = None


@dataclass(frozen=True)
class PersonView:
    id: str
    name: str
    x: float
    y: float
    is_selected: bool = False
    is_dragging: bool = False


@dataclass(frozen=True)
class EdgeView:
    id: str
    person_a_id: str
    person_b_id: str
    connection_type: str
    start: Point
    control: Point
    end: Point
    path: str
    style: TypeStyle
    stroke_width: float
    is_pulsing: bool = False
    is_hovered: bool = False


@dataclass(frozen=True)
class Scene:
    people: Tuple[PersonView, ...] = ()
    edges: Tuple[EdgeView, ...] = ()

    def person(self, person_id: str) -> Optional[PersonView]:
        for view in self.people:
            if view.id == person_id:
                return view
        return None

    def edge(self, connection_id: str) -> Optional[EdgeView]:
        for view in self.edges:
            if view.id == connection_id:
                return view
        return None


def resolve_position(person: Person, drag_positions: Mapping[str, Point]) -> Point:
    """The dragged person's optimistic position wins over the remote one."""
    return drag_positions.get(person.id, person.position)


def compose_scene(people: Sequence[Person], connections: Sequence[Connection],
                  overlay: Optional[LocalOverlay] = None) -> Scene:
    overlay = overlay or LocalOverlay()
    positions: Dict[str, Point] = {}
    person_views = []
    for person in people:
        x, y = resolve_position(person, overlay.drag_positions)
        positions[person.id] = (x, y)
        person_views.append(PersonView(
            id=person.id,
            name=person.name,
            x=x,
            y=y,
            is_selected=person.id == overlay.selected_id,
            is_dragging=person.id in overlay.drag_positions,
        ))

    edge_views = []
    for connection in connections:
        pos_a = positions.get(connection.person_a_id)
        pos_b = positions.get(connection.person_b_id)
        if pos_a is None or pos_b is None:
            continue

        start = box_center(*pos_a)
        end = box_center(*pos_b)
        control = control_point(start, end)
        effective_type = overlay.pending_types.get(connection.id, connection.connection_type)
        is_pulsing = connection.id in overlay.pulsing
        is_hovered = connection.id == overlay.hovered_connection_id
        edge_views.append(EdgeView(
            id=connection.id,
            person_a_id=connection.person_a_id,
            person_b_id=connection.person_b_id,
            connection_type=effective_type,
            start=start,
            control=control,
            end=end,
            path=quadratic_path(start, control, end),
            style=style_for(effective_type),
            stroke_width=stroke_width(is_pulsing, is_hovered),
            is_pulsing=is_pulsing,
            is_hovered=is_hovered,
        ))

    return Scene(people=tuple(person_views), edges=tuple(edge_views))


def reconcile_pending_types(pending: Mapping[str, str], connections: Iterable[Connection]) -> Dict[str, str]:
    """
    Drop pending type overlays that the remote snapshot has caught up with,
    or whose connection no longer exists.
    """
    remote = {c.id: c.connection_type for c in connections}
    return {
        cid: ctype for cid, ctype in pending.items()
        if cid in remote and remote[cid] != ctype
    }


def hit_test_person(scene: Scene, world_point: Point) -> Optional[str]:
    """Topmost (last drawn) person card containing the point."""
    for view in reversed(scene.people):
        if point_in_box(world_point, view.x, view.y):
            return view.id
    return None


def hit_test_edge(scene: Scene, world_point: Point, tolerance: float = EDGE_HIT_TOLERANCE) -> Optional[str]:
    """Closest edge within `tolerance` world units of the point."""
    best_id = None
    best_dist = float("inf")
    for view in scene.edges:
        dist = distance_to_curve(world_point, view.start, view.control, view.end)
        if dist <= tolerance and dist < best_dist:
            best_dist = dist
            best_id = view.id
    return best_id
