"""
Drag Controller - owns the in-progress drag of a person card.

The drag session captures the pointer origin (screen), the person's origin
(world) and the viewport scale at press time. Pointer moves produce an
optimistic display position without touching the store. On release a single
absolute position is written, and the overlay is only cleared after that
write has completed, so the card never snaps back to its stale remote position.

A press that never travels DRAG_THRESHOLD pixels is reported as a click.
"""

import inspect
import logging
import math
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Optional, Union

from relboard.canvas.constants import DRAG_THRESHOLD, BUTTON_LEFT
from relboard.canvas.geometry import Point

logger = logging.getLogger(__name__)

CommitFn = Callable[[str, float, float], Union[Awaitable[None], None]]


@dataclass
class DragSession:
    person_id: str
    origin_screen: Point
    origin_world: Point
    scale_at_start: float
    pointer: Point
    activated: bool = False

    @property
    def world_delta(self) -> Point:
        return (
            (self.pointer[0] - self.origin_screen[0]) / self.scale_at_start,
            (self.pointer[1] - self.origin_screen[1]) / self.scale_at_start,
        )

    @property
    def display_position(self) -> Point:
        dx, dy = self.world_delta
        return (self.origin_world[0] + dx, self.origin_world[1] + dy)

    @property
    def screen_distance(self) -> float:
        return math.hypot(self.pointer[0] - self.origin_screen[0],
                          self.pointer[1] - self.origin_screen[1])


@dataclass(frozen=True)
class DragResult:
    """Outcome of a released press on a person card."""
    person_id: str
    was_click: bool
    position: Optional[Point] = None


class DragController:
    """
    Tracks the drag session under the pointer plus the sessions whose
    position writes are still in flight. Both feed the overlay, so a new
    press never hides a card that is still waiting for its commit.
    """

    def __init__(self, threshold: float = DRAG_THRESHOLD):
        self._threshold = threshold
        self._session: Optional[DragSession] = None
        self._committing: Dict[str, DragSession] = {}

    @property
    def session(self) -> Optional[DragSession]:
        """The press currently under the pointer, if any."""
        return self._session

    @property
    def is_active(self) -> bool:
        """True once the press has turned into a real drag."""
        return self._session is not None and self._session.activated

    def begin_drag(self, person_id: str, pointer: Point, origin_world: Point,
                   scale: float, button: int = BUTTON_LEFT) -> Optional[DragSession]:
        """Capture a drag session. Only the primary button starts a drag."""
        if button != BUTTON_LEFT:
            return None
        if self._committing:
            logger.debug(f"Starting drag on {person_id} while {len(self._committing)} commit(s) in flight")
        self._session = DragSession(
            person_id=person_id,
            origin_screen=(float(pointer[0]), float(pointer[1])),
            origin_world=(float(origin_world[0]), float(origin_world[1])),
            scale_at_start=float(scale),
            pointer=(float(pointer[0]), float(pointer[1])),
        )
        return self._session

    def move(self, pointer: Point) -> Optional[Point]:
        """
        Update the pointer. Returns the optimistic display position once the
        press has crossed the drag threshold, otherwise None.
        """
        session = self._session
        if session is None:
            return None
        session.pointer = (float(pointer[0]), float(pointer[1]))
        if not session.activated and session.screen_distance >= self._threshold:
            session.activated = True
        return session.display_position if session.activated else None

    def overlay(self) -> Dict[str, Point]:
        """Optimistic positions to draw instead of the remote ones."""
        positions = {pid: s.display_position for pid, s in self._committing.items()}
        session = self._session
        if session is not None and session.activated:
            positions[session.person_id] = session.display_position
        return positions

    def cancel(self) -> None:
        """Discard the press under the pointer without writing (e.g. the person was deleted)."""
        self._session = None

    async def end_drag(self, commit: CommitFn, pointer: Optional[Point] = None) -> Optional[DragResult]:
        """
        Finish the press. A press that never activated is a click: the
        session is dropped and nothing is written. A real drag awaits
        `commit(person_id, x, y)` with the absolute final position and clears
        its overlay entry only afterwards.
        """
        session = self._session
        if session is None:
            return None
        if pointer is not None:
            session.pointer = (float(pointer[0]), float(pointer[1]))
            if not session.activated and session.screen_distance >= self._threshold:
                session.activated = True

        self._session = None
        if not session.activated:
            return DragResult(person_id=session.person_id, was_click=True)

        final_x, final_y = session.display_position
        self._committing[session.person_id] = session
        try:
            result = commit(session.person_id, final_x, final_y)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(f"Failed to commit position for {session.person_id}: {e}")
            raise
        finally:
            # A later drag of the same person may have replaced this entry
            if self._committing.get(session.person_id) is session:
                del self._committing[session.person_id]
        return DragResult(person_id=session.person_id, was_click=False, position=(final_x, final_y))
