"""
Canvas Handlers - routes pointer and wheel events into the controllers.

CanvasSession is created once per page. It owns the viewport, drag and
selection controllers plus the local overlays (pending type changes,
pulses, hovered edge), listens to the live query, and turns UI intents into
board writes. Writes are fire-and-forget except the drag commit, which is
awaited before the drag overlay is cleared.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from nicegui import background_tasks, run, ui

from relboard.board_actions import BoardActions
from relboard.canvas.connection_types import PulseTracker, advance
from relboard.canvas.drag import DragController
from relboard.canvas.geometry import Point
from relboard.canvas.scene import (
    LocalOverlay,
    Scene,
    compose_scene,
    hit_test_edge,
    reconcile_pending_types,
)
from relboard.canvas.selection import SelectionMachine
from relboard.canvas.viewport import ViewportController
from relboard.live_query import LiveQuery

logger = logging.getLogger(__name__)


def _event_args(event) -> Dict[str, Any]:
    raw = event.args if hasattr(event, 'args') else event
    return raw if isinstance(raw, dict) else {}


def _pointer(args: Dict[str, Any]) -> Point:
    return (float(args.get('x', 0) or 0), float(args.get('y', 0) or 0))


class CanvasSession:
    """Interaction state and event handlers for one board page."""

    def __init__(
        self,
        live_query: LiveQuery,
        actions: BoardActions,
        run_io: Optional[Callable[..., Awaitable[Any]]] = None,
        spawn: Optional[Callable[[Awaitable[Any]], Any]] = None,
        notify: Optional[Callable[..., Any]] = None,
        schedule: Optional[Callable[[float, Callable[[], None]], Any]] = None,
        pulses: Optional[PulseTracker] = None,
    ):
        self.live = live_query
        self.actions = actions
        self.viewport = ViewportController()
        self.drag = DragController()
        self.selection = SelectionMachine()
        self.pulses = pulses or PulseTracker()
        self.pending_types: Dict[str, str] = {}
        self.hovered_connection_id: Optional[str] = None
        self.renderer = None
        self._on_selection_change: Optional[Callable[[Optional[str]], None]] = None

        self._run_io = run_io or run.io_bound
        self._spawn = spawn or background_tasks.create
        self._notify = notify or ui.notify
        self._schedule = schedule or (lambda delay, fn: ui.timer(delay, fn, once=True))

        self.live.on('snapshot', self._on_snapshot)
        self.live.on('error', self._on_live_error)

    def attach_renderer(self, renderer) -> None:
        self.renderer = renderer
        renderer.set_loaded(self.live.loaded)
        renderer.apply_viewport(self.viewport.state)
        self.redraw()

    def set_on_selection_change(self, callback: Callable[[Optional[str]], None]) -> None:
        self._on_selection_change = callback

    # --- Scene ---

    def overlay(self) -> LocalOverlay:
        return LocalOverlay(
            drag_positions=self.drag.overlay(),
            pending_types=dict(self.pending_types),
            pulsing=self.pulses.active(),
            selected_id=self.selection.selected,
            hovered_connection_id=self.hovered_connection_id,
        )

    def scene(self) -> Scene:
        return compose_scene(self.live.people, self.live.connections, self.overlay())

    def redraw(self) -> None:
        if self.renderer is not None:
            self.renderer.render(self.scene())
        if self._on_selection_change:
            self._on_selection_change(self.selection.selected)

    def _on_snapshot(self, snapshot) -> None:
        people, connections = snapshot
        people_ids = {p.id for p in people}
        self.selection.observe_people(people_ids)

        session = self.drag.session
        if session is not None and session.person_id not in people_ids:
            logger.info(f"Dragged person {session.person_id} disappeared, cancelling drag")
            self.drag.cancel()

        self.pending_types = reconcile_pending_types(self.pending_types, connections)
        if self.hovered_connection_id and self.live.connection(self.hovered_connection_id) is None:
            self.hovered_connection_id = None

        if self.renderer is not None:
            self.renderer.set_loaded(True)
        self.redraw()

    def _on_live_error(self, error) -> None:
        self._notify(f"Could not load the board: {error['message']}", type='negative')

    # --- Writes ---

    async def _write(self, description: str, fn: Callable, *args) -> Any:
        try:
            return await self._run_io(fn, *args)
        except Exception as e:
            logger.error(f"Failed to {description}: {e}")
            self._notify(f'Could not {description}: {e}', type='negative')
            return None

    def _fire(self, description: str, fn: Callable, *args) -> None:
        self._spawn(self._write(description, fn, *args))

    async def _commit_position(self, person_id: str, x: float, y: float) -> None:
        """Write the final position and wait until the snapshot reflects it."""
        await self._run_io(self.actions.commit_position, person_id, x, y)
        await self.live.refresh_async()

    # --- Pointer events ---

    def handle_pointer_down(self, event) -> None:
        args = _event_args(event)
        pointer = _pointer(args)
        button = int(args.get('button', 0) or 0)
        surface = args.get('surface')
        person_id = args.get('person')

        if surface == 'person' and person_id:
            person = self.live.person(person_id)
            if person is None:
                return
            origin = self.drag.overlay().get(person_id, person.position)
            self.drag.begin_drag(person_id, pointer, origin, self.viewport.scale, button)
            return

        if self.viewport.begin_pan(pointer[0], pointer[1], button, surface):
            if self.renderer is not None:
                self.renderer.set_cursor('grabbing')

    def handle_pointer_move(self, event) -> None:
        pointer = _pointer(_event_args(event))
        session = self.drag.session

        if session is not None:
            was_active = self.drag.is_active
            if self.drag.move(pointer) is not None or was_active:
                self.redraw()
            return

        if self.viewport.is_panning:
            state = self.viewport.move_pan(*pointer)
            if state is not None and self.renderer is not None:
                self.renderer.apply_viewport(state)
            return

        hovered = hit_test_edge(self.scene(), self.viewport.to_world(pointer))
        if hovered != self.hovered_connection_id:
            self.hovered_connection_id = hovered
            if self.renderer is not None:
                self.renderer.set_cursor('pointer' if hovered else 'grab')
            self.redraw()

    async def handle_pointer_up(self, event) -> None:
        pointer = _pointer(_event_args(event))
        session = self.drag.session

        if session is not None:
            try:
                result = await self.drag.end_drag(self._commit_position, pointer)
            except Exception as e:
                self._notify(f'Could not move person: {e}', type='negative')
                self.redraw()
                return
            if result is None:
                return
            if result.was_click:
                self.click_person(result.person_id)
            else:
                self.redraw()
            return

        if self.viewport.is_panning:
            moved = self.viewport.end_pan()
            if self.renderer is not None:
                self.renderer.set_cursor('grab')
            if not moved:
                self.click_background(pointer)

    async def handle_pointer_leave(self, event) -> None:
        """Treat leaving the canvas as a release so no gesture gets stuck."""
        if self.drag.session is not None or self.viewport.is_panning:
            if self.viewport.is_panning:
                self.viewport.end_pan()
                if self.renderer is not None:
                    self.renderer.set_cursor('grab')
                return
            await self.handle_pointer_up(event)

    def handle_wheel(self, event) -> None:
        args = _event_args(event)
        x, y = _pointer(args)
        state = self.viewport.zoom_at(x, y, float(args.get('deltaY', 0) or 0))
        if self.renderer is not None:
            self.renderer.apply_viewport(state)

    def reset_view(self) -> None:
        self.viewport.reset()
        if self.renderer is not None:
            self.renderer.apply_viewport(self.viewport.state)

    # --- Clicks ---

    def click_person(self, person_id: str) -> None:
        people_ids = [p.id for p in self.live.people]
        request = self.selection.click_person(person_id, self.live.connections, people_ids)
        self.redraw()
        if request is not None:
            self._fire(
                'connect people',
                self.actions.connect,
                request.person_a_id,
                request.person_b_id,
                request.connection_type,
                list(self.live.connections),
            )

    def click_background(self, pointer: Point) -> None:
        edge_id = hit_test_edge(self.scene(), self.viewport.to_world(pointer))
        if edge_id is not None:
            self.cycle_connection(edge_id)
            return
        self.selection.click_background()
        self.redraw()

    def cycle_connection(self, connection_id: str) -> Optional[str]:
        """Advance a connection's type: pulse and show it now, write in the background."""
        connection = self.live.connection(connection_id)
        if connection is None:
            return None
        current = self.pending_types.get(connection_id, connection.connection_type)
        new_type = advance(current)
        self.pending_types[connection_id] = new_type
        self.pulses.pulse(connection_id)
        self.redraw()
        self._schedule(self.pulses.duration, self._expire_pulses)
        self._spawn(self._write_type(connection.with_type(current), new_type))
        return new_type

    async def _write_type(self, connection, new_type: str) -> None:
        written = await self._write('change connection type', self.actions.advance_connection_type, connection)
        if written is None and self.pending_types.get(connection.id) == new_type:
            self.pending_types.pop(connection.id, None)
            self.redraw()

    def _expire_pulses(self) -> None:
        if self.pulses.expire():
            self.redraw()

    # --- Toolbar and card actions ---

    async def add_person(self, name: str) -> Optional[str]:
        person_id = await self._write('add person', self.actions.add_person, name)
        if person_id:
            await self.live.refresh_async()
        return person_id

    async def rename_person(self, person_id: str, name: str) -> bool:
        renamed = await self._write('rename person', self.actions.rename_person, person_id, name)
        if renamed:
            await self.live.refresh_async()
        return bool(renamed)

    async def delete_person(self, person_id: str) -> None:
        if self.selection.is_selected(person_id):
            self.selection.clear()
        session = self.drag.session
        if session is not None and session.person_id == person_id:
            self.drag.cancel()
        await self._write('delete person', self.actions.delete_person, person_id)
        await self.live.refresh_async()
