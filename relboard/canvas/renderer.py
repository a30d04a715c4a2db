"""
Canvas Renderer - draws a composed Scene with NiceGUI elements.

Person cards are absolutely positioned divs inside a transformed viewport
container; edges are one SVG document regenerated from the scene. Cards are
kept between renders and only restyled, so a drag move touches one card's
left/top and the edge markup instead of rebuilding the page.

Every element carries a `data-surface` attribute. The canvas root reads the
closest one from the event target to tell background presses (which pan)
from presses on cards and controls.
"""

import html
import logging
from typing import Callable, Dict, Optional

from nicegui import ui

from relboard.canvas.connection_types import CONNECTION_TYPES, TYPE_STYLES
from relboard.canvas.constants import BOX_WIDTH, BOX_HEIGHT
from relboard.canvas.scene import Scene, PersonView
from relboard.canvas.viewport import ViewportState

logger = logging.getLogger(__name__)

# Resolves the surface and person under the pointer in the browser
POINTER_JS = '''(e) => {
    const r = e.currentTarget.getBoundingClientRect();
    const s = e.target.closest ? e.target.closest('[data-surface]') : null;
    const p = e.target.closest ? e.target.closest('[data-person-id]') : null;
    emit({
        x: e.clientX - r.left,
        y: e.clientY - r.top,
        button: e.button,
        surface: s ? s.dataset.surface : null,
        person: p ? p.dataset.personId : null,
    });
}'''

WHEEL_JS = '''(e) => {
    e.preventDefault();
    const r = e.currentTarget.getBoundingClientRect();
    emit({x: e.clientX - r.left, y: e.clientY - r.top, deltaY: e.deltaY});
}'''

CARD_CLASSES = (
    'absolute z-10 cursor-grab active:cursor-grabbing rounded-xl border border-stone-200/60 '
    'bg-white p-4 shadow-md shadow-stone-200/60 select-none'
)
SELECTED_CLASSES = 'ring-2 ring-rose-400 ring-offset-2'
DRAGGING_CLASSES = 'scale-105 rotate-2 opacity-60'


def gradient_defs() -> str:
    stops = []
    for connection_type in CONNECTION_TYPES:
        style = TYPE_STYLES[connection_type]
        stops.append(
            f'<linearGradient id="{style.gradient_id}" x1="0%" y1="0%" x2="100%" y2="0%">'
            f'<stop offset="0%" style="stop-color:{style.start_color};stop-opacity:{style.opacity}" />'
            f'<stop offset="100%" style="stop-color:{style.end_color};stop-opacity:{style.opacity}" />'
            f'</linearGradient>'
        )
    return '<defs>' + ''.join(stops) + '</defs>'


def edges_svg(scene: Scene) -> str:
    """SVG markup for every edge of the scene, in world coordinates."""
    paths = []
    for edge in scene.edges:
        paths.append(
            f'<path d="{edge.path}" stroke="url(#{edge.style.gradient_id})" '
            f'stroke-width="{edge.stroke_width:g}" fill="none" stroke-linecap="round" '
            f'data-connection-id="{html.escape(edge.id)}" '
            f'style="transition: stroke-width 200ms" />'
        )
    return (
        '<svg width="1" height="1" style="overflow: visible; position: absolute; left: 0; top: 0;">'
        + gradient_defs() + ''.join(paths) + '</svg>'
    )


class PersonCard:
    """One person card; rebuilt only when the person first appears."""

    def __init__(self, view: PersonView,
                 on_rename: Callable[[str, str], None],
                 on_delete: Callable[[str, str], None]):
        self.person_id = view.id
        self._name = view.name
        self._on_rename = on_rename
        self._on_delete = on_delete
        self._selected = False
        self._dragging = False

        self.element = ui.element('div').classes(CARD_CLASSES).style(
            f'width: {BOX_WIDTH:g}px; min-height: {BOX_HEIGHT:g}px;'
        ).props(f'data-surface=person data-person-id="{view.id}"')

        with self.element:
            with ui.column().classes('gap-2'):
                self.name_label = ui.label(view.name).classes(
                    'cursor-text font-serif text-sm leading-tight font-medium text-stone-800 '
                    'hover:text-blue-600'
                )
                self.name_label.on('dblclick', self._start_edit)
                self.name_input = ui.input(value=view.name).props(
                    'dense outlined data-surface=control'
                ).classes('text-sm')
                self.name_input.set_visibility(False)
                self.name_input.on('keydown.enter', self._save_edit)
                self.name_input.on('blur', self._save_edit)
                ui.button('× Delete', on_click=lambda: self._on_delete(self.person_id, self._name)) \
                    .props('flat dense size=sm no-caps data-surface=control') \
                    .classes('self-start text-xs text-stone-400 opacity-60 hover:text-red-500')
        self.update(view)

    def _start_edit(self):
        self.name_input.value = self._name
        self.name_label.set_visibility(False)
        self.name_input.set_visibility(True)
        self.name_input.run_method('focus')

    def _save_edit(self):
        if not self.name_input.visible:
            return
        self.name_input.set_visibility(False)
        self.name_label.set_visibility(True)
        return self._on_rename(self.person_id, self.name_input.value or '')

    def update(self, view: PersonView) -> None:
        self.element.style(f'left: {view.x:.2f}px; top: {view.y:.2f}px;')
        if view.name != self._name:
            self._name = view.name
            self.name_label.set_text(view.name)
        if view.is_selected != self._selected:
            self._selected = view.is_selected
            if view.is_selected:
                self.element.classes(add=SELECTED_CLASSES)
            else:
                self.element.classes(remove=SELECTED_CLASSES)
        if view.is_dragging != self._dragging:
            self._dragging = view.is_dragging
            if view.is_dragging:
                self.element.classes(add=DRAGGING_CLASSES)
            else:
                self.element.classes(remove=DRAGGING_CLASSES)

    def delete(self) -> None:
        self.element.delete()


class CanvasRenderer:
    """Owns the canvas DOM: viewport container, edge layer and person cards."""

    def __init__(self, root: ui.element,
                 on_rename: Callable[[str, str], None],
                 on_delete: Callable[[str, str], None]):
        self.root = root
        self._on_rename = on_rename
        self._on_delete = on_delete
        self._cards: Dict[str, PersonCard] = {}
        self._last_svg: Optional[str] = None

        with root:
            self.loading = ui.label('Loading canvas...').classes(
                'absolute inset-0 flex items-center justify-center animate-pulse '
                'text-sm tracking-wide text-stone-400'
            )
            self.viewport_el = ui.element('div').classes('viewport-container absolute inset-0') \
                .style('transform-origin: 0 0; will-change: transform;') \
                .props('data-surface=viewport')
            with self.viewport_el:
                self.edges_el = ui.html('', sanitize=False).classes('absolute') \
                    .style('left: 0; top: 0; overflow: visible; pointer-events: none;') \
                    .props('data-surface=edges')
                self.people_layer = ui.element('div').classes('absolute') \
                    .style('left: 0; top: 0;')

    def set_loaded(self, loaded: bool) -> None:
        self.loading.set_visibility(not loaded)

    def apply_viewport(self, state: ViewportState) -> None:
        self.viewport_el.style(f'transform: {state.css_transform()};')

    def set_cursor(self, cursor: str) -> None:
        self.root.style(f'cursor: {cursor};')

    def render(self, scene: Scene) -> None:
        """Bring the DOM in line with the scene."""
        seen = set()
        for view in scene.people:
            seen.add(view.id)
            card = self._cards.get(view.id)
            if card is None:
                with self.people_layer:
                    self._cards[view.id] = PersonCard(view, self._on_rename, self._on_delete)
            else:
                card.update(view)

        for person_id in [pid for pid in self._cards if pid not in seen]:
            self._cards.pop(person_id).delete()

        svg = edges_svg(scene)
        if svg != self._last_svg:
            self._last_svg = svg
            self.edges_el.set_content(svg)


def render_legend() -> None:
    """Colour key for the connection types."""
    with ui.element('div').classes(
        'absolute bottom-4 left-4 z-20 rounded-lg border border-stone-200/60 bg-white/80 '
        'px-3 py-2 shadow-sm backdrop-blur-sm'
    ).props('data-surface=chrome'):
        with ui.column().classes('gap-1.5 text-xs text-stone-600'):
            for connection_type in CONNECTION_TYPES:
                style = TYPE_STYLES[connection_type]
                with ui.row().classes('items-center gap-2'):
                    ui.element('div').classes('h-0.5 w-6 rounded-full').style(
                        f'background: linear-gradient(to right, {style.start_color}, {style.end_color});'
                    )
                    ui.label(style.label)
