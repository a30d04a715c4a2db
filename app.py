"""
Main NiceGUI application for RelBoard.

Renders the relationship board: a pannable, zoomable canvas of person cards
joined by curved, colour-coded connection lines. Storage is chosen by
configuration (local JSON files or Supabase) and every open page keeps a live
query so changes made by other clients appear without a reload.
"""

import logging
import sys

from dotenv import load_dotenv
from nicegui import ui

load_dotenv()

from relboard import config
from relboard.board_actions import BoardActions
from relboard.canvas.handlers import CanvasSession
from relboard.canvas.renderer import CanvasRenderer, POINTER_JS, WHEEL_JS, render_legend
from relboard.live_query import LiveQuery
from relboard.paths import ensure_db_dir
from relboard.storage import create_backend

logging.basicConfig(
    level=getattr(logging, config.get_log_level().upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

# Ensure required directories exist on startup
ensure_db_dir()

# Global Styles
ui.add_head_html('''
    <style>
        body { margin: 0; padding: 0; overflow: hidden; }
        .relboard-grid {
            background-image: radial-gradient(circle, #d6d3d1 1px, transparent 1px);
            background-size: 24px 24px;
        }
    </style>
''', shared=True)


def confirm_delete_dialog(name: str, on_confirm) -> ui.dialog:
    """Ask before deleting a person and their connections."""
    with ui.dialog() as dialog, ui.card().classes('w-80 p-6'):
        ui.label(f'Delete {name}?').classes('text-lg font-serif text-stone-800')
        ui.label('Their connections will be removed too.').classes('text-sm text-stone-500')
        with ui.row().classes('w-full justify-end gap-2 mt-4'):
            ui.button('Cancel', on_click=dialog.close).props('flat no-caps')

            async def do_delete():
                dialog.close()
                await on_confirm()

            ui.button('Delete', on_click=do_delete).props('color=negative no-caps')
    dialog.open()
    return dialog


# UI Construction - encapsulated in page function to avoid global state issues
@ui.page('/')
def main_page():
    try:
        backend = create_backend()
    except ValueError as e:
        logger.error(f"Storage backend unavailable: {e}")
        with ui.column().classes('fixed inset-0 flex items-center justify-center bg-stone-50'):
            with ui.card().classes('w-96 p-8'):
                ui.label('Storage not configured').classes('text-2xl font-serif text-stone-800')
                ui.label(str(e)).classes('text-sm text-stone-500')
        return

    live = LiveQuery(backend)
    actions = BoardActions(backend)
    session = CanvasSession(live, actions)

    root = ui.element('div').classes('relboard-grid relative h-screen w-screen overflow-hidden bg-stone-50') \
        .style('cursor: grab;') \
        .props('data-surface=canvas')

    with root:
        ui.element('div').classes('absolute inset-0').props('data-surface=grid')

    async def on_delete_confirmed(person_id: str):
        await session.delete_person(person_id)

    def on_delete(person_id: str, name: str):
        confirm_delete_dialog(name, lambda: on_delete_confirmed(person_id))

    async def on_rename(person_id: str, name: str):
        await session.rename_person(person_id, name)

    renderer = CanvasRenderer(root, on_rename=on_rename, on_delete=on_delete)

    # --- Toolbar ---
    with root:
        with ui.row().classes(
            'absolute left-4 top-4 z-20 items-center gap-2 rounded-xl border border-stone-200/60 '
            'bg-white/90 px-3 py-2 shadow-sm backdrop-blur-sm'
        ).props('data-surface=chrome'):
            ui.label('RelBoard').classes('font-serif text-lg text-stone-800 mr-2')
            name_input = ui.input(placeholder='Add a person...').props('dense outlined').classes('w-48')

            async def do_add():
                name = name_input.value or ''
                if not name.strip():
                    return
                name_input.value = ''
                await session.add_person(name)

            name_input.on('keydown.enter', do_add)
            ui.button('Add', on_click=do_add).props('unelevated no-caps color=dark')
            ui.button('Reset view', on_click=session.reset_view).props('flat no-caps color=grey-8')
            hint = ui.label('Click another person to connect').classes('text-xs text-rose-500')
            hint.set_visibility(False)

        render_legend()

    session.set_on_selection_change(lambda selected: hint.set_visibility(selected is not None))
    session.attach_renderer(renderer)

    # --- Canvas events ---
    root.on('mousedown', session.handle_pointer_down, js_handler=POINTER_JS)
    root.on('mousemove', session.handle_pointer_move, js_handler=POINTER_JS, throttle=0.016)
    root.on('mouseup', session.handle_pointer_up, js_handler=POINTER_JS)
    root.on('mouseleave', session.handle_pointer_leave, js_handler=POINTER_JS)
    root.on('wheel', session.handle_wheel, js_handler=WHEEL_JS)

    live.start()
    actions.report_duplicate_pairs(live.connections)
    ui.context.client.on_disconnect(live.stop)


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='RelBoard',
        port=config.get_port(),
        reload=not getattr(sys, 'frozen', False),
        storage_secret=config.get_storage_secret(),
    )
