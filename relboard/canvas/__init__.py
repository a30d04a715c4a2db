"""
Interactive canvas for the relationship board.

This package provides pan/zoom, drag and selection handling:
- ViewportController: Pan and zoom state, screen/world transforms
- DragController: Drag sessions and the commit-before-clear overlay
- SelectionMachine: Click-to-select, click-again-to-connect
- PulseTracker: Short highlight after a connection type changes
- compose_scene: Merges remote snapshots with local overlays

Usage:
    from relboard.canvas import ViewportController, DragController, SelectionMachine
    from relboard.canvas.handlers import CanvasSession
    from relboard.canvas.renderer import CanvasRenderer
"""

from relboard.canvas.constants import (
    BOX_WIDTH,
    BOX_HEIGHT,
    MIN_SCALE,
    MAX_SCALE,
    DRAG_THRESHOLD,
)
from relboard.canvas.connection_types import CONNECTION_TYPES, PulseTracker, advance
from relboard.canvas.drag import DragController, DragResult
from relboard.canvas.scene import LocalOverlay, Scene, compose_scene
from relboard.canvas.selection import ConnectRequest, SelectionMachine
from relboard.canvas.viewport import ViewportController, ViewportState

__all__ = [
    'ViewportController',
    'ViewportState',
    'DragController',
    'DragResult',
    'SelectionMachine',
    'ConnectRequest',
    'PulseTracker',
    'advance',
    'CONNECTION_TYPES',
    'LocalOverlay',
    'Scene',
    'compose_scene',
    'BOX_WIDTH',
    'BOX_HEIGHT',
    'MIN_SCALE',
    'MAX_SCALE',
    'DRAG_THRESHOLD',
]
