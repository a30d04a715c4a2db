"""
Viewport Controller - owns the canvas pan offset and zoom scale.

Pointer-down on a background surface starts a pan gesture; wheel events zoom
toward the cursor. The viewport is per-session state and is never persisted.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from relboard.canvas.constants import (
    MIN_SCALE,
    MAX_SCALE,
    ZOOM_SENSITIVITY,
    BUTTON_LEFT,
    BUTTON_MIDDLE,
    BACKGROUND_TARGETS,
)
from relboard.canvas.geometry import Point, clamp, screen_to_world, world_to_screen

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewportState:
    """Immutable snapshot of the viewport transform."""
    pan_x: float = 0.0
    pan_y: float = 0.0
    scale: float = 1.0

    @property
    def pan(self) -> Point:
        return (self.pan_x, self.pan_y)

    def css_transform(self) -> str:
        return f"translate({self.pan_x:.2f}px, {self.pan_y:.2f}px) scale({self.scale:.4f})"


class ViewportController:
    """Manages pan/zoom and the background pan gesture."""

    def __init__(self, state: Optional[ViewportState] = None):
        self._state = state or ViewportState()
        self._is_panning = False
        self._did_pan = False
        self._pan_start: Tuple[float, float] = (0.0, 0.0)

    @property
    def state(self) -> ViewportState:
        return self._state

    @property
    def scale(self) -> float:
        return self._state.scale

    @property
    def is_panning(self) -> bool:
        return self._is_panning

    def reset(self) -> ViewportState:
        self._state = ViewportState()
        self._is_panning = False
        self._did_pan = False
        return self._state

    # --- Transform ---

    def pan_by(self, dx: float, dy: float) -> ViewportState:
        """Add a screen-space delta to the pan offset."""
        self._state = ViewportState(
            pan_x=self._state.pan_x + dx,
            pan_y=self._state.pan_y + dy,
            scale=self._state.scale,
        )
        return self._state

    def zoom_at(self, screen_x: float, screen_y: float, wheel_delta: float) -> ViewportState:
        """
        Zoom by a wheel delta, keeping the world point under (screen_x, screen_y) fixed.

        new_scale = clamp(scale * (1 + wheel_delta * 0.001), 0.1, 3.0)
        new_pan   = screen - (screen - pan) * (new_scale / scale)
        """
        old = self._state
        new_scale = clamp(old.scale * (1 + wheel_delta * ZOOM_SENSITIVITY), MIN_SCALE, MAX_SCALE)
        ratio = new_scale / old.scale
        self._state = ViewportState(
            pan_x=screen_x - (screen_x - old.pan_x) * ratio,
            pan_y=screen_y - (screen_y - old.pan_y) * ratio,
            scale=new_scale,
        )
        return self._state

    def to_screen(self, world: Point) -> Point:
        return world_to_screen(world, self._state.pan, self._state.scale)

    def to_world(self, screen: Point) -> Point:
        return screen_to_world(screen, self._state.pan, self._state.scale)

    # --- Pan gesture ---

    @staticmethod
    def is_background(target: Optional[str]) -> bool:
        return target in BACKGROUND_TARGETS

    def begin_pan(self, screen_x: float, screen_y: float, button: int, target: Optional[str]) -> bool:
        """
        Start panning if the press landed on a background surface with the
        left or middle button. Presses on person cards never pan.
        """
        if button not in (BUTTON_LEFT, BUTTON_MIDDLE) or not self.is_background(target):
            return False
        self._is_panning = True
        self._did_pan = False
        self._pan_start = (screen_x - self._state.pan_x, screen_y - self._state.pan_y)
        return True

    def move_pan(self, screen_x: float, screen_y: float) -> Optional[ViewportState]:
        if not self._is_panning:
            return None
        self._did_pan = True
        self._state = ViewportState(
            pan_x=screen_x - self._pan_start[0],
            pan_y=screen_y - self._pan_start[1],
            scale=self._state.scale,
        )
        return self._state

    def end_pan(self) -> bool:
        """Stop panning. Returns True if the gesture actually moved the viewport."""
        moved = self._is_panning and self._did_pan
        self._is_panning = False
        return moved
