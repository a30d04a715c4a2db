"""
Connection types: a fixed ring the type advances through on click, the
visual style of each type, and the local pulse flags used as click feedback.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from relboard.canvas.constants import (
    PULSE_DURATION,
    STROKE_WIDTH,
    STROKE_WIDTH_HOVER,
    STROKE_WIDTH_PULSE,
)

CONNECTION_TYPES = ("kissed", "fucked", "talked", "dated")
DEFAULT_CONNECTION_TYPE = CONNECTION_TYPES[0]


def advance(connection_type: str) -> str:
    """
    Next type in the ring, wrapping dated -> kissed.
    Unknown or legacy values advance to the first entry.
    """
    try:
        index = CONNECTION_TYPES.index(connection_type)
    except ValueError:
        index = -1
    return CONNECTION_TYPES[(index + 1) % len(CONNECTION_TYPES)]


@dataclass(frozen=True)
class TypeStyle:
    label: str
    start_color: str
    end_color: str
    opacity: float = 0.8

    @property
    def gradient_id(self) -> str:
        return f"gradient-{self.label.lower()}"


TYPE_STYLES: Dict[str, TypeStyle] = {
    "kissed": TypeStyle("Kissed", "#f9a8d4", "#fb7185"),
    "fucked": TypeStyle("Fucked", "#fb923c", "#ef4444"),
    "talked": TypeStyle("Talked", "#94a3b8", "#64748b"),
    "dated": TypeStyle("Dated", "#c084fc", "#a855f7"),
}


def style_for(connection_type: str) -> TypeStyle:
    """Style of a type; unknown types fall back to the last ring entry."""
    return TYPE_STYLES.get(connection_type, TYPE_STYLES[CONNECTION_TYPES[-1]])


def stroke_width(is_pulsing: bool, is_hovered: bool) -> float:
    if is_pulsing:
        return STROKE_WIDTH_PULSE
    if is_hovered:
        return STROKE_WIDTH_HOVER
    return STROKE_WIDTH


class PulseTracker:
    """Per-connection pulse flags that expire after a fixed duration. Never persisted."""

    def __init__(self, duration: float = PULSE_DURATION, clock: Optional[Callable[[], float]] = None):
        self._duration = duration
        self._clock = clock or time.monotonic
        self._expires: Dict[str, float] = {}

    @property
    def duration(self) -> float:
        return self._duration

    def pulse(self, connection_id: str) -> None:
        self._expires[connection_id] = self._clock() + self._duration

    def is_pulsing(self, connection_id: str) -> bool:
        expiry = self._expires.get(connection_id)
        return expiry is not None and expiry > self._clock()

    def expire(self) -> List[str]:
        """Drop expired pulses and return their connection ids."""
        now = self._clock()
        expired = [cid for cid, expiry in self._expires.items() if expiry <= now]
        for cid in expired:
            del self._expires[cid]
        return expired

    def active(self) -> frozenset:
        now = self._clock()
        return frozenset(cid for cid, expiry in self._expires.items() if expiry > now)
