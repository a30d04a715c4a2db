"""
Pure geometry helpers for the canvas.

World space is where positions are persisted; screen space is where pointer
events arrive. Rendering maps world -> screen with `screen = world * scale + pan`.
"""

import math
from typing import Tuple

from relboard.canvas.constants import (
    BOX_WIDTH,
    BOX_HEIGHT,
    CURVE_FACTOR,
    MAX_CURVE_OFFSET,
    DEGENERATE_DISTANCE,
)

Point = Tuple[float, float]

CURVE_SAMPLES = 24


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def world_to_screen(point: Point, pan: Point, scale: float) -> Point:
    return (point[0] * scale + pan[0], point[1] * scale + pan[1])


def screen_to_world(point: Point, pan: Point, scale: float) -> Point:
    return ((point[0] - pan[0]) / scale, (point[1] - pan[1]) / scale)


def box_center(x: float, y: float) -> Point:
    """Centre of a person card whose top-left corner is at (x, y)."""
    return (x + BOX_WIDTH / 2, y + BOX_HEIGHT / 2)


def point_in_box(point: Point, x: float, y: float) -> bool:
    px, py = point
    return x <= px <= x + BOX_WIDTH and y <= py <= y + BOX_HEIGHT


def control_point(start: Point, end: Point) -> Point:
    """
    Control point of the quadratic curve joining two box centres.

    The midpoint is pushed along the A->B vector rotated by 90 degrees, so
    every edge bows to the same side relative to its direction. Coincident
    endpoints return the shared point instead of dividing by zero.
    """
    x1, y1 = start
    x2, y2 = end
    mid_x = (x1 + x2) / 2
    mid_y = (y1 + y2) / 2
    dx = x2 - x1
    dy = y2 - y1
    distance = math.hypot(dx, dy)
    if distance < DEGENERATE_DISTANCE:
        return (mid_x, mid_y)

    offset = min(distance * CURVE_FACTOR, MAX_CURVE_OFFSET)
    return (mid_x - dy * offset / distance, mid_y + dx * offset / distance)


def quadratic_path(start: Point, control: Point, end: Point) -> str:
    """SVG path data for a quadratic bezier."""
    return (
        f"M {start[0]:.2f},{start[1]:.2f} "
        f"Q {control[0]:.2f},{control[1]:.2f} {end[0]:.2f},{end[1]:.2f}"
    )


def quadratic_point(start: Point, control: Point, end: Point, t: float) -> Point:
    u = 1 - t
    return (
        u * u * start[0] + 2 * u * t * control[0] + t * t * end[0],
        u * u * start[1] + 2 * u * t * control[1] + t * t * end[1],
    )


def point_to_segment_distance(point: Point, seg_start: Point, seg_end: Point) -> Tuple[float, float]:
    """Return (distance, t) from point to the closest point on the segment."""
    px, py = point
    x1, y1 = seg_start
    x2, y2 = seg_end
    dx, dy = x2 - x1, y2 - y1

    if dx == 0 and dy == 0:
        return math.hypot(px - x1, py - y1), 0.0

    t = clamp(((px - x1) * dx + (py - y1) * dy) / (dx * dx + dy * dy), 0.0, 1.0)
    closest_x, closest_y = x1 + t * dx, y1 + t * dy
    return math.hypot(px - closest_x, py - closest_y), t


def distance_to_curve(point: Point, start: Point, control: Point, end: Point,
                      samples: int = CURVE_SAMPLES) -> float:
    """Approximate distance from a point to a quadratic bezier by sampling it as a polyline."""
    best = float("inf")
    prev = start
    for i in range(1, samples + 1):
        current = quadratic_point(start, control, end, i / samples)
        dist, _ = point_to_segment_distance(point, prev, current)
        best = min(best, dist)
        prev = current
    return best
