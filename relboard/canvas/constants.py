"""
Shared constants for the canvas interaction core.

Box dimensions are also baked into the CSS of renderer.py. Keep them in sync!
"""

# Person card size in world units (w-32 card, 128px wide)
BOX_WIDTH = 128.0
BOX_HEIGHT = 80.0

# Viewport zoom limits and wheel sensitivity
MIN_SCALE = 0.1
MAX_SCALE = 3.0
ZOOM_SENSITIVITY = 0.001

# Screen pixels the pointer must travel before a press becomes a drag
DRAG_THRESHOLD = 8.0

# Edge curvature: offset = min(distance * CURVE_FACTOR, MAX_CURVE_OFFSET)
CURVE_FACTOR = 0.3
MAX_CURVE_OFFSET = 100.0

# Below this endpoint distance an edge is treated as degenerate
DEGENERATE_DISTANCE = 1e-9

# Half the width of the invisible click path around an edge (world units)
EDGE_HIT_TOLERANCE = 10.0

# Pulse feedback after clicking an edge, in seconds
PULSE_DURATION = 0.3

# Edge stroke widths
STROKE_WIDTH = 2.5
STROKE_WIDTH_HOVER = 5.0
STROKE_WIDTH_PULSE = 10.0

# Random spawn region for new people: x in [100, 600), y in [100, 500)
SPAWN_MIN_X = 100.0
SPAWN_WIDTH = 500.0
SPAWN_MIN_Y = 100.0
SPAWN_HEIGHT = 400.0

# Pointer buttons
BUTTON_LEFT = 0
BUTTON_MIDDLE = 1

# Surfaces that start a pan when pressed
BACKGROUND_TARGETS = frozenset({"canvas", "viewport", "edges", "grid"})
