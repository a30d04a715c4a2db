"""
RelBoard: an interactive relationship-graph board.

People are placed on an infinite pan/zoom canvas and connected with typed
relationship edges. Interaction logic lives in `relboard.canvas`, persistence
in `relboard.storage`.
"""

__version__ = "0.1.0"
