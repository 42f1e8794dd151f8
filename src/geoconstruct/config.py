"""
Configuration & Constants
=========================
This module serves as the central registry for the numeric constants shared by
the geometry kernel, the construction model and the macro player.

Why is this file needed?
------------------------
1. Consistency: Tolerances used for dedup, reselection and clipping must agree
   between the model and the replay code, otherwise a recorded macro would not
   find the objects it refers to.
2. Tuning: The replay delay and the logical viewing box live in one place.

Exports:
    BOUNDING_BOX: The fixed logical square used to clip extended lines.
    MACRO_DELAY_MS: Pause between two replayed commands.
"""
from geoconstruct.model.geometry_primitives import BoundingBox

# Logical viewing region: [-5, 5] on each axis
BOX_HALF_SPAN: float = 5.0
BOUNDING_BOX: BoundingBox = BoundingBox(
    xmin=-BOX_HALF_SPAN, ymin=-BOX_HALF_SPAN, xmax=BOX_HALF_SPAN, ymax=BOX_HALF_SPAN
)

# Tolerances
PARALLEL_EPS: float = 1e-9   # determinant / degenerate direction checks
POINT_EPS: float = 1e-9      # two points closer than this are the same point
MERGE_EPS: float = 1e-6      # intersection hits closer than this collapse into one
MATCH_EPS: float = 1e-6      # reselection of recorded coordinates

# A normal line spans this far on each side of its foot point (well beyond the box diagonal)
NORMAL_HALF_LENGTH: float = 1000.0

# Macro replay
MACRO_DELAY_MS: int = 1000
COORD_DECIMALS: int = 8

# Auto label prefixes, e.g. "P1", "L3"
POINT_PREFIX: str = "P"
LINE_PREFIX: str = "L"
EXTENDED_LINE_PREFIX: str = "E"
CIRCLE_PREFIX: str = "C"

