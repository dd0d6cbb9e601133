"""Named constants for nbmpi.

Categories
----------
COORDINATOR_RANK
    Rank that owns the authoritative global state, integrates every body
    and writes the report.

BODY_FIELDS
    Wire layout of one body record: ``x, y, ax, ay, vx, vy, mass``.
    Packing, broadcast and gather all rely on this order.

DEFAULT_VELOCITY_SCALE
    Initial speed scale used by the body generator when none is given.
"""

from __future__ import annotations

COORDINATOR_RANK: int = 0

# ---------------------------------------------------------------------------
# Wire record layout (one row per body)
# ---------------------------------------------------------------------------
BODY_FIELDS: tuple[str, ...] = ("x", "y", "ax", "ay", "vx", "vy", "mass")
BODY_RECORD_SIZE: int = len(BODY_FIELDS)
POS_COLS = slice(0, 2)
ACC_COLS = slice(2, 4)
VEL_COLS = slice(4, 6)
MASS_COL: int = 6

# ---------------------------------------------------------------------------
# Initial conditions
# ---------------------------------------------------------------------------
DEFAULT_VELOCITY_SCALE: float = 100.0

SUPPORTED_DTYPES: tuple[str, ...] = ("float32", "float64")
