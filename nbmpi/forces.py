"""Softened direct-summation gravity.

Kernel
------
The acceleration of a subject body A due to a source body B is

    r     = B.pos - A.pos
    d2    = |r|^2 + eps^2
    a_AB  = r * B.mass / sqrt(d2^3)

where ``eps`` is the softening length.  With ``eps > 0`` the result stays
finite even for coincident bodies; with ``eps == 0`` coincident bodies give
a non-finite result.

Summation order
---------------
For each subject ``i`` the contributions of every ``j != i`` are added left
to right in ascending ``j``.  The per-body sum therefore does not depend on
how bodies are split across workers, and a run with any worker count
reproduces the serial reference bit-for-bit.
"""

from __future__ import annotations

import numpy as np

from .constants import ACC_COLS, MASS_COL, POS_COLS
from .partition import Partition

_DEFAULT_BLOCK_ROWS = 256


def pair_acceleration(subject_pos, source_pos, source_mass, softening_sq: float) -> np.ndarray:
    a = np.asarray(subject_pos)
    b = np.asarray(source_pos)
    dr = b - a
    d2 = dr[0] * dr[0] + dr[1] * dr[1] + softening_sq
    inv = 1.0 / np.sqrt(d2 * d2 * d2)
    scale = source_mass * inv
    return dr * scale


def _block_accelerations(r: np.ndarray, mass: np.ndarray, rows: np.ndarray, softening_sq: float) -> np.ndarray:
    n = int(r.shape[0])
    k = int(rows.shape[0])
    keep = np.ones((k, n), dtype=bool)
    keep[np.arange(k), rows] = False
    dx = (r[None, :, 0] - r[rows, 0][:, None])[keep].reshape(k, n - 1)
    dy = (r[None, :, 1] - r[rows, 1][:, None])[keep].reshape(k, n - 1)
    m = np.broadcast_to(mass[None, :], (k, n))[keep].reshape(k, n - 1)
    d2 = dx * dx + dy * dy + softening_sq
    inv = 1.0 / np.sqrt(d2 * d2 * d2)
    scale = m * inv
    out = np.empty((k, 2), dtype=r.dtype)
    # cumsum accumulates sequentially, i.e. in ascending j
    out[:, 0] = np.cumsum(dx * scale, axis=1)[:, -1]
    out[:, 1] = np.cumsum(dy * scale, axis=1)[:, -1]
    return out


def accelerations_on_range(
    r: np.ndarray,
    mass: np.ndarray,
    begin: int,
    end: int,
    softening_sq: float,
    *,
    block_rows: int = _DEFAULT_BLOCK_ROWS,
) -> np.ndarray:
    """Total acceleration on bodies ``begin..end-1`` from the full body set.

    ``r`` and ``mass`` are read only.  Returns a new ``(end - begin, 2)``
    array in the dtype of ``r``.
    """
    n = int(r.shape[0])
    b0 = int(begin)
    b1 = int(end)
    if not 0 <= b0 <= b1 <= n:
        raise ValueError(f"invalid range [{b0}, {b1}) for {n} bodies")
    if int(block_rows) < 1:
        raise ValueError("block_rows must be >= 1")
    out = np.zeros((b1 - b0, 2), dtype=r.dtype)
    if b1 == b0 or n < 2:
        return out
    for lo in range(b0, b1, int(block_rows)):
        hi = min(b1, lo + int(block_rows))
        rows = np.arange(lo, hi, dtype=np.int64)
        out[lo - b0:hi - b0] = _block_accelerations(r, mass, rows, softening_sq)
    return out


def compute_partial(snapshot: np.ndarray, part: Partition, softening_sq: float) -> np.ndarray:
    """Wire records for ``part`` with freshly computed accelerations.

    Position, velocity and mass are copied through from ``snapshot`` unchanged.
    """
    r = snapshot[:, POS_COLS]
    mass = snapshot[:, MASS_COL]
    local = np.array(snapshot[part.begin:part.end], copy=True)
    local[:, ACC_COLS] = accelerations_on_range(r, mass, part.begin, part.end, softening_sq)
    return local
