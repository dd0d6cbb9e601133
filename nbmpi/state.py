from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from .constants import (
    ACC_COLS,
    BODY_RECORD_SIZE,
    DEFAULT_VELOCITY_SCALE,
    MASS_COL,
    POS_COLS,
    VEL_COLS,
)


@dataclass
class BodyState:
    """Global state: one row per body, indexed by global body id."""

    r: np.ndarray
    v: np.ndarray
    a: np.ndarray
    mass: np.ndarray

    @property
    def body_count(self) -> int:
        return int(self.mass.shape[0])

    @property
    def dtype(self) -> np.dtype:
        return self.r.dtype

    def copy(self) -> "BodyState":
        return BodyState(r=self.r.copy(), v=self.v.copy(), a=self.a.copy(), mass=self.mass.copy())


def make_body_state(r, v, mass, a=None, *, dtype="float64") -> BodyState:
    dt = np.dtype(dtype)
    rr = np.array(r, dtype=dt, copy=True)
    vv = np.array(v, dtype=dt, copy=True)
    mm = np.array(mass, dtype=dt, copy=True)
    if rr.ndim != 2 or rr.shape[1] != 2:
        raise ValueError("r must have shape (N, 2)")
    n = int(rr.shape[0])
    if vv.shape != (n, 2):
        raise ValueError("v must have shape (N, 2)")
    if mm.shape != (n,):
        raise ValueError("mass must have shape (N,)")
    if np.any(mm <= 0.0):
        raise ValueError("all masses must be positive")
    aa = np.zeros((n, 2), dtype=dt) if a is None else np.array(a, dtype=dt, copy=True)
    if aa.shape != (n, 2):
        raise ValueError("a must have shape (N, 2)")
    return BodyState(r=rr, v=vv, a=aa, mass=mm)


def empty_records(n_bodies: int, dtype="float64") -> np.ndarray:
    return np.zeros((int(n_bodies), BODY_RECORD_SIZE), dtype=np.dtype(dtype))


def pack_bodies(state: BodyState, out: np.ndarray | None = None) -> np.ndarray:
    """Write ``state`` into contiguous ``(N, 7)`` wire records."""
    if out is None:
        out = empty_records(state.body_count, state.dtype)
    out[:, POS_COLS] = state.r
    out[:, ACC_COLS] = state.a
    out[:, VEL_COLS] = state.v
    out[:, MASS_COL] = state.mass
    return out


def unpack_bodies(records: np.ndarray, out: BodyState | None = None) -> BodyState:
    if records.ndim != 2 or records.shape[1] != BODY_RECORD_SIZE:
        raise ValueError(f"records must have shape (N, {BODY_RECORD_SIZE})")
    if out is None:
        return BodyState(
            r=records[:, POS_COLS].copy(),
            v=records[:, VEL_COLS].copy(),
            a=records[:, ACC_COLS].copy(),
            mass=records[:, MASS_COL].copy(),
        )
    out.r[:] = records[:, POS_COLS]
    out.v[:] = records[:, VEL_COLS]
    out.a[:] = records[:, ACC_COLS]
    out.mass[:] = records[:, MASS_COL]
    return out


def generate_bodies(
    n_bodies: int,
    initial_body_mass: float,
    velocity_scale: float = DEFAULT_VELOCITY_SCALE,
    seed: int = 1,
    dtype="float64",
) -> BodyState:
    """Random disc-like initial conditions in the unit square.

    Body ``i`` heads roughly along angle ``2*pi*i/N`` (jittered by up to a
    quarter radian) with a random fraction of ``velocity_scale`` as speed.
    """
    n = int(n_bodies)
    if n <= 0:
        raise ValueError("n_bodies must be positive")
    if float(initial_body_mass) <= 0.0:
        raise ValueError("initial_body_mass must be positive")
    rng = np.random.default_rng(seed)
    idx = np.arange(n, dtype=float)
    angle = idx / n * 2.0 * np.pi + (rng.random(n) - 0.5) * 0.5
    r = rng.random((n, 2))
    mass = float(initial_body_mass) * (rng.random(n) + 0.5)
    speed = float(velocity_scale) * rng.random(n)
    v = np.stack([np.cos(angle) * speed, np.sin(angle) * speed], axis=1)
    return make_body_state(r, v, mass, dtype=dtype)


def kinetic_energy(state: BodyState) -> float:
    m = np.asarray(state.mass, dtype=float)
    vv = np.asarray(state.v, dtype=float)
    return 0.5 * float((m[:, None] * (vv * vv)).sum())


def total_momentum(state: BodyState) -> np.ndarray:
    m = np.asarray(state.mass, dtype=float)
    return (m[:, None] * np.asarray(state.v, dtype=float)).sum(axis=0)
