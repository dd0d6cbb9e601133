from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .config import ConfigError, SimulationParams, validate_params
from .constants import COORDINATOR_RANK
from .exchange import exchange_step
from .integrator import integrate_state
from .partition import build_partition
from .progress import ProgressBar
from .state import (
    BodyState,
    empty_records,
    kinetic_energy,
    make_body_state,
    pack_bodies,
    total_momentum,
    unpack_bodies,
)


class AccelerationHistory:
    """Preallocated ``(iterations * N, 2)`` record of per-body accelerations.

    Rows are appended one iteration at a time, so row ``k * N + i`` holds
    body ``i`` at iteration ``k``.
    """

    def __init__(self, iterations: int, body_count: int, dtype="float64"):
        self.iterations = int(iterations)
        self.body_count = int(body_count)
        self.data = np.zeros((self.iterations * self.body_count, 2), dtype=np.dtype(dtype))
        self.filled = 0

    def __len__(self) -> int:
        return self.filled

    def append(self, a: np.ndarray) -> None:
        rows = int(a.shape[0])
        if rows != self.body_count:
            raise ValueError(f"expected {self.body_count} accelerations, got {rows}")
        if self.filled + rows > self.data.shape[0]:
            raise RuntimeError("acceleration history is full")
        self.data[self.filled:self.filled + rows] = a
        self.filled += rows

    def as_array(self) -> np.ndarray:
        return self.data[:self.filled]


@dataclass
class WorkerResult:
    rank: int
    size: int
    iterations: int
    state: Optional[BodyState] = None
    history: Optional[AccelerationHistory] = None


def _coordinator_state(params: SimulationParams, initial: Optional[BodyState]) -> BodyState:
    if initial is None:
        raise ValueError("coordinator requires the initial body state")
    if initial.body_count != int(params.body_count):
        raise ConfigError(
            f"initial state has {initial.body_count} bodies, body_count={int(params.body_count)}"
        )
    try:
        return make_body_state(initial.r, initial.v, initial.mass, initial.a, dtype=params.dtype)
    except ValueError as exc:
        raise ConfigError(f"invalid initial state: {exc}") from exc


def run_worker(
    comm,
    params: SimulationParams,
    initial: Optional[BodyState] = None,
    *,
    progress: Optional[ProgressBar] = None,
    log_every: int = 0,
) -> WorkerResult:
    """Run every iteration on one worker.

    All workers call this with the same ``params``; only the coordinator
    needs ``initial``.  The coordinator's result carries the final state and
    the acceleration history, other ranks return ``state=None``.
    """
    rank = int(comm.Get_rank())
    size = int(comm.Get_size())
    validate_params(params, size)
    part = build_partition(params.body_count, size)[rank]
    n_iter = params.iterations
    is_coord = rank == COORDINATOR_RANK

    buf = empty_records(params.body_count, params.dtype)
    state = None
    history = None
    if is_coord:
        state = _coordinator_state(params, initial)
        pack_bodies(state, buf)
        history = AccelerationHistory(n_iter, params.body_count, params.dtype)
    dt = float(params.delta_time)
    soft2 = params.softening_sq

    for k in range(n_iter):
        exchange_step(comm, buf, part, soft2)
        if not is_coord:
            continue
        unpack_bodies(buf, state)
        integrate_state(state, dt)
        history.append(state.a)
        pack_bodies(state, buf)
        if progress is not None:
            progress.update(k + 1)
        if log_every and ((k + 1) % int(log_every) == 0):
            px, py = total_momentum(state)
            print(
                f"[nbmpi step={k + 1}/{n_iter}] KE={kinetic_energy(state):.6e} P=({px:.6e}, {py:.6e})",
                file=sys.stderr,
                flush=True,
            )

    return WorkerResult(rank=rank, size=size, iterations=n_iter, state=state, history=history)
