from __future__ import annotations

import sys
from typing import Optional

from .config import SimulationParams, validate_params
from .driver import AccelerationHistory
from .forces import accelerations_on_range
from .integrator import integrate_state
from .progress import ProgressBar
from .state import BodyState, kinetic_energy, make_body_state, total_momentum


def run_serial(
    params: SimulationParams,
    initial: BodyState,
    *,
    progress: Optional[ProgressBar] = None,
    log_every: int = 0,
) -> tuple[BodyState, AccelerationHistory]:
    """Single-process reference: same kernel, same integrator, no exchange."""
    validate_params(params, 1)
    state = make_body_state(initial.r, initial.v, initial.mass, initial.a, dtype=params.dtype)
    n_iter = params.iterations
    history = AccelerationHistory(n_iter, state.body_count, params.dtype)
    soft2 = params.softening_sq
    for step in range(1, n_iter + 1):
        state.a[:] = accelerations_on_range(state.r, state.mass, 0, state.body_count, soft2)
        integrate_state(state, params.delta_time)
        history.append(state.a)
        if progress is not None:
            progress.update(step)
        if log_every and (step % int(log_every) == 0):
            px, py = total_momentum(state)
            print(
                f"[serial step={step}] KE={kinetic_energy(state):.6e} P=({px:.6e}, {py:.6e})",
                file=sys.stderr,
                flush=True,
            )
    return state, history
