from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable, Optional

try:
    import mpi4py

    mpi4py.rc.initialize = False
    mpi4py.rc.finalize = False
    from mpi4py import MPI
except Exception:
    MPI = None

from .config import SimulationParams, validate_params
from .constants import COORDINATOR_RANK
from .driver import WorkerResult, run_worker
from .progress import ProgressBar
from .state import BodyState


@dataclass(frozen=True)
class _MPIRuntime:
    comm: object
    rank: int
    size: int
    owns_mpi_init: bool


def init_mpi_runtime() -> _MPIRuntime:
    if MPI is None:
        raise RuntimeError("mpi4py required")
    owns_mpi_init = False
    if not MPI.Is_initialized():
        MPI.Init()
        owns_mpi_init = True
    comm = MPI.COMM_WORLD
    return _MPIRuntime(comm=comm, rank=comm.Get_rank(), size=comm.Get_size(), owns_mpi_init=owns_mpi_init)


def finalize_mpi_runtime(runtime: _MPIRuntime) -> None:
    if runtime.owns_mpi_init and MPI is not None and MPI.Is_initialized() and not MPI.Is_finalized():
        runtime.comm.Barrier()
        MPI.Finalize()


def run_mpi(
    params: SimulationParams,
    make_initial: Callable[[], BodyState],
    *,
    show_progress: bool = False,
    log_every: int = 0,
    on_result: Optional[Callable[[WorkerResult], None]] = None,
) -> WorkerResult:
    """Run this process as one rank of ``MPI.COMM_WORLD``.

    ``make_initial`` is only called on the coordinator.  Any failure on any
    rank aborts the whole job when more than one rank is running; there is
    no partial result.  ``on_result`` runs before MPI is finalized.
    """
    runtime = init_mpi_runtime()
    rank = runtime.rank
    ok = False
    try:
        validate_params(params, runtime.size)
        is_coord = rank == COORDINATOR_RANK
        initial = make_initial() if is_coord else None
        if is_coord:
            print(
                f"[mpi rank={rank}] workers={runtime.size} bodies={int(params.body_count)} "
                f"iterations={params.iterations}",
                file=sys.stderr,
                flush=True,
            )
        progress = ProgressBar(params.iterations) if (is_coord and show_progress) else None
        res = run_worker(runtime.comm, params, initial, progress=progress, log_every=log_every)
        if on_result is not None:
            on_result(res)
        ok = True
        return res
    except Exception as exc:
        print(f"[mpi rank={rank}] fatal: {type(exc).__name__}: {exc}", file=sys.stderr, flush=True)
        if runtime.size > 1:
            runtime.comm.Abort(1)
        raise
    finally:
        if ok or runtime.size == 1:
            finalize_mpi_runtime(runtime)
