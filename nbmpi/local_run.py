"""Run W workers as threads of the current process.

Each worker executes exactly the code path used under MPI
(:func:`nbmpi.driver.run_worker`) against a :class:`LocalComm`, which
gives an MPI-free way to exercise partitioning, broadcast and rank-ordered
gather.
"""

from __future__ import annotations

import threading
from typing import Optional

from .config import SimulationParams, validate_params
from .constants import COORDINATOR_RANK
from .driver import WorkerResult, run_worker
from .exchange import CollectiveError
from .local_comm import LocalGroup
from .progress import ProgressBar
from .state import BodyState


def run_local(
    params: SimulationParams,
    initial: BodyState,
    *,
    workers: int = 1,
    progress: Optional[ProgressBar] = None,
    log_every: int = 0,
) -> WorkerResult:
    validate_params(params, int(workers))
    group = LocalGroup(int(workers))
    comms = group.comms()
    results: list[Optional[WorkerResult]] = [None] * group.size
    errors: list[Optional[BaseException]] = [None] * group.size

    def _worker(rank: int) -> None:
        is_coord = rank == COORDINATOR_RANK
        try:
            results[rank] = run_worker(
                comms[rank],
                params,
                initial if is_coord else None,
                progress=progress if is_coord else None,
                log_every=log_every if is_coord else 0,
            )
        except Exception as exc:
            errors[rank] = exc
            group.abort(1)

    threads = [
        threading.Thread(target=_worker, args=(rank,), name=f"nbmpi-worker-{rank}", daemon=True)
        for rank in range(group.size)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    failed = [e for e in errors if e is not None]
    if failed:
        # a worker that failed on its own outranks peers that only saw the abort
        primary = [e for e in failed if not isinstance(e, CollectiveError)]
        raise (primary or failed)[0]
    return results[COORDINATOR_RANK]
