"""Per-iteration collective exchange.

Every worker runs :func:`exchange_step` once per timestep:

  1. broadcast  : coordinator's packed global state -> every worker's buffer
  2. compute    : accelerations for the worker's own partition only
  3. gather     : partition blocks -> coordinator's buffer, in rank order

``comm`` is any object with the mpi4py buffer-collective subset
(``Get_rank``, ``Get_size``, ``Bcast``, ``Gather``, ``Barrier``, ``Abort``):
``MPI.COMM_WORLD`` or a :class:`nbmpi.local_comm.LocalComm`.
"""

from __future__ import annotations

import numpy as np

from .constants import BODY_RECORD_SIZE, COORDINATOR_RANK
from .forces import compute_partial
from .partition import Partition


class CollectiveError(RuntimeError):
    pass


def _check_buffer(buf: np.ndarray) -> None:
    if buf.ndim != 2 or buf.shape[1] != BODY_RECORD_SIZE:
        raise ValueError(f"state buffer must have shape (N, {BODY_RECORD_SIZE})")
    if not buf.flags["C_CONTIGUOUS"]:
        raise ValueError("state buffer must be C-contiguous")


def broadcast_state(comm, buf: np.ndarray, *, root: int = COORDINATOR_RANK) -> np.ndarray:
    """Blocking broadcast of the full global state (in place)."""
    comm.Bcast(buf, root=root)
    return buf


def gather_partials(
    comm,
    local: np.ndarray,
    buf: np.ndarray | None,
    *,
    root: int = COORDINATOR_RANK,
) -> np.ndarray | None:
    """Blocking gather of equal-size partition blocks into ``buf`` on ``root``.

    Blocks land in rank order, so row ``i`` of ``buf`` is again global body ``i``.
    Returns ``buf`` on ``root`` and ``None`` elsewhere.
    """
    sendbuf = np.ascontiguousarray(local)
    if comm.Get_rank() == root:
        if buf is None:
            raise ValueError("root must provide a receive buffer")
        expected = sendbuf.shape[0] * int(comm.Get_size())
        if buf.shape[0] != expected:
            raise CollectiveError(
                f"gather size mismatch: buffer holds {buf.shape[0]} bodies, "
                f"{comm.Get_size()} x {sendbuf.shape[0]} expected"
            )
        comm.Gather(sendbuf, buf, root=root)
        return buf
    comm.Gather(sendbuf, None, root=root)
    return None


def exchange_step(comm, buf: np.ndarray, part: Partition, softening_sq: float) -> np.ndarray | None:
    _check_buffer(buf)
    broadcast_state(comm, buf)
    local = compute_partial(buf, part, softening_sq)
    return gather_partials(comm, local, buf if comm.Get_rank() == COORDINATOR_RANK else None)
