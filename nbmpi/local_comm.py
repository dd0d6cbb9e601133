"""In-process communicator for running W workers as threads.

Mirrors the subset of the mpi4py ``Comm`` API used by :mod:`nbmpi.exchange`.
Workers never share arrays: ``Bcast`` and ``Gather`` copy the payload on
send and again on receive.  Each collective is two barrier phases (publish,
then collect) so a slot is never overwritten while a peer is still reading
it.  If any worker aborts, every peer blocked in a collective gets
:class:`~nbmpi.exchange.CollectiveError`.
"""

from __future__ import annotations

import threading

import numpy as np

from .exchange import CollectiveError


class LocalGroup:
    def __init__(self, size: int):
        n = int(size)
        if n < 1:
            raise ValueError("size must be >= 1")
        self.size = n
        self._barrier = threading.Barrier(n)
        self._slots: list[np.ndarray | None] = [None] * n
        self.abort_code: int | None = None

    def comms(self) -> list["LocalComm"]:
        return [LocalComm(self, rank) for rank in range(self.size)]

    def wait(self, rank: int) -> None:
        try:
            self._barrier.wait()
        except threading.BrokenBarrierError as exc:
            raise CollectiveError(
                f"rank {rank}: collective aborted (code={self.abort_code})"
            ) from exc

    def abort(self, code: int) -> None:
        if self.abort_code is None:
            self.abort_code = int(code)
        self._barrier.abort()


class LocalComm:
    def __init__(self, group: LocalGroup, rank: int):
        self._group = group
        self._rank = int(rank)

    def Get_rank(self) -> int:
        return self._rank

    def Get_size(self) -> int:
        return self._group.size

    def Barrier(self) -> None:
        self._group.wait(self._rank)

    def Abort(self, errorcode: int = 1) -> None:
        self._group.abort(errorcode)

    def Bcast(self, buf: np.ndarray, root: int = 0) -> None:
        g = self._group
        if self._rank == root:
            g._slots[root] = np.array(buf, copy=True)
        g.wait(self._rank)
        if self._rank != root:
            src = g._slots[root]
            if src is None or src.shape != buf.shape:
                g.abort(1)
                raise CollectiveError(f"rank {self._rank}: Bcast buffer shape mismatch")
            buf[...] = src
        g.wait(self._rank)
        if self._rank == root:
            g._slots[root] = None

    def Gather(self, sendbuf: np.ndarray, recvbuf: np.ndarray | None, root: int = 0) -> None:
        g = self._group
        g._slots[self._rank] = np.array(sendbuf, copy=True)
        g.wait(self._rank)
        if self._rank == root:
            if recvbuf is None:
                g.abort(1)
                raise CollectiveError("root must provide a receive buffer")
            try:
                recvbuf[...] = np.concatenate(g._slots, axis=0)
            except ValueError as exc:
                g.abort(1)
                raise CollectiveError(f"Gather shape mismatch: {exc}") from exc
        g.wait(self._rank)
        g._slots[self._rank] = None
