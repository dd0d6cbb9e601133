from __future__ import annotations

from dataclasses import dataclass

from .config import ConfigError


@dataclass(frozen=True)
class Partition:
    """Contiguous block ``[begin, end)`` of global body ids owned by ``rank``."""

    rank: int
    begin: int
    end: int

    @property
    def size(self) -> int:
        return int(self.end - self.begin)


def check_divisible(body_count: int, worker_count: int) -> int:
    """Validate the even-split precondition; returns bodies per worker."""
    n = int(body_count)
    w = int(worker_count)
    if w < 1:
        raise ConfigError("worker_count must be >= 1")
    if n < w:
        raise ConfigError(f"body_count={n} is smaller than worker_count={w}")
    if n % w != 0:
        raise ConfigError(f"body_count={n} must be evenly divisible by worker_count={w}")
    return n // w


def partition_range(body_count: int, worker_count: int, rank: int) -> tuple[int, int]:
    per = check_divisible(body_count, worker_count)
    rk = int(rank)
    if not 0 <= rk < int(worker_count):
        raise ConfigError(f"rank={rk} outside [0, {int(worker_count)})")
    return rk * per, (rk + 1) * per


def build_partition(body_count: int, worker_count: int) -> list[Partition]:
    out = []
    for rank in range(int(worker_count)):
        begin, end = partition_range(body_count, worker_count, rank)
        out.append(Partition(rank=rank, begin=begin, end=end))
    return out
