from __future__ import annotations

import pytest

from nbmpi.config import ConfigError
from nbmpi.partition import Partition, build_partition, partition_range


@pytest.mark.parametrize("n,w", [(1, 1), (8, 1), (8, 2), (8, 4), (8, 8), (12, 3), (1000, 10)])
def test_partition_covers_all_bodies_once(n, w):
    parts = build_partition(n, w)
    assert [p.rank for p in parts] == list(range(w))
    seen = []
    for p in parts:
        assert p.size > 0
        seen.extend(range(p.begin, p.end))
    assert seen == list(range(n))


def test_partition_range_is_contiguous_block():
    assert partition_range(12, 3, 0) == (0, 4)
    assert partition_range(12, 3, 1) == (4, 8)
    assert partition_range(12, 3, 2) == (8, 12)


def test_partition_rejects_uneven_division():
    with pytest.raises(ConfigError, match="evenly divisible"):
        build_partition(10, 4)


def test_partition_rejects_more_workers_than_bodies():
    with pytest.raises(ConfigError, match="smaller than worker_count"):
        build_partition(2, 4)


def test_partition_rejects_bad_rank_and_worker_count():
    with pytest.raises(ConfigError, match="rank"):
        partition_range(8, 2, 2)
    with pytest.raises(ConfigError, match="worker_count"):
        partition_range(8, 0, 0)


def test_partition_is_frozen():
    p = Partition(rank=0, begin=0, end=4)
    with pytest.raises(AttributeError):
        p.begin = 1
