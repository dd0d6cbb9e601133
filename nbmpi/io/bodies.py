from __future__ import annotations

from typing import Any, Sequence

import numpy as np
import yaml

from ..config import ConfigError
from ..state import BodyState, make_body_state

BODIES_VERSION = 1


def _err(msg: str) -> ConfigError:
    return ConfigError(msg)


def _expect_seq(x: Any, key: str, n: int | None = None) -> Sequence[Any]:
    if not isinstance(x, (list, tuple)):
        raise _err(f"{key} must be a list")
    if n is not None and len(x) != n:
        raise _err(f"{key} must have length {n}")
    return x


def _expect_float(x: Any, key: str) -> float:
    if isinstance(x, bool) or not isinstance(x, (int, float, np.integer, np.floating)):
        raise _err(f"{key} must be a number")
    return float(x)


def parse_bodies_dict(d: Any, *, dtype="float64") -> BodyState:
    """Build a state from ``{"bodies_version": 1, "bodies": [{r, v, mass}, ...]}``.

    List order is global body order.  ``v`` defaults to zero.
    """
    if not isinstance(d, dict):
        raise _err("bodies file root must be a mapping")
    version = d.get("bodies_version", BODIES_VERSION)
    if version != BODIES_VERSION:
        raise _err(f"unsupported bodies_version: {version!r}")
    raw = _expect_seq(d.get("bodies", None), "bodies")
    if not raw:
        raise _err("bodies list must be non-empty")
    r = np.zeros((len(raw), 2), dtype=float)
    v = np.zeros((len(raw), 2), dtype=float)
    m = np.zeros((len(raw),), dtype=float)
    for i, b in enumerate(raw):
        if not isinstance(b, dict):
            raise _err(f"bodies[{i}] must be a mapping")
        extra = sorted(set(b.keys()) - {"r", "v", "mass"})
        if extra:
            raise _err(f"bodies[{i}] contains unsupported keys: {extra}")
        rr = _expect_seq(b.get("r", None), f"bodies[{i}].r", 2)
        vv = _expect_seq(b.get("v", [0.0, 0.0]), f"bodies[{i}].v", 2)
        r[i] = [_expect_float(rr[j], f"bodies[{i}].r[{j}]") for j in range(2)]
        v[i] = [_expect_float(vv[j], f"bodies[{i}].v[{j}]") for j in range(2)]
        m[i] = _expect_float(b.get("mass", None), f"bodies[{i}].mass")
        if m[i] <= 0.0:
            raise _err(f"bodies[{i}].mass must be positive")
    if not (np.all(np.isfinite(r)) and np.all(np.isfinite(v)) and np.all(np.isfinite(m))):
        raise _err("bodies must have finite r, v and mass")
    return make_body_state(r, v, m, dtype=dtype)


def load_bodies(path: str, *, dtype="float64") -> BodyState:
    with open(path, "r", encoding="utf-8") as f:
        d = yaml.safe_load(f)
    return parse_bodies_dict(d, dtype=dtype)
