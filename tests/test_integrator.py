from __future__ import annotations

import numpy as np

from nbmpi.integrator import euler_step, integrate_state
from nbmpi.state import make_body_state


def test_velocity_update_precedes_position_update():
    r = np.array([[0.0, 0.0]])
    v = np.array([[1.0, 0.0]])
    a = np.array([[2.0, 0.0]])
    euler_step(r, v, a, 1.0)
    assert v.tolist() == [[3.0, 0.0]]
    assert r.tolist() == [[3.0, 0.0]]


def test_integrate_state_keeps_dtype():
    s = make_body_state([[0.0, 0.0]], [[1.0, 1.0]], [1.0], a=[[1.0, 0.0]], dtype="float32")
    integrate_state(s, 0.1)
    assert s.r.dtype == np.float32
    assert s.v.dtype == np.float32
    assert float(s.v[0, 0]) == np.float32(1.0) + np.float32(1.0) * np.float32(0.1)
