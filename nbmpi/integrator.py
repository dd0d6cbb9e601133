from __future__ import annotations


def euler_step(r, v, a, dt):
    """Semi-implicit Euler: ``v += a*dt`` first, then ``r += v*dt`` with the new ``v``.

    Updates ``r`` and ``v`` in place.
    """
    v += a * dt
    r += v * dt


def integrate_state(state, dt) -> None:
    euler_step(state.r, state.v, state.a, state.r.dtype.type(dt))
