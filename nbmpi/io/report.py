"""Plain-text run report.

Layout::

    <body_count>
    <time_period>
    <delta_time>
    x y          \
    ax ay         |  one block per body, initial state
    vx vy         |
    mass         /
    ax ay           one line per body per iteration, iteration-major

Floats are written with ``%f``.
"""

from __future__ import annotations

import os
from typing import Iterator, TextIO

import numpy as np

from ..config import SimulationParams
from ..state import BodyState
from .manifest import report_manifest_payload, write_manifest

REPORT_SCHEMA_NAME = "nbmpi.report.txt"
REPORT_SCHEMA_VERSION = 1


def iter_report_lines(initial: BodyState, params: SimulationParams, history: np.ndarray) -> Iterator[str]:
    yield f"{int(initial.body_count)}"
    yield f"{float(params.time_period):f}"
    yield f"{float(params.delta_time):f}"
    for i in range(initial.body_count):
        yield f"{float(initial.r[i, 0]):f} {float(initial.r[i, 1]):f}"
        yield f"{float(initial.a[i, 0]):f} {float(initial.a[i, 1]):f}"
        yield f"{float(initial.v[i, 0]):f} {float(initial.v[i, 1]):f}"
        yield f"{float(initial.mass[i]):f}"
    for ax, ay in np.asarray(history):
        yield f"{float(ax):f} {float(ay):f}"


def write_report(stream: TextIO, initial: BodyState, params: SimulationParams, history: np.ndarray) -> int:
    n = 0
    for line in iter_report_lines(initial, params, history):
        stream.write(line)
        stream.write("\n")
        n += 1
    stream.flush()
    return n


def write_report_file(
    path: str,
    initial: BodyState,
    params: SimulationParams,
    history: np.ndarray,
    *,
    workers: int = 1,
    write_output_manifest: bool = True,
) -> str:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        write_report(f, initial, params, history)
    if write_output_manifest:
        write_manifest(
            f"{path}.manifest.json",
            report_manifest_payload(
                path=path,
                format_name=REPORT_SCHEMA_NAME,
                schema_version=REPORT_SCHEMA_VERSION,
                body_count=initial.body_count,
                iterations=params.iterations,
                workers=workers,
                time_period=params.time_period,
                delta_time=params.delta_time,
                softening_length=params.softening_length,
                dtype=str(params.dtype),
            ),
        )
    return path
