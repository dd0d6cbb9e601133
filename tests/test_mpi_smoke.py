from __future__ import annotations

import os
import shutil
import subprocess
import sys
from pathlib import Path

import pytest


def _run_mpi_smoke_case(*, n: int, config: str, tmp_path: Path) -> Path:
    if os.environ.get("NBMPI_MPI_SMOKE", "") != "1":
        pytest.skip("set NBMPI_MPI_SMOKE=1 to enable MPI smoke")
    mpirun = shutil.which("mpiexec.hydra") or shutil.which("mpiexec") or shutil.which("mpirun")
    if not mpirun:
        pytest.skip("mpirun/mpiexec not available")
    try:
        import mpi4py  # noqa: F401
    except Exception:
        pytest.skip("mpi4py not available")

    root = Path(__file__).resolve().parents[1]
    out = tmp_path / f"report_n{int(n)}.txt"
    cmd = [
        sys.executable,
        "scripts/run_mpi_smoke.py",
        "--n",
        str(int(n)),
        "--mpirun",
        str(mpirun),
        "--config",
        str(config),
        "--out",
        str(out),
    ]
    res = subprocess.run(cmd, cwd=str(root), env=os.environ.copy(), timeout=120)
    assert res.returncode == 0
    return out


def test_mpi_smoke_matches_across_rank_counts(tmp_path):
    r2 = _run_mpi_smoke_case(n=2, config="examples/disc_8.yaml", tmp_path=tmp_path)
    r4 = _run_mpi_smoke_case(n=4, config="examples/disc_8.yaml", tmp_path=tmp_path)
    assert r2.read_text(encoding="utf-8") == r4.read_text(encoding="utf-8")
