from __future__ import annotations

import argparse
from typing import Callable


def _add_param_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "params",
        nargs="*",
        help="time_period delta_time body_count initial_body_mass softening_length [velocity_scale]",
    )
    p.add_argument("--config", default="", help="YAML config (system/run/workers)")
    p.add_argument("--time-period", type=float, default=None)
    p.add_argument("--delta-time", type=float, default=None)
    p.add_argument("--body-count", type=int, default=None)
    p.add_argument("--initial-body-mass", type=float, default=None)
    p.add_argument("--softening-length", type=float, default=None)
    p.add_argument("--velocity-scale", type=float, default=None)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--dtype", choices=["float32", "float64"], default=None)
    p.add_argument("--bodies", default="", help="YAML bodies file (initial state)")
    p.add_argument("--workers", type=int, default=0, help="Worker count for --mode local / verify")


def build_parser(*, cmd_run: Callable, cmd_verify: Callable) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="nbmpi")
    sub = p.add_subparsers(dest="cmd", required=True)

    pr = sub.add_parser("run")
    _add_param_args(pr)
    pr.add_argument("--mode", choices=["mpi", "local", "serial"], default="mpi")
    pr.add_argument("--out", default="", help="Report output path (default: stdout)")
    pr.add_argument(
        "--no-output-manifest",
        action="store_true",
        help="Disable the report schema sidecar manifest",
    )
    pr.add_argument("--progress", action="store_true", help="Show a progress bar on stderr")
    pr.add_argument("--log-every", type=int, default=0, help="Status line period (iterations)")
    pr.set_defaults(func=cmd_run)

    pv = sub.add_parser("verify")
    _add_param_args(pv)
    pv.set_defaults(func=cmd_verify)

    return p
