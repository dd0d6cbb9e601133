from __future__ import annotations

import sys
from typing import Any

import numpy as np

from .cli_parser import build_parser
from .config import Config, ConfigError, parse_config_dict, read_config_dict
from .io import load_bodies, write_report, write_report_file
from .local_run import run_local
from .mpi_run import run_mpi
from .progress import ProgressBar
from .serial import run_serial
from .state import BodyState, generate_bodies

_POSITIONAL_HELP = (
    "time_period delta_time body_count initial_body_mass softening_length [velocity_scale]"
)


def _positional_overrides(raw: list[str], d: dict[str, Any]) -> None:
    if not raw:
        return
    if len(raw) not in (5, 6):
        raise SystemExit(f"expected 5 or 6 positional parameters: {_POSITIONAL_HELP}")
    try:
        d["run"]["time_period"] = float(raw[0])
        d["run"]["delta_time"] = float(raw[1])
        d["system"]["body_count"] = int(raw[2])
        d["system"]["initial_body_mass"] = float(raw[3])
        d["run"]["softening_length"] = float(raw[4])
        if len(raw) > 5:
            d["system"]["velocity_scale"] = float(raw[5])
    except ValueError as exc:
        raise SystemExit(f"invalid positional parameter ({exc}); expected: {_POSITIONAL_HELP}")


def _resolve_config(args) -> Config:
    d: dict[str, Any] = read_config_dict(args.config) if args.config else {}
    if not isinstance(d, dict):
        raise ConfigError("config root must be a mapping")
    for key in ("system", "run"):
        d[key] = dict(d.get(key) or {})
    _positional_overrides(list(args.params), d)

    flag_map = (
        ("run", "time_period", args.time_period),
        ("run", "delta_time", args.delta_time),
        ("system", "body_count", args.body_count),
        ("system", "initial_body_mass", args.initial_body_mass),
        ("run", "softening_length", args.softening_length),
        ("system", "velocity_scale", args.velocity_scale),
        ("system", "seed", args.seed),
        ("run", "dtype", args.dtype),
    )
    for section, key, value in flag_map:
        if value is not None:
            d[section][key] = value
    if args.bodies:
        d["system"]["bodies_file"] = args.bodies
    if int(args.workers) > 0:
        d["workers"] = {"local": int(args.workers)}
    if getattr(args, "progress", False):
        d["run"]["progress"] = True
    if not args.config and not args.params and "time_period" not in d["run"]:
        raise SystemExit(f"parameters required: --config FILE or {_POSITIONAL_HELP}")
    return parse_config_dict(d)


def _make_initial(cfg: Config) -> BodyState:
    params = cfg.params()
    if cfg.system.bodies_file:
        initial = load_bodies(cfg.system.bodies_file, dtype=params.dtype)
        if initial.body_count != int(params.body_count):
            raise ConfigError(
                f"{cfg.system.bodies_file} has {initial.body_count} bodies, body_count={int(params.body_count)}"
            )
        return initial
    return generate_bodies(
        params.body_count,
        params.initial_body_mass,
        velocity_scale=params.velocity_scale,
        seed=params.seed,
        dtype=params.dtype,
    )


def _emit_report(args, initial: BodyState, cfg: Config, history: np.ndarray, workers: int) -> None:
    params = cfg.params()
    if args.out:
        write_report_file(
            args.out,
            initial,
            params,
            history,
            workers=workers,
            write_output_manifest=not args.no_output_manifest,
        )
        print(f"[report] wrote {args.out}", file=sys.stderr, flush=True)
    else:
        write_report(sys.stdout, initial, params, history)


def _cmd_run(args) -> None:
    cfg = _resolve_config(args)
    params = cfg.params()
    log_every = max(0, int(args.log_every))
    show_progress = bool(cfg.run.progress)

    # built on every rank: a bad bodies file fails before the first collective
    initial = _make_initial(cfg)
    if args.mode == "mpi":

        def _report(res) -> None:
            if res.state is not None:
                _emit_report(args, initial, cfg, res.history.as_array(), res.size)

        run_mpi(params, lambda: initial, show_progress=show_progress, log_every=log_every, on_result=_report)
        return

    progress = ProgressBar(params.iterations) if show_progress else None
    if args.mode == "serial":
        _state, history = run_serial(params, initial, progress=progress, log_every=log_every)
        _emit_report(args, initial, cfg, history.as_array(), 1)
        return

    workers = int(cfg.workers.local)
    print(
        f"[local] workers={workers} bodies={params.body_count} iterations={params.iterations}",
        file=sys.stderr,
        flush=True,
    )
    res = run_local(params, initial, workers=workers, progress=progress, log_every=log_every)
    _emit_report(args, initial, cfg, res.history.as_array(), workers)


def _cmd_verify(args) -> None:
    cfg = _resolve_config(args)
    params = cfg.params()
    workers = int(cfg.workers.local)
    initial = _make_initial(cfg)
    state_a, hist_a = run_serial(params, initial)
    res = run_local(params, initial, workers=workers)
    da = np.abs(hist_a.as_array() - res.history.as_array())
    dr = np.abs(state_a.r - res.state.r)
    max_da = float(da.max()) if da.size else 0.0
    max_dr = float(dr.max()) if dr.size else 0.0
    identical = bool(
        np.array_equal(hist_a.as_array(), res.history.as_array()) and np.array_equal(state_a.r, res.state.r)
    )
    print(
        f"[verify] workers={workers} iterations={params.iterations} "
        f"max|da|={max_da:.6e} max|dr|={max_dr:.6e} identical={identical}",
        flush=True,
    )
    raise SystemExit(0 if identical else 2)


def main(argv: list[str] | None = None) -> None:
    p = build_parser(cmd_run=_cmd_run, cmd_verify=_cmd_verify)
    args = p.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        raise SystemExit(f"unsupported cmd: {getattr(args, 'cmd', None)}")
    try:
        func(args)
    except ConfigError as exc:
        print(f"[nbmpi] configuration error: {exc}", file=sys.stderr, flush=True)
        raise SystemExit(2)


if __name__ == "__main__":
    main()
