from __future__ import annotations
import math
import warnings
from dataclasses import dataclass
from typing import Any, Dict, Literal

import yaml

from .constants import DEFAULT_VELOCITY_SCALE, SUPPORTED_DTYPES

DTypeName = Literal["float32", "float64"]

_SECTION_KEYS = {
    "system": {"body_count", "initial_body_mass", "velocity_scale", "seed", "bodies_file"},
    "run": {"time_period", "delta_time", "softening_length", "dtype", "progress"},
    "workers": {"local"},
}


class ConfigError(ValueError):
    pass


@dataclass
class SystemConfig:
    body_count: int
    initial_body_mass: float
    velocity_scale: float = DEFAULT_VELOCITY_SCALE
    seed: int = 1
    bodies_file: str = ""

@dataclass
class RunConfig:
    time_period: float
    delta_time: float
    softening_length: float = 0.0
    dtype: DTypeName = "float64"
    progress: bool = False

@dataclass
class WorkersConfig:
    local: int = 1

@dataclass
class Config:
    system: SystemConfig
    run: RunConfig
    workers: WorkersConfig

    def params(self) -> "SimulationParams":
        return SimulationParams(
            time_period=float(self.run.time_period),
            delta_time=float(self.run.delta_time),
            body_count=int(self.system.body_count),
            initial_body_mass=float(self.system.initial_body_mass),
            softening_length=float(self.run.softening_length),
            velocity_scale=float(self.system.velocity_scale),
            seed=int(self.system.seed),
            dtype=str(self.run.dtype),
        )


@dataclass(frozen=True)
class SimulationParams:
    """Run parameters shared by every worker.

    Every rank builds the same instance from the same inputs, so validation
    failures are raised identically everywhere before any collective call.
    """

    time_period: float
    delta_time: float
    body_count: int
    initial_body_mass: float
    softening_length: float = 0.0
    velocity_scale: float = DEFAULT_VELOCITY_SCALE
    seed: int = 1
    dtype: DTypeName = "float64"

    @property
    def softening_sq(self) -> float:
        return float(self.softening_length) * float(self.softening_length)

    @property
    def iterations(self) -> int:
        return iteration_count(self.time_period, self.delta_time)


def _step_ratio(time_period: float, delta_time: float) -> float:
    if not float(delta_time) > 0.0:
        raise ConfigError("delta_time must be > 0")
    return float(time_period) / float(delta_time)


def _is_whole(q: float) -> bool:
    return math.isclose(q, round(q), rel_tol=1e-9)


def iteration_count(time_period: float, delta_time: float) -> int:
    """Number of timesteps: ``floor(time_period / delta_time)``.

    A ratio within rounding of a whole number (0.7 / 0.1) counts as that number.
    """
    q = _step_ratio(time_period, delta_time)
    if _is_whole(q):
        return int(round(q))
    return int(math.floor(q))


def validate_params(params: SimulationParams, worker_count: int) -> None:
    if not float(params.time_period) > 0.0:
        raise ConfigError("time_period must be > 0")
    if not float(params.delta_time) > 0.0:
        raise ConfigError("delta_time must be > 0")
    if int(params.body_count) <= 0:
        raise ConfigError("body_count must be > 0")
    if not float(params.initial_body_mass) > 0.0:
        raise ConfigError("initial_body_mass must be > 0")
    if not float(params.softening_length) >= 0.0:
        raise ConfigError("softening_length must be >= 0")
    if not math.isfinite(float(params.velocity_scale)):
        raise ConfigError("velocity_scale must be finite")
    if str(params.dtype) not in SUPPORTED_DTYPES:
        raise ConfigError(f"dtype must be one of {list(SUPPORTED_DTYPES)}")
    if int(worker_count) < 1:
        raise ConfigError("worker_count must be >= 1")
    if int(params.body_count) % int(worker_count) != 0:
        raise ConfigError(
            f"body_count={int(params.body_count)} must be evenly divisible by "
            f"worker_count={int(worker_count)}"
        )
    n_iter = params.iterations
    if n_iter < 1:
        raise ConfigError("time_period / delta_time must allow at least one iteration")
    if not _is_whole(_step_ratio(params.time_period, params.delta_time)):
        warnings.warn(
            f"time_period={params.time_period} is not a multiple of delta_time={params.delta_time}; "
            f"running {n_iter} iterations",
            RuntimeWarning,
        )


def _expect_int(x: Any, key: str) -> int:
    if isinstance(x, bool) or not isinstance(x, int):
        raise ConfigError(f"{key} must be an integer")
    return int(x)


def _expect_bool(x: Any, key: str) -> bool:
    if not isinstance(x, bool):
        raise ConfigError(f"{key} must be true or false")
    return x


def _section(d: Dict[str, Any], key: str, *, required: bool) -> Dict[str, Any]:
    sec = d.get(key, None)
    if sec is None:
        if required:
            raise ConfigError(f"{key} section is required")
        return {}
    if not isinstance(sec, dict):
        raise ConfigError(f"{key} must be a mapping")
    extra = sorted(set(sec.keys()) - _SECTION_KEYS[key])
    if extra:
        raise ConfigError(f"{key} contains unsupported keys: {extra}")
    return sec


def parse_config_dict(d: Any) -> Config:
    if not isinstance(d, dict):
        raise ConfigError("config root must be a mapping")
    extra = sorted(set(d.keys()) - set(_SECTION_KEYS))
    if extra:
        raise ConfigError(f"config contains unsupported sections: {extra}")
    system = _section(d, "system", required=True)
    run = _section(d, "run", required=True)
    workers = _section(d, "workers", required=False)

    dtype = str(run.get("dtype", "float64")).strip().lower()
    if dtype not in SUPPORTED_DTYPES:
        raise ConfigError(f"run.dtype must be one of {list(SUPPORTED_DTYPES)}")
    try:
        return Config(
            system=SystemConfig(
                body_count=_expect_int(system["body_count"], "system.body_count"),
                initial_body_mass=float(system["initial_body_mass"]),
                velocity_scale=float(system.get("velocity_scale", DEFAULT_VELOCITY_SCALE)),
                seed=_expect_int(system.get("seed", 1), "system.seed"),
                bodies_file=str(system.get("bodies_file", "") or ""),
            ),
            run=RunConfig(
                time_period=float(run["time_period"]),
                delta_time=float(run["delta_time"]),
                softening_length=float(run.get("softening_length", 0.0)),
                dtype=dtype,
                progress=_expect_bool(run.get("progress", False), "run.progress"),
            ),
            workers=WorkersConfig(local=_expect_int(workers.get("local", 1), "workers.local")),
        )
    except ConfigError:
        raise
    except KeyError as exc:
        raise ConfigError(f"missing required key: {exc.args[0]}") from exc
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid config value: {exc}") from exc


def read_config_dict(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        d = yaml.safe_load(f)
    return {} if d is None else d


def load_config(path: str) -> Config:
    return parse_config_dict(read_config_dict(path))
