from __future__ import annotations

import warnings

import pytest

from nbmpi.config import (
    ConfigError,
    SimulationParams,
    iteration_count,
    load_config,
    parse_config_dict,
    validate_params,
)


def _params(**kw) -> SimulationParams:
    base = dict(time_period=10.0, delta_time=2.0, body_count=8, initial_body_mass=10.0)
    base.update(kw)
    return SimulationParams(**base)


def test_iteration_count_floors():
    assert iteration_count(10.0, 2.0) == 5
    assert iteration_count(10.0, 3.0) == 3
    assert iteration_count(0.7, 0.1) == 7
    assert iteration_count(0.3, 0.1) == 3
    assert iteration_count(0.75, 0.1) == 7
    assert _params().iterations == 5


def test_softening_sq():
    assert _params(softening_length=3.0).softening_sq == 9.0


def test_validate_accepts_good_params():
    validate_params(_params(), 4)


@pytest.mark.parametrize(
    "kw,match",
    [
        (dict(time_period=0.0), "time_period"),
        (dict(delta_time=-1.0), "delta_time"),
        (dict(body_count=0), "body_count"),
        (dict(initial_body_mass=0.0), "initial_body_mass"),
        (dict(softening_length=-1.0), "softening_length"),
        (dict(dtype="float16"), "dtype"),
        (dict(time_period=1.0, delta_time=2.0), "at least one iteration"),
    ],
)
def test_validate_rejects_bad_params(kw, match):
    with pytest.raises(ConfigError, match=match):
        validate_params(_params(**kw), 1)


def test_validate_rejects_uneven_worker_split():
    with pytest.raises(ConfigError, match="evenly divisible"):
        validate_params(_params(body_count=10), 4)


def test_validate_warns_when_period_not_multiple_of_step():
    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter("always")
        validate_params(_params(time_period=10.0, delta_time=3.0), 1)
    assert any("not a multiple" in str(x.message) for x in w)


def test_validate_decimal_multiple_does_not_warn():
    with warnings.catch_warnings(record=True) as w:
        warnings.simplefilter("always")
        validate_params(_params(time_period=0.7, delta_time=0.1), 1)
    assert not [x for x in w if "not a multiple" in str(x.message)]
    assert _params(time_period=0.7, delta_time=0.1).iterations == 7


def test_load_config_roundtrip(tmp_path):
    cfg_text = """
system:
  body_count: 8
  initial_body_mass: 10000.0
  seed: 3
run:
  time_period: 1.0
  delta_time: 0.1
  softening_length: 100.0
  dtype: float32
workers:
  local: 4
"""
    path = tmp_path / "cfg.yaml"
    path.write_text(cfg_text, encoding="utf-8")
    cfg = load_config(str(path))
    assert cfg.system.body_count == 8
    assert cfg.system.velocity_scale == 100.0
    assert cfg.workers.local == 4
    p = cfg.params()
    assert p.dtype == "float32"
    assert p.seed == 3
    assert p.softening_sq == pytest.approx(10000.0)


def test_parse_config_rejects_unknown_keys():
    d = {
        "system": {"body_count": 4, "initial_body_mass": 1.0, "octree": True},
        "run": {"time_period": 1.0, "delta_time": 0.5},
    }
    with pytest.raises(ConfigError, match="unsupported keys"):
        parse_config_dict(d)


def test_parse_config_rejects_missing_keys_and_sections():
    with pytest.raises(ConfigError, match="run section"):
        parse_config_dict({"system": {"body_count": 4, "initial_body_mass": 1.0}})
    with pytest.raises(ConfigError, match="delta_time"):
        parse_config_dict(
            {"system": {"body_count": 4, "initial_body_mass": 1.0}, "run": {"time_period": 1.0}}
        )
    with pytest.raises(ConfigError, match="run.dtype"):
        parse_config_dict(
            {
                "system": {"body_count": 4, "initial_body_mass": 1.0},
                "run": {"time_period": 1.0, "delta_time": 0.5, "dtype": "int8"},
            }
        )


@pytest.mark.parametrize(
    "system,run,match",
    [
        ({"body_count": 8.5}, {}, "system.body_count must be an integer"),
        ({"body_count": "8"}, {}, "system.body_count must be an integer"),
        ({"seed": 1.5}, {}, "system.seed must be an integer"),
        ({}, {"progress": "false"}, "run.progress must be true or false"),
        ({}, {"progress": 1}, "run.progress must be true or false"),
    ],
)
def test_parse_config_rejects_loose_types(system, run, match):
    d = {
        "system": {"body_count": 4, "initial_body_mass": 1.0, **system},
        "run": {"time_period": 1.0, "delta_time": 0.5, **run},
    }
    with pytest.raises(ConfigError, match=match):
        parse_config_dict(d)


def test_parse_config_rejects_fractional_worker_count():
    d = {
        "system": {"body_count": 4, "initial_body_mass": 1.0},
        "run": {"time_period": 1.0, "delta_time": 0.5, "progress": True},
        "workers": {"local": 2.0},
    }
    with pytest.raises(ConfigError, match="workers.local must be an integer"):
        parse_config_dict(d)
