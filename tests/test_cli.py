from __future__ import annotations

import json
from pathlib import Path

import pytest

from nbmpi.main import main

ROOT = Path(__file__).resolve().parents[1]


def test_run_serial_prints_report(capsys):
    main(["run", "--mode", "serial", "1", "0.5", "4", "10", "0.1"])
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "4"
    assert len(lines) == 3 + 4 * 4 + 2 * 4


def test_run_local_matches_serial_report(capsys):
    main(["run", "--mode", "serial", "1", "0.5", "4", "10", "0.1", "7"])
    serial_out = capsys.readouterr().out
    main(["run", "--mode", "local", "--workers", "2", "1", "0.5", "4", "10", "0.1", "7"])
    local_out = capsys.readouterr().out
    assert local_out == serial_out


def test_run_with_config_and_out(tmp_path, capsys):
    out = tmp_path / "report.txt"
    main(["run", "--mode", "local", "--config", str(ROOT / "examples" / "disc_8.yaml"), "--out", str(out)])
    assert capsys.readouterr().out == ""
    lines = out.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3 + 8 * 4 + 16 * 8
    manifest = json.loads(Path(f"{out}.manifest.json").read_text(encoding="utf-8"))
    assert manifest["workers"] == 4


def test_run_with_bodies_file(capsys):
    main(
        [
            "run",
            "--mode",
            "local",
            "--workers",
            "2",
            "--bodies",
            str(ROOT / "examples" / "two_bodies.yaml"),
            "1",
            "1",
            "2",
            "1",
            "0",
        ]
    )
    lines = capsys.readouterr().out.splitlines()
    # separation 2, unit masses: |a| = 1/4
    assert lines[-2:] == ["0.250000 0.000000", "-0.250000 0.000000"]


def test_verify_exits_zero_when_identical(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["verify", "--workers", "4", "1", "0.25", "8", "10", "0.1"])
    assert exc.value.code == 0
    assert "identical=True" in capsys.readouterr().out


def test_uneven_split_is_configuration_error(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["run", "--mode", "local", "--workers", "2", "1", "0.5", "5", "10", "0.1"])
    assert exc.value.code == 2
    assert "evenly divisible" in capsys.readouterr().err


def test_wrong_positional_count():
    with pytest.raises(SystemExit, match="expected 5 or 6"):
        main(["run", "--mode", "serial", "1", "0.5", "4"])


def test_missing_parameters():
    with pytest.raises(SystemExit, match="parameters required"):
        main(["run", "--mode", "serial"])


@pytest.mark.parametrize("mode", ["mpi", "local"])
def test_bodies_file_count_mismatch_fails_before_launch(mode, capsys):
    bodies = str(ROOT / "examples" / "two_bodies.yaml")
    with pytest.raises(SystemExit) as exc:
        main(["run", "--mode", mode, "--workers", "2", "--bodies", bodies, "1", "1", "4", "1", "0"])
    assert exc.value.code == 2
    err = capsys.readouterr().err
    assert "has 2 bodies, body_count=4" in err
    assert "[mpi rank=" not in err
