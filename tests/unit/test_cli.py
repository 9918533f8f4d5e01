# tests/unit/test_cli.py
from __future__ import annotations

import pytest

from pendmap.cli import main
from pendmap.report import load_report


TINY_RUN = """
[grid]
x = [-1.0, 1.0]
y = [-1.0, 1.0]
resolution = 1.0

[classify]
mode = "fixed"
dt = 0.01
t_end = 0.2

[integrator]
stepper = "rk4"

[parallel]
workers = 2

[output]
directory = "out"
name = "001"
"""


def test_steppers_list(capsys):
    assert main(["steppers", "list"]) == 0
    out = capsys.readouterr().out
    lines = out.strip().splitlines()
    assert "rk4: time_control=fixed, order=4, embedded_order=None, aliases=rk4_classic, classical_rk4" in lines
    assert "ck45: time_control=adaptive, order=5, embedded_order=4, aliases=cash_karp, rkck" in lines
    # aliases are not listed as separate steppers
    assert not any(line.startswith("rkck:") for line in lines)


def test_run_writes_images_and_report(tmp_path, capsys):
    cfg = tmp_path / "run.toml"
    cfg.write_text(TINY_RUN, encoding="utf-8")

    assert main(["run", str(cfg), "--no-jit"]) == 0
    out = capsys.readouterr().out
    assert "Integrating 3x3 points" in out
    assert "Points integrated: " in out

    out_dir = tmp_path / "out"
    for name in ("position_map001.png", "time_map001.png", "report001.json"):
        assert (out_dir / name).exists()
        assert f"wrote {out_dir / name}" in out

    report = load_report(out_dir / "report001.json")
    entry = report["maps"]["map001"]
    assert entry["stepper"] == "rk4" and entry["mode"] == "fixed"
    # the origin is never integrated, every other start point is
    assert entry["points_integrated"] + entry["unclassified_count"] == 9


def test_run_overrides_name_and_directory(tmp_path, capsys):
    cfg = tmp_path / "run.toml"
    cfg.write_text(TINY_RUN, encoding="utf-8")
    target = tmp_path / "elsewhere"

    rc = main(["run", str(cfg), "--no-jit", "--name", "_b", "--out", str(target), "--workers", "1"])
    assert rc == 0
    assert (target / "position_map_b.png").exists()
    assert (target / "report_b.json").exists()
    assert "workers=1" in capsys.readouterr().out


def test_missing_run_file_reports_error(tmp_path, capsys):
    assert main(["run", str(tmp_path / "missing.toml")]) == 1
    err = capsys.readouterr().err
    assert err.startswith("error: Run file not found")


def test_bad_worker_count_reports_error(tmp_path, capsys):
    cfg = tmp_path / "run.toml"
    cfg.write_text(TINY_RUN, encoding="utf-8")
    assert main(["run", str(cfg), "--no-jit", "--workers", "0"]) == 1
    assert "workers" in capsys.readouterr().err


def test_command_is_required():
    with pytest.raises(SystemExit):
        main([])


def test_bad_value_type_reports_error(tmp_path, capsys):
    cfg = tmp_path / "run.toml"
    cfg.write_text(TINY_RUN.replace("resolution = 1.0", 'resolution = "fine"'), encoding="utf-8")
    assert main(["run", str(cfg), "--no-jit"]) == 1
    err = capsys.readouterr().err
    assert err.startswith("error: [grid].resolution must be a number")
