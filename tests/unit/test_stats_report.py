# tests/unit/test_stats_report.py
from __future__ import annotations

import json
import math

import numpy as np
import pytest

from pendmap import Grid, GridSpec, MapStats, OutcomeKind
from pendmap.report import MapReport, load_report


def _filled_grid() -> Grid:
    grid = Grid(GridSpec(0.0, 1.0, 0.0, 1.0, 1.0))  # 2 x 2
    grid.kind[:] = [[OutcomeKind.ATTRACTOR, OutcomeKind.CENTER],
                    [OutcomeKind.UNCLASSIFIED, OutcomeKind.ATTRACTOR]]
    grid.index[:] = [[1, -1], [-1, 0]]
    grid.time[:] = [[4.0, 6.0], [0.0, 8.0]]
    grid.steps[:] = [[40, 60], [25, 80]]
    return grid


def test_stats_from_grid():
    stats = MapStats.from_grid(_filled_grid(), computation_time=1.5)
    assert stats.points_integrated == 3
    assert stats.center_count == 1
    assert stats.unclassified_count == 1
    assert stats.avg_integration_time == pytest.approx(6.0)
    # unclassified steps do not count towards the average
    assert stats.avg_step_count == pytest.approx(60.0)
    assert stats.max_integration_time == 8.0
    assert stats.computation_time == 1.5


def test_stats_with_nothing_classified():
    stats = MapStats.from_grid(Grid(GridSpec(0.0, 1.0, 0.0, 0.0, 0.5)))
    assert stats.points_integrated == 0
    assert stats.unclassified_count == 3
    assert math.isnan(stats.avg_integration_time)
    assert math.isnan(stats.avg_step_count)
    assert stats.max_integration_time == 0.0


def test_summary_lines():
    text = MapStats.from_grid(_filled_grid()).summary()
    lines = text.splitlines()
    assert lines[0] == "Points integrated: 3"
    assert lines[1] == "Points unclassified: 1"
    assert lines[2] == "Centre converge count: 1"
    assert "Average integration time: 6" in text
    assert "Max integration time: 8" in text


def test_report_round_trip(tmp_path):
    report = MapReport()
    report.add("map000", MapStats.from_grid(_filled_grid()), extra={"stepper": "rk4"})
    report.add("empty", MapStats.from_grid(Grid(GridSpec(0.0, 0.0, 0.0, 0.0, 1.0))))
    assert len(report) == 2

    path = report.write(tmp_path / "out" / "report.json")
    assert path.exists()
    data = load_report(path)
    assert data["created"] == report.created
    entry = data["maps"]["map000"]
    assert entry["points_integrated"] == 3
    assert entry["stepper"] == "rk4"
    # NaN averages are stored as null, which plain json can read back
    assert data["maps"]["empty"]["avg_integration_time"] is None
    assert "NaN" not in path.read_text(encoding="utf-8")
    json.loads(path.read_text(encoding="utf-8"))


def test_stats_as_dict_keys():
    d = MapStats.from_grid(_filled_grid()).as_dict()
    assert set(d) == {
        "points_integrated", "center_count", "unclassified_count",
        "avg_integration_time", "avg_step_count", "max_integration_time",
        "computation_time",
    }
    assert isinstance(d["points_integrated"], int)
    assert np.isfinite(d["avg_step_count"])
