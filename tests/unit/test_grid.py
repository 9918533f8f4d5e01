# tests/unit/test_grid.py
from __future__ import annotations

import numpy as np
import pytest

from pendmap import ConfigError, Grid, GridSpec, Outcome, OutcomeKind, Status


def test_grid_dims_and_exact_coordinates():
    spec = GridSpec(-1.0, 1.0, -1.0, 1.0, 0.5)
    grid = Grid(spec)
    assert grid.shape == (5, 5)
    expected = [-1.0, -0.5, 0.0, 0.5, 1.0]
    assert grid.x.tolist() == expected
    assert grid.y.tolist() == expected
    for i in range(5):
        for j in range(5):
            p = grid.point(i, j)
            assert p.start_state == (expected[i], expected[j], 0.0, 0.0)


def test_coordinates_are_integer_multiples_of_resolution():
    spec = GridSpec(-10.0, 10.0, -3.0, 7.0, 0.1)
    grid = Grid(spec)
    assert grid.shape == (201, 101)
    # same values no matter the order they are read in
    for i in reversed(range(grid.n_columns)):
        assert grid.x[i] == (i - 100) * 0.1
    for j in range(grid.n_rows):
        assert grid.y[j] == (j - 30) * 0.1


def test_grid_starts_pending_and_unclassified():
    grid = Grid(GridSpec(0.0, 1.0, 0.0, 1.0, 0.5))
    assert not grid.complete
    p = grid.point(1, 2)
    assert p.outcome == Outcome.UNCLASSIFIED
    assert p.status is Status.PENDING
    assert p.time == 0.0 and p.steps == 0


def test_start_states_are_read_only():
    grid = Grid(GridSpec(0.0, 1.0, 0.0, 1.0, 0.5))
    with pytest.raises(ValueError):
        grid.start_states[0, 0, 0] = 3.0


def test_block_views_write_through_and_stay_in_range():
    grid = Grid(GridSpec(0.0, 2.0, 0.0, 1.0, 0.5))
    block = grid.block(range(1, 3))
    assert len(block) == 2
    assert block.kind.shape == (2, grid.n_rows)
    block.kind[:] = OutcomeKind.CENTER
    block.time[0, 0] = 4.5
    assert grid.outcome(1, 0) == Outcome.CENTER
    assert grid.time[1, 0] == 4.5
    assert grid.outcome(0, 0) == Outcome.UNCLASSIFIED
    assert grid.outcome(3, 0) == Outcome.UNCLASSIFIED
    np.testing.assert_array_equal(block.start_states, grid.start_states[1:3])

    with pytest.raises(ValueError):
        grid.block(range(3, grid.n_columns + 1))


def test_outcome_variant():
    a = Outcome.attractor(2)
    assert a.kind is OutcomeKind.ATTRACTOR and a.index == 2
    assert a.classified and Outcome.CENTER.classified
    assert not Outcome.UNCLASSIFIED.classified
    assert Outcome.from_codes(OutcomeKind.ATTRACTOR, 2) == a
    assert Outcome.from_codes(OutcomeKind.CENTER, -1) is Outcome.CENTER
    assert str(a) == "attractor[2]"
    with pytest.raises(ValueError):
        Outcome(OutcomeKind.ATTRACTOR)
    with pytest.raises(ValueError):
        Outcome(OutcomeKind.CENTER, 1)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(resolution=0.0),
        dict(resolution=-0.1),
        dict(x_start=1.0, x_end=0.0),
        dict(y_end=float("nan")),
    ],
)
def test_invalid_grid_spec(kwargs):
    with pytest.raises(ConfigError):
        GridSpec(**kwargs)
