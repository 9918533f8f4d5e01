# src/pendmap/analysis/grid.py
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Iterator
import math
import numpy as np

from pendmap.errors import ConfigError
from pendmap.runtime.runner_api import (
    Status, PENDING, KIND_ATTRACTOR, KIND_CENTER, KIND_UNCLASSIFIED,
)

__all__ = [
    "OutcomeKind",
    "Outcome",
    "Point",
    "GridSpec",
    "Grid",
    "GridBlock",
]


class OutcomeKind(IntEnum):
    ATTRACTOR = KIND_ATTRACTOR
    CENTER = KIND_CENTER
    UNCLASSIFIED = KIND_UNCLASSIFIED


@dataclass(frozen=True)
class Outcome:
    """
    Classification of one start point: ``Outcome.attractor(i)``,
    ``Outcome.CENTER`` or ``Outcome.UNCLASSIFIED``. Only attractor outcomes
    carry an index.
    """
    kind: OutcomeKind
    index: int | None = None

    CENTER: ClassVar[Outcome]
    UNCLASSIFIED: ClassVar[Outcome]

    def __post_init__(self) -> None:
        if self.kind is OutcomeKind.ATTRACTOR:
            if self.index is None or self.index < 0:
                raise ValueError("attractor outcome needs a non-negative index")
        elif self.index is not None:
            raise ValueError(f"{self.kind.name.lower()} outcome takes no index")

    @classmethod
    def attractor(cls, index: int) -> Outcome:
        return cls(OutcomeKind.ATTRACTOR, int(index))

    @classmethod
    def from_codes(cls, kind: int, index: int) -> Outcome:
        kind = OutcomeKind(int(kind))
        if kind is OutcomeKind.ATTRACTOR:
            return cls.attractor(index)
        return cls.CENTER if kind is OutcomeKind.CENTER else cls.UNCLASSIFIED

    @property
    def classified(self) -> bool:
        return self.kind is not OutcomeKind.UNCLASSIFIED

    def __str__(self) -> str:
        if self.kind is OutcomeKind.ATTRACTOR:
            return f"attractor[{self.index}]"
        return self.kind.name.lower()


Outcome.CENTER = Outcome(OutcomeKind.CENTER)
Outcome.UNCLASSIFIED = Outcome(OutcomeKind.UNCLASSIFIED)


@dataclass(frozen=True)
class Point:
    """Read-only snapshot of one grid cell."""
    column: int
    row: int
    start_state: tuple[float, float, float, float]
    outcome: Outcome
    time: float
    steps: int
    status: Status


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


@dataclass(frozen=True)
class GridSpec:
    """
    Rectangle of start positions sampled every `resolution`.

    Coordinates are integer multiples of the resolution,
    ``(round(start / res) + i) * res``, so no rounding error accumulates
    along a row or column.
    """
    x_start: float = -10.0
    x_end: float = 10.0
    y_start: float = -10.0
    y_end: float = 10.0
    resolution: float = 0.05

    def __post_init__(self) -> None:
        vals = (self.x_start, self.x_end, self.y_start, self.y_end, self.resolution)
        if not all(math.isfinite(v) for v in vals):
            raise ConfigError("grid bounds and resolution must be finite")
        if not self.resolution > 0.0:
            raise ConfigError(f"grid resolution must be positive, got {self.resolution!r}")
        if self.x_end < self.x_start or self.y_end < self.y_start:
            raise ConfigError("grid end must not be below grid start")

    @property
    def n_columns(self) -> int:
        return _round_half_away((self.x_end - self.x_start) / self.resolution) + 1

    @property
    def n_rows(self) -> int:
        return _round_half_away((self.y_end - self.y_start) / self.resolution) + 1

    @property
    def shape(self) -> tuple[int, int]:
        return (self.n_columns, self.n_rows)

    def x_coords(self) -> np.ndarray:
        first = _round_half_away(self.x_start / self.resolution)
        return (first + np.arange(self.n_columns, dtype=np.int64)) * self.resolution

    def y_coords(self) -> np.ndarray:
        first = _round_half_away(self.y_start / self.resolution)
        return (first + np.arange(self.n_rows, dtype=np.int64)) * self.resolution


@dataclass(frozen=True)
class GridBlock:
    """
    Column range of a grid handed to one worker.

    Every array is a view into the owning grid restricted to `columns`;
    writes land in the grid and cannot reach columns outside the range.
    """
    columns: range
    start_states: np.ndarray
    kind: np.ndarray
    index: np.ndarray
    time: np.ndarray
    steps: np.ndarray
    status: np.ndarray

    def __len__(self) -> int:
        return len(self.columns)


class Grid:
    """
    Arena of grid cells indexed ``[column, row]``.

    Start states are fixed at construction; classification results live in
    parallel buffers that workers fill through disjoint `GridBlock` views.
    """

    def __init__(self, spec: GridSpec):
        self.spec = spec
        nx, ny = spec.shape
        self.x = spec.x_coords()
        self.y = spec.y_coords()

        states = np.zeros((nx, ny, 4), dtype=np.float64)
        states[:, :, 0] = self.x[:, None]
        states[:, :, 1] = self.y[None, :]
        states.setflags(write=False)
        self.start_states = states

        self.kind = np.full((nx, ny), KIND_UNCLASSIFIED, dtype=np.int8)
        self.index = np.full((nx, ny), -1, dtype=np.int32)
        self.time = np.zeros((nx, ny), dtype=np.float64)
        self.steps = np.zeros((nx, ny), dtype=np.int64)
        self.status = np.full((nx, ny), PENDING, dtype=np.int8)

    @property
    def shape(self) -> tuple[int, int]:
        return self.kind.shape

    @property
    def n_columns(self) -> int:
        return self.kind.shape[0]

    @property
    def n_rows(self) -> int:
        return self.kind.shape[1]

    def __len__(self) -> int:
        return self.kind.size

    def block(self, columns: range) -> GridBlock:
        if columns.step != 1 or columns.start < 0 or columns.stop > self.n_columns:
            raise ValueError(f"invalid column range {columns} for {self.n_columns} columns")
        sl = slice(columns.start, columns.stop)
        return GridBlock(
            columns=columns,
            start_states=self.start_states[sl],
            kind=self.kind[sl],
            index=self.index[sl],
            time=self.time[sl],
            steps=self.steps[sl],
            status=self.status[sl],
        )

    def outcome(self, column: int, row: int) -> Outcome:
        return Outcome.from_codes(self.kind[column, row], self.index[column, row])

    def point(self, column: int, row: int) -> Point:
        s = self.start_states[column, row]
        return Point(
            column=column,
            row=row,
            start_state=(float(s[0]), float(s[1]), float(s[2]), float(s[3])),
            outcome=self.outcome(column, row),
            time=float(self.time[column, row]),
            steps=int(self.steps[column, row]),
            status=Status(int(self.status[column, row])),
        )

    def points(self) -> Iterator[Point]:
        for i in range(self.n_columns):
            for j in range(self.n_rows):
                yield self.point(i, j)

    @property
    def complete(self) -> bool:
        return not bool(np.any(self.status == PENDING))

    def __repr__(self) -> str:
        return f"Grid({self.n_columns}x{self.n_rows}, spec={self.spec})"
