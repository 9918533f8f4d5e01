# src/pendmap/analysis/stats.py
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING
import math
import numpy as np

from pendmap.runtime.runner_api import KIND_CENTER, KIND_UNCLASSIFIED

if TYPE_CHECKING:
    from .grid import Grid

__all__ = ["MapStats"]


@dataclass(frozen=True)
class MapStats:
    """
    Aggregates over a classified grid.

    Averages are taken over classified points only (attractor or centre);
    the maximum time is taken over every point.
    """
    points_integrated: int
    center_count: int
    unclassified_count: int
    avg_integration_time: float
    avg_step_count: float
    max_integration_time: float
    computation_time: float = 0.0

    @classmethod
    def from_grid(cls, grid: Grid, computation_time: float = 0.0) -> MapStats:
        classified = grid.kind != KIND_UNCLASSIFIED
        n_classified = int(np.count_nonzero(classified))
        if n_classified:
            avg_time = float(grid.time[classified].sum() / n_classified)
            avg_steps = float(grid.steps[classified].sum() / n_classified)
        else:
            avg_time = math.nan
            avg_steps = math.nan
        return cls(
            points_integrated=n_classified,
            center_count=int(np.count_nonzero(grid.kind == KIND_CENTER)),
            unclassified_count=int(grid.kind.size - n_classified),
            avg_integration_time=avg_time,
            avg_step_count=avg_steps,
            max_integration_time=float(grid.time.max()) if grid.time.size else 0.0,
            computation_time=float(computation_time),
        )

    def as_dict(self) -> dict[str, float | int]:
        return asdict(self)

    def summary(self) -> str:
        return "\n".join([
            f"Points integrated: {self.points_integrated}",
            f"Points unclassified: {self.unclassified_count}",
            f"Centre converge count: {self.center_count}",
            f"Average integration time: {self.avg_integration_time:g}",
            f"Average number of steps: {self.avg_step_count:g}",
            f"Max integration time: {self.max_integration_time:g}",
            f"Elapsed time: {self.computation_time:.3f}s",
        ])
