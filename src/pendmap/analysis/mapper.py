# src/pendmap/analysis/mapper.py
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING
import os
import time
import warnings
import numpy as np

from pendmap.errors import ConfigError
from pendmap.runtime.runner_api import TRIAL_CAP
from .classify import ClassifierConfig, ClassifyMode, build_kernels, point_kernel
from .grid import Grid, GridBlock, GridSpec
from .stats import MapStats

if TYPE_CHECKING:
    from pendmap.steppers.integrator import Integrator
    from pendmap.systems.base import SystemModel

__all__ = [
    "ColumnPartition",
    "partition_columns",
    "MapResult",
    "GridMapper",
    "map_basins",
]


@dataclass(frozen=True)
class ColumnPartition:
    """Column blocks for worker threads plus the tail kept by the caller."""
    blocks: tuple[range, ...]
    remainder: range

    def all_ranges(self) -> tuple[range, ...]:
        return self.blocks + (self.remainder,)


def partition_columns(n_columns: int, workers: int, min_block: int = 1) -> ColumnPartition:
    """
    Static split of ``range(n_columns)`` into contiguous blocks.

    Blocks hold ``max(min_block, n_columns // workers)`` columns and are cut
    from the left while a full block still leaves columns behind; whatever
    is left (at most one block, or the whole grid when it is smaller than a
    block) is the remainder processed by the calling thread.
    """
    if n_columns < 0:
        raise ValueError("n_columns must be non-negative")
    if workers < 1:
        raise ValueError("workers must be at least 1")
    if min_block < 1:
        raise ValueError("min_block must be at least 1")

    size = max(min_block, n_columns // workers)
    blocks = []
    start = 0
    while start < n_columns - size:
        blocks.append(range(start, start + size))
        start += size
    return ColumnPartition(blocks=tuple(blocks), remainder=range(start, n_columns))


@dataclass(frozen=True)
class MapResult:
    grid: Grid
    stats: MapStats
    elapsed: float


class GridMapper:
    """
    Classify every point of a grid of start positions, in parallel.

    Columns are split once into contiguous blocks; each block goes to its
    own thread and the calling thread takes the tail, then waits for the
    rest. Blocks never overlap, so the grid needs no locking. The model
    and its packed parameters are shared read-only; each block gets its
    own integrator workspace.
    """

    def __init__(
        self,
        system: SystemModel,
        integrator: Integrator,
        *,
        grid: GridSpec | None = None,
        classifier: ClassifierConfig | None = None,
        workers: int | None = None,
        min_block: int = 1,
        mode: ClassifyMode = "converge",
    ) -> None:
        if mode not in ("converge", "fixed"):
            raise ConfigError(f"mode must be 'converge' or 'fixed', got {mode!r}")
        if workers is None:
            workers = os.cpu_count() or 1
        if int(workers) < 1:
            raise ConfigError(f"workers must be at least 1, got {workers!r}")
        if int(min_block) < 1:
            raise ConfigError(f"min_block must be at least 1, got {min_block!r}")
        if system.n_state != 4:
            raise ConfigError(f"grid mapping needs a 4-component state (x, y, vx, vy), model has {system.n_state}")

        self.system = system
        self.integrator = integrator
        self.grid_spec = grid or GridSpec()
        self.classifier = classifier or ClassifierConfig()
        self.workers = int(workers)
        self.min_block = int(min_block)
        self.mode = mode

    def create_grid(self) -> Grid:
        return Grid(self.grid_spec)

    def partition(self, grid: Grid) -> ColumnPartition:
        return partition_columns(grid.n_columns, self.workers, self.min_block)

    def run(self, grid: Grid | None = None) -> MapResult:
        start = time.perf_counter()
        grid = grid if grid is not None else self.create_grid()
        if grid.n_columns:
            self._run_partitioned(grid)
        elapsed = time.perf_counter() - start

        self._warn_on_trial_cap(grid)
        stats = MapStats.from_grid(grid, computation_time=elapsed)
        return MapResult(grid=grid, stats=stats, elapsed=elapsed)

    def _run_partitioned(self, grid: Grid) -> None:
        ig = self.integrator
        kernels = build_kernels(ig.jit)
        shared = (
            point_kernel(kernels, self.mode),
            ig.stepper,
            self.system.kernel(jit=ig.jit),
            self.system.pack_params(),
            ig.config_array,
            np.ascontiguousarray(self.system.attractor_positions(), dtype=np.float64),
            self.classifier.pack(self.system),
        )
        n_state = self.system.n_state

        def _run(block: GridBlock) -> None:
            kernels.run_block(
                *shared,
                block.start_states, block.kind, block.index,
                block.time, block.steps, block.status,
                ig.make_workspace(n_state),
                np.empty(n_state, dtype=np.float64),
                np.empty(1, dtype=np.float64),
                np.empty(1, dtype=np.float64),
            )

        part = self.partition(grid)
        if not part.blocks:
            _run(grid.block(part.remainder))
            return

        with ThreadPoolExecutor(max_workers=len(part.blocks)) as ex:
            futures = [ex.submit(_run, grid.block(cols)) for cols in part.blocks]
            _run(grid.block(part.remainder))
            for fut in futures:
                fut.result()

    def _warn_on_trial_cap(self, grid: Grid) -> None:
        capped = int(np.count_nonzero(grid.status == TRIAL_CAP))
        if capped:
            warnings.warn(
                f"{capped} point(s) hit max_trials={self.classifier.max_trials} before "
                f"reaching their time limit; the step size may have stalled.",
                RuntimeWarning,
                stacklevel=3,
            )


def map_basins(
    system: SystemModel,
    integrator: Integrator,
    grid: GridSpec | None = None,
    classifier: ClassifierConfig | None = None,
    *,
    workers: int | None = None,
    min_block: int = 1,
    mode: ClassifyMode = "converge",
) -> MapResult:
    """One-shot: build the grid, classify every point, collect statistics."""
    mapper = GridMapper(
        system,
        integrator,
        grid=grid,
        classifier=classifier,
        workers=workers,
        min_block=min_block,
        mode=mode,
    )
    return mapper.run()
