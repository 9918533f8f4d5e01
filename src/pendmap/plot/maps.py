# src/pendmap/plot/maps.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence
import math
import numpy as np
import matplotlib
import matplotlib.pyplot as plt

from pendmap.analysis.grid import Grid
from pendmap.errors import ConfigError
from pendmap.runtime.runner_api import KIND_ATTRACTOR, KIND_CENTER

__all__ = [
    "ColorTable",
    "position_image",
    "time_image",
    "save_map_images",
    "plot_basins",
]

RGB = tuple[int, int, int]


def _default_attractor_colors() -> list[RGB]:
    return [(255, 140, 0), (30, 144, 255), (178, 34, 34)]


def _check_rgb(name: str, rgb: Sequence[int]) -> RGB:
    if len(rgb) != 3 or any(not 0 <= int(c) <= 255 for c in rgb):
        raise ConfigError(f"{name} must be three integers in [0, 255], got {tuple(rgb)!r}")
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]))


@dataclass
class ColorTable:
    """One colour per attractor (by index), plus centre and no-convergence colours."""
    attractors: list[RGB] = field(default_factory=_default_attractor_colors)
    center: RGB = (0, 0, 0)
    unclassified: RGB = (255, 255, 255)

    def __post_init__(self) -> None:
        self.attractors = [_check_rgb(f"attractor color {i}", c) for i, c in enumerate(self.attractors)]
        self.center = _check_rgb("center color", self.center)
        self.unclassified = _check_rgb("unclassified color", self.unclassified)

    def set_attractor_color(self, index: int, rgb: Sequence[int]) -> None:
        self.attractors[index] = _check_rgb(f"attractor color {index}", rgb)

    def add_attractor_color(self, rgb: Sequence[int]) -> None:
        self.attractors.append(_check_rgb(f"attractor color {len(self.attractors)}", rgb))

    def clear_attractor_colors(self) -> None:
        self.attractors.clear()


def _to_image(arr: np.ndarray) -> np.ndarray:
    # grid [column, row] -> image [row, column] with y_end on top
    return np.ascontiguousarray(np.swapaxes(arr, 0, 1)[::-1])


def position_image(grid: Grid, colors: ColorTable | None = None) -> np.ndarray:
    """RGB uint8 image of the classification, shape (n_rows, n_columns, 3)."""
    colors = colors or ColorTable()
    attractor_mask = grid.kind == KIND_ATTRACTOR
    if attractor_mask.any():
        needed = int(grid.index[attractor_mask].max()) + 1
        if needed > len(colors.attractors):
            raise ConfigError(
                f"map uses {needed} attractors but only {len(colors.attractors)} colors are set"
            )

    palette = np.array(colors.attractors + [colors.center, colors.unclassified], dtype=np.uint8)
    n_attr = len(colors.attractors)
    codes = np.full(grid.shape, n_attr + 1, dtype=np.int64)
    codes[attractor_mask] = grid.index[attractor_mask]
    codes[grid.kind == KIND_CENTER] = n_attr
    return _to_image(palette[codes])


def time_image(grid: Grid) -> np.ndarray:
    """
    Grey-scale image of convergence time: white for t = 0, darkening by
    ``floor(255 / round(max_t))`` per whole time unit.
    """
    t_round = np.rint(grid.time).astype(np.int64)
    max_round = int(round(float(grid.time.max()))) if grid.time.size else 0
    scale = math.floor(255.0 / max_round) if max_round > 0 else 0
    grey = np.clip(255 - t_round * scale, 0, 255).astype(np.uint8)
    return _to_image(np.repeat(grey[:, :, None], 3, axis=2))


def save_map_images(
    grid: Grid,
    directory: str | Path,
    name: str = "",
    *,
    colors: ColorTable | None = None,
) -> list[Path]:
    """
    Write ``position_map<name>.png`` and ``time_map<name>.png`` into
    `directory`, one pixel per grid point. Returns the written paths.
    """
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    written = []
    for stem, img in (
        ("position_map", position_image(grid, colors)),
        ("time_map", time_image(grid)),
    ):
        path = out_dir / f"{stem}{name}.png"
        plt.imsave(path, img)
        written.append(path)
    return written


def plot_basins(
    grid: Grid,
    *,
    ax: matplotlib.axes.Axes | None = None,
    colors: ColorTable | None = None,
    title: str | None = None,
) -> matplotlib.axes.Axes:
    """Draw the classification map in physical coordinates."""
    if ax is None:
        _, ax = plt.subplots()
    res = grid.spec.resolution
    extent = (
        grid.x[0] - res / 2, grid.x[-1] + res / 2,
        grid.y[0] - res / 2, grid.y[-1] + res / 2,
    )
    ax.imshow(position_image(grid, colors), extent=extent, origin="upper", interpolation="nearest")
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    if title:
        ax.set_title(title)
    return ax
