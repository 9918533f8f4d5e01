# tests/unit/test_plot_maps.py
from __future__ import annotations

import matplotlib.pyplot as plt
import numpy as np
import pytest

from pendmap import ConfigError, Grid, GridSpec, OutcomeKind
from pendmap.plot import ColorTable, plot_basins, position_image, save_map_images, time_image


def _grid() -> Grid:
    grid = Grid(GridSpec(0.0, 1.0, 0.0, 1.0, 1.0))
    # [column, row]
    grid.kind[:] = [[OutcomeKind.ATTRACTOR, OutcomeKind.CENTER],
                    [OutcomeKind.UNCLASSIFIED, OutcomeKind.ATTRACTOR]]
    grid.index[:] = [[1, -1], [-1, 0]]
    grid.time[:] = [[4.0, 6.0], [0.0, 8.0]]
    return grid


def test_position_image_colors_and_orientation():
    colors = ColorTable(attractors=[(10, 20, 30), (40, 50, 60)])
    img = position_image(_grid(), colors)
    assert img.shape == (2, 2, 3) and img.dtype == np.uint8
    # top row is the largest y
    assert tuple(img[0, 0]) == (0, 0, 0)          # (x=0, y=1) centre
    assert tuple(img[0, 1]) == (10, 20, 30)       # (x=1, y=1) attractor 0
    assert tuple(img[1, 0]) == (40, 50, 60)       # (x=0, y=0) attractor 1
    assert tuple(img[1, 1]) == (255, 255, 255)    # (x=1, y=0) unclassified


def test_missing_attractor_color_is_an_error():
    with pytest.raises(ConfigError):
        position_image(_grid(), ColorTable(attractors=[(1, 2, 3)]))


def test_time_image_scales_by_whole_time_units():
    img = time_image(_grid())
    grey = img[:, :, 0]
    assert np.all(img[:, :, 0] == img[:, :, 2])
    # floor(255 / 8) = 31 per unit
    assert grey.tolist() == [[255 - 6 * 31, 255 - 8 * 31], [255 - 4 * 31, 255]]


def test_time_image_all_zero():
    img = time_image(Grid(GridSpec(0.0, 1.0, 0.0, 1.0, 0.5)))
    assert np.all(img == 255)


def test_color_table_edits():
    colors = ColorTable()
    assert len(colors.attractors) == 3
    colors.set_attractor_color(0, (1, 1, 1))
    colors.add_attractor_color([2, 2, 2])
    assert colors.attractors[0] == (1, 1, 1) and colors.attractors[-1] == (2, 2, 2)
    colors.clear_attractor_colors()
    assert colors.attractors == []
    with pytest.raises(ConfigError):
        colors.add_attractor_color((0, 0, 256))
    with pytest.raises(ConfigError):
        ColorTable(center=(0, 0))


def test_save_map_images(tmp_path):
    written = save_map_images(_grid(), tmp_path / "maps", "007")
    names = sorted(p.name for p in written)
    assert names == ["position_map007.png", "time_map007.png"]
    for path in written:
        assert path.exists()
        assert plt.imread(path).shape[:2] == (2, 2)


def test_plot_basins_draws_one_image():
    fig, ax = plt.subplots()
    try:
        out = plot_basins(_grid(), ax=ax, title="basins")
        assert out is ax
        assert len(ax.images) == 1
        assert ax.get_title() == "basins"
        assert list(ax.images[0].get_extent()) == [-0.5, 1.5, -0.5, 1.5]
    finally:
        plt.close(fig)
