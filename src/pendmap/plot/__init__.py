# src/pendmap/plot/__init__.py
from .maps import (
    ColorTable,
    position_image,
    time_image,
    save_map_images,
    plot_basins,
)

__all__ = [
    "ColorTable",
    "position_image",
    "time_image",
    "save_map_images",
    "plot_basins",
]
