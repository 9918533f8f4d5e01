# src/pendmap/analysis/__init__.py
from .grid import Grid, GridBlock, GridSpec, Outcome, OutcomeKind, Point
from .classify import ClassifierConfig, ClassifyMode, PointRecord, build_kernels, classify_point
from .mapper import ColumnPartition, GridMapper, MapResult, map_basins, partition_columns
from .stats import MapStats

__all__ = [
    "Grid", "GridBlock", "GridSpec", "Outcome", "OutcomeKind", "Point",
    "ClassifierConfig", "ClassifyMode", "PointRecord", "build_kernels", "classify_point",
    "ColumnPartition", "GridMapper", "MapResult", "map_basins", "partition_columns",
    "MapStats",
]
