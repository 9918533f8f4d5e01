# src/pendmap/report.py
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping
import json
import math

from pendmap.analysis.stats import MapStats

__all__ = ["MapReport", "load_report"]


def _jsonable(value: Any) -> Any:
    # NaN averages (no classified points) are written as null
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


class MapReport:
    """
    Batch of named map statistics written as one JSON document::

        {"created": "...", "maps": {"map000": {"points_integrated": ..., ...}}}
    """

    def __init__(self) -> None:
        self.created = datetime.now(timezone.utc).isoformat()
        self.maps: dict[str, dict[str, Any]] = {}

    def add(self, name: str, stats: MapStats, extra: Mapping[str, Any] | None = None) -> None:
        entry = {k: _jsonable(v) for k, v in stats.as_dict().items()}
        if extra:
            entry.update({k: _jsonable(v) for k, v in extra.items()})
        self.maps[name] = entry

    def to_dict(self) -> dict[str, Any]:
        return {"created": self.created, "maps": dict(self.maps)}

    def write(self, path: str | Path) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(self.to_dict(), indent=2, sort_keys=False), encoding="utf-8")
        return target

    def __len__(self) -> int:
        return len(self.maps)


def load_report(path: str | Path) -> dict[str, Any]:
    return json.loads(Path(path).read_text(encoding="utf-8"))
