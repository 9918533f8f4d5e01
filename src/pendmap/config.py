# src/pendmap/config.py
"""
Run files.

A run is described by a TOML document::

    [grid]
    x = [-10.0, 10.0]
    y = [-10.0, 10.0]
    resolution = 0.05

    [classify]
    mode = "converge"          # or "fixed"
    dt = 0.001
    time_tol = 5.0

    [integrator]
    stepper = "ck45"
    rtol = 1e-6
    atol = 1e-6
    max_step = 0.1

    [parallel]
    workers = 8
    jit = true

    [system]
    b = 0.2

    [[system.attractors]]
    x = 1.0
    y = 0.0
    k = 1.0

    [output]
    directory = "maps"
    name = "000"

    [output.colors]
    attractors = [[255, 140, 0]]

Every table is optional; missing keys take the library defaults.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping
import os

try:  # pragma: no cover - Python >=3.11
    import tomllib  # type: ignore
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from pendmap.analysis.classify import ClassifierConfig, ClassifyMode
from pendmap.analysis.grid import GridSpec
from pendmap.analysis.mapper import GridMapper
from pendmap.errors import ConfigError
from pendmap.plot.maps import ColorTable
from pendmap.steppers.integrator import Integrator
from pendmap.steppers.registry import get_stepper
from pendmap.systems.pendulum import AttractorSite, PendulumSystem

__all__ = ["RunConfig", "load_run_config", "parse_run_config"]

_SECTIONS = ("grid", "classify", "integrator", "parallel", "system", "output")


@dataclass(frozen=True)
class RunConfig:
    grid: GridSpec = field(default_factory=GridSpec)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    mode: ClassifyMode = "converge"
    stepper: str = "ck45"
    stepper_config: Any = None
    workers: int = field(default_factory=lambda: os.cpu_count() or 1)
    min_block: int = 1
    jit: bool = True
    system: Mapping[str, float] = field(default_factory=dict)
    attractors: tuple[AttractorSite, ...] | None = None
    colors: ColorTable = field(default_factory=ColorTable)
    output_dir: Path = Path(".")
    name: str = ""

    def make_system(self) -> PendulumSystem:
        attractors = None if self.attractors is None else list(self.attractors)
        return PendulumSystem(attractors=attractors, **dict(self.system))

    def make_integrator(self, *, jit: bool | None = None) -> Integrator:
        return Integrator(
            self.stepper,
            self.stepper_config,
            jit=self.jit if jit is None else jit,
        )

    def make_mapper(self, *, jit: bool | None = None) -> GridMapper:
        return GridMapper(
            self.make_system(),
            self.make_integrator(jit=jit),
            grid=self.grid,
            classifier=self.classifier,
            workers=self.workers,
            min_block=self.min_block,
            mode=self.mode,
        )


def _table(data: Mapping[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key, {})
    if not isinstance(value, Mapping):
        raise ConfigError(f"[{key}] must be a table")
    return dict(value)


def _reject_unknown(section: str, table: Mapping[str, Any], allowed) -> None:
    unknown = sorted(set(table) - set(allowed))
    if unknown:
        raise ConfigError(
            f"Unknown key(s) in [{section}]: {', '.join(unknown)}. "
            f"Allowed: {', '.join(sorted(allowed))}"
        )


def _number(section: str, key: str, value: Any, kind: type = float) -> Any:
    # TOML booleans are ints to Python; they are never accepted as numbers
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"[{section}].{key} must be a number, got {value!r}")
    if kind is int:
        if not isinstance(value, int):
            raise ConfigError(f"[{section}].{key} must be an integer, got {value!r}")
        return value
    return float(value)


def _rgb(section: str, key: str, value: Any) -> tuple[int, int, int]:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise ConfigError(f"[{section}].{key} must be an [r, g, b] triple, got {value!r}")
    r, g, b = (_number(section, key, c, int) for c in value)
    return (r, g, b)


def _pair(section: str, key: str, value: Any) -> tuple[float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ConfigError(f"[{section}].{key} must be a [start, end] pair")
    return _number(section, key, value[0]), _number(section, key, value[1])


def _parse_grid(table: dict[str, Any]) -> GridSpec:
    _reject_unknown("grid", table, ("x", "y", "resolution"))
    base = GridSpec()
    x = _pair("grid", "x", table["x"]) if "x" in table else (base.x_start, base.x_end)
    y = _pair("grid", "y", table["y"]) if "y" in table else (base.y_start, base.y_end)
    res = _number("grid", "resolution", table.get("resolution", base.resolution))
    return GridSpec(x[0], x[1], y[0], y[1], res)


def _parse_classify(table: dict[str, Any]) -> tuple[ClassifierConfig, ClassifyMode]:
    names = {f.name for f in fields(ClassifierConfig)}
    _reject_unknown("classify", table, names | {"mode"})
    mode = table.pop("mode", "converge")
    if mode not in ("converge", "fixed"):
        raise ConfigError(f"[classify].mode must be 'converge' or 'fixed', got {mode!r}")
    values = {
        k: _number("classify", k, v, int if k == "max_trials" else float)
        for k, v in table.items()
    }
    return ClassifierConfig(**values), mode


def _parse_integrator(table: dict[str, Any]) -> tuple[str, Any]:
    name = table.pop("stepper", "ck45")
    if not isinstance(name, str):
        raise ConfigError(f"[integrator].stepper must be a string, got {name!r}")
    try:
        spec = get_stepper(name)
    except KeyError:
        raise ConfigError(f"[integrator].stepper: unknown stepper {name!r}") from None
    cfg_type = spec.config_spec()
    if cfg_type is None:
        _reject_unknown("integrator", table, ())
        return name, None
    _reject_unknown("integrator", table, {f.name for f in fields(cfg_type)})
    return name, replace(spec.default_config(), **{k: _number("integrator", k, v) for k, v in table.items()})


def _parse_system(table: dict[str, Any]) -> tuple[dict[str, float], tuple[AttractorSite, ...] | None]:
    raw_sites = table.pop("attractors", None)
    _reject_unknown("system", table, ("d", "m", "g", "b", "L"))
    params = {k: _number("system", k, v) for k, v in table.items()}
    if raw_sites is None:
        return params, None
    if not isinstance(raw_sites, list):
        raise ConfigError("[system].attractors must be an array of tables")
    sites = []
    for i, site in enumerate(raw_sites):
        if not isinstance(site, Mapping):
            raise ConfigError(f"[system].attractors[{i}] must be a table")
        section = f"system.attractors[{i}]"
        _reject_unknown(section, site, ("x", "y", "k"))
        for key in ("x", "y"):
            if key not in site:
                raise ConfigError(f"[{section}] is missing {key!r}")
        sites.append(AttractorSite(
            _number(section, "x", site["x"]),
            _number(section, "y", site["y"]),
            _number(section, "k", site.get("k", 1.0)),
        ))
    return params, tuple(sites)


def _parse_colors(table: Mapping[str, Any]) -> ColorTable:
    _reject_unknown("output.colors", table, ("attractors", "center", "unclassified"))
    base = ColorTable()
    attractors = table.get("attractors", base.attractors)
    if not isinstance(attractors, (list, tuple)):
        raise ConfigError(f"[output.colors].attractors must be an array of colours, got {attractors!r}")
    return ColorTable(
        attractors=[_rgb("output.colors", f"attractors[{i}]", c) for i, c in enumerate(attractors)],
        center=_rgb("output.colors", "center", table.get("center", base.center)),
        unclassified=_rgb("output.colors", "unclassified", table.get("unclassified", base.unclassified)),
    )


def parse_run_config(data: Mapping[str, Any], *, base_dir: str | Path | None = None) -> RunConfig:
    """Build a RunConfig from an already-decoded TOML mapping."""
    _reject_unknown("<root>", data, _SECTIONS)

    grid = _parse_grid(_table(data, "grid"))
    classifier, mode = _parse_classify(_table(data, "classify"))
    stepper, stepper_config = _parse_integrator(_table(data, "integrator"))

    parallel = _table(data, "parallel")
    _reject_unknown("parallel", parallel, ("workers", "min_block", "jit"))
    defaults = RunConfig()
    workers = _number("parallel", "workers", parallel.get("workers", defaults.workers), int)
    min_block = _number("parallel", "min_block", parallel.get("min_block", 1), int)
    jit = parallel.get("jit", True)
    if not isinstance(jit, bool):
        raise ConfigError(f"[parallel].jit must be a boolean, got {jit!r}")
    if workers < 1 or min_block < 1:
        raise ConfigError("[parallel].workers and min_block must be at least 1")

    system, attractors = _parse_system(_table(data, "system"))

    output = _table(data, "output")
    raw_colors = output.pop("colors", {})
    if not isinstance(raw_colors, Mapping):
        raise ConfigError("[output.colors] must be a table")
    colors = _parse_colors(raw_colors)
    _reject_unknown("output", output, ("directory", "name"))
    directory = output.get("directory", ".")
    if not isinstance(directory, str):
        raise ConfigError(f"[output].directory must be a string, got {directory!r}")
    out_dir = Path(directory)
    if base_dir is not None and not out_dir.is_absolute():
        out_dir = Path(base_dir) / out_dir

    return RunConfig(
        grid=grid,
        classifier=classifier,
        mode=mode,
        stepper=stepper,
        stepper_config=stepper_config,
        workers=workers,
        min_block=min_block,
        jit=jit,
        system=system,
        attractors=attractors,
        colors=colors,
        output_dir=out_dir,
        name=str(output.get("name", "")),
    )


def load_run_config(path: str | Path) -> RunConfig:
    """Read a TOML run file; relative output directories resolve against its folder."""
    path = Path(path)
    try:
        with open(path, "rb") as fh:
            data = tomllib.load(fh)
    except FileNotFoundError:
        raise ConfigError(f"Run file not found: {path}") from None
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc
    return parse_run_config(data, base_dir=path.parent)
