# src/pendmap/cli.py
from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from pendmap.config import load_run_config
from pendmap.errors import PendmapError
from pendmap.plot.maps import save_map_images
from pendmap.report import MapReport
from pendmap.steppers.registry import steppers

__all__ = ["main"]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pendmap", description="Magnetic pendulum basin maps")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Integrate a map described by a TOML run file")
    run.add_argument("config", type=Path, help="TOML run file")
    run.add_argument("--name", default=None, help="Suffix for output files (overrides [output].name)")
    run.add_argument("--out", type=Path, default=None, help="Output directory (overrides [output].directory)")
    run.add_argument("--workers", type=int, default=None, help="Worker thread count")
    run.add_argument("--no-jit", action="store_true", help="Run the kernels as plain Python")
    run.set_defaults(func=_cmd_run)

    steppers = sub.add_parser("steppers", help="Stepper registry")
    steppers_sub = steppers.add_subparsers(dest="steppers_command", required=True)
    listing = steppers_sub.add_parser("list", help="List registered steppers")
    listing.set_defaults(func=_cmd_steppers_list)

    return parser


def _cmd_run(args: argparse.Namespace) -> int:
    cfg = load_run_config(args.config)
    overrides = {}
    if args.name is not None:
        overrides["name"] = args.name
    if args.out is not None:
        overrides["output_dir"] = args.out
    if args.workers is not None:
        overrides["workers"] = args.workers
    if args.no_jit:
        overrides["jit"] = False
    if overrides:
        cfg = replace(cfg, **overrides)

    mapper = cfg.make_mapper()
    print(
        f"Integrating {cfg.grid.n_columns}x{cfg.grid.n_rows} points "
        f"({cfg.mode}, stepper={cfg.stepper}, workers={mapper.workers}, jit={cfg.jit})"
    )
    result = mapper.run()
    print(result.stats.summary())

    written = save_map_images(result.grid, cfg.output_dir, cfg.name, colors=cfg.colors)
    report = MapReport()
    report.add(
        f"map{cfg.name}",
        result.stats,
        extra={"stepper": cfg.stepper, "mode": cfg.mode},
    )
    written.append(report.write(cfg.output_dir / f"report{cfg.name}.json"))
    for path in written:
        print(f"wrote {path}")
    return 0


def _cmd_steppers_list(args: argparse.Namespace) -> int:
    for spec in steppers():
        meta = spec.meta
        aliases = ", ".join(meta.aliases) or "-"
        print(
            f"{meta.name}: time_control={meta.time_control}, order={meta.order}, "
            f"embedded_order={meta.embedded_order}, aliases={aliases}"
        )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except PendmapError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
