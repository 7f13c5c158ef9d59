"""Command-line entry point for inspecting and reshaping routes."""

from __future__ import annotations

import argparse
import csv
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from route_core.config import EditorOptions, config_path, load_options
from route_core.geometry.primitives import Point3D
from route_core.model.track_sequence import rebuild_derived_fields, track_length
from route_core.services.curve_former import BendSpec, preview_bend
from route_core.services.graph_builder import derive_graph, edge_summaries
from route_core.services.loops import detect_loopiness
from route_core.services.projection import project_lat_lon
from route_core.services.quality import find_bend_problems, find_gradient_problems

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Route graph and bend tools")
    parser.add_argument(
        "--log-level",
        default=os.getenv("ROUTE_CORE_LOG_LEVEL", "INFO"),
        help=(
            "Logging level (e.g. DEBUG, INFO). Defaults to ROUTE_CORE_LOG_LEVEL "
            "environment variable or INFO."
        ),
    )
    parser.add_argument(
        "--log-file",
        default=os.getenv("ROUTE_CORE_LOG_PATH"),
        help="Optional log file path.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Shortcut for --log-level DEBUG",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="INI file with [graph], [bend], [loop] and [quality] options.",
    )
    parser.add_argument(
        "--lat-lon",
        action="store_true",
        help="Input columns are lat,lon,ele instead of x,y,z metres.",
    )

    commands = parser.add_subparsers(dest="command", required=True)
    summary = commands.add_parser("summary", help="Loop status and graph statistics")
    summary.add_argument("points", type=Path)

    bend = commands.add_parser("bend", help="Check whether a bend can be formed")
    bend.add_argument("points", type=Path)
    bend.add_argument("--x", type=float, required=True, help="Circle centre x (m)")
    bend.add_argument("--y", type=float, required=True, help="Circle centre y (m)")
    bend.add_argument("--radius", type=float, default=None)
    bend.add_argument("--spacing", type=float, default=None)
    return parser.parse_args(argv)


def configure_logging(log_level_name: str, log_path: str | None) -> str | None:
    resolved_level_name = log_level_name.upper()
    log_level = getattr(logging, resolved_level_name, logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_path:
        handlers.insert(0, logging.FileHandler(log_path, mode="a", encoding="utf-8"))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )
    return log_path


def load_points(path: Path, lat_lon: bool) -> list[Point3D]:
    """Read three numeric columns per row; a non-numeric first row is a header."""
    rows: list[tuple[float, float, float]] = []
    with path.open("r", encoding="utf-8", newline="") as handle:
        for line_number, row in enumerate(csv.reader(handle), start=1):
            if not row:
                continue
            if len(row) < 3:
                raise ValueError(f"{path}:{line_number}: expected three columns")
            try:
                rows.append((float(row[0]), float(row[1]), float(row[2])))
            except ValueError:
                if line_number == 1:
                    continue
                raise ValueError(f"{path}:{line_number}: expected three numbers")
    return project_lat_lon(rows) if lat_lon else rows


def _summary(points: list[Point3D], options: EditorOptions) -> None:
    track = rebuild_derived_fields(points)
    loopiness = detect_loopiness(track, options.loop)
    graph = derive_graph(track, options.graph)
    print(f"points: {len(track)}")
    print(f"length: {track_length(track):.1f} m")
    print(f"loop: {loopiness.kind.value} (gap {loopiness.gap:.1f} m)")
    print(f"nodes: {len(graph.nodes)}  edges: {len(graph.edges)}  traversals: {len(graph.route)}")
    shared = [s for s in edge_summaries(graph) if s.traversal_count > 1]
    print(f"shared edges: {len(shared)}")
    print(f"gradient problems: {len(find_gradient_problems(track, options.quality))}")
    print(f"bend problems: {len(find_bend_problems(track, options.quality))}")


def _bend(points: list[Point3D], args: argparse.Namespace, options: EditorOptions) -> int:
    track = rebuild_derived_fields(points)
    spec = BendSpec.from_options((args.x, args.y, 0.0), options.bend)
    if args.radius is not None:
        spec = replace(spec, push_radius=args.radius)
    if args.spacing is not None:
        spec = replace(spec, spacing=args.spacing)
    preview = preview_bend(track, spec)
    if not preview.is_applicable:
        print(f"cannot apply: {preview.problem}")
        return 1
    print(
        f"replaces points {preview.start_index}-{preview.end_index} "
        f"with {len(preview.new_points)} new points"
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    log_level_name = "DEBUG" if args.debug else args.log_level
    configure_logging(log_level_name, args.log_file)

    ini_path = args.config or config_path(None)
    options = load_options(ini_path)
    logger.debug("Options loaded from %s", ini_path)

    try:
        points = load_points(args.points, args.lat_lon)
    except (OSError, ValueError) as exc:
        logger.error("Could not load %s: %s", args.points, exc)
        return 2

    if args.command == "summary":
        _summary(points, options)
        return 0
    return _bend(points, args, options)


if __name__ == "__main__":
    sys.exit(main())
