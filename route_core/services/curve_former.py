"""Replace a run of track points with a constructed bend.

The user places a circle over a corner. Points inside it are pushed out to
the circumference: the new road follows an entry transition arc, the main
arc around the circle, and an exit transition arc, each of radius
``push_radius`` and tangent to its neighbours. Elevation is re-interpolated
along the new path between the two original points that bracket it.

:func:`preview_bend` is the single computation. Rendering a preview and
applying the bend are both just callers of its result.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

import numpy as np

from route_core.config import BendOptions, SmoothingMode
from route_core.geometry.arcs import (
    angle_of,
    main_arc_sweep,
    sample_arc,
    transition_sweep,
)
from route_core.geometry.kernel import (
    Circle,
    line_circle_intersections,
    line_through_with_heading,
)
from route_core.geometry.primitives import (
    Point,
    Point3D,
    dot,
    heading,
    planar_distance,
    points_close,
    signed_offset_from_line,
)
from route_core.geometry.spatial_index import Box, SpatialIndex, build_track_index
from route_core.model.track_point import TrackPoint
from route_core.model.track_sequence import (
    RangeEdit,
    apply_range_edit,
    rebuild_derived_fields,
)

logger = logging.getLogger(__name__)

MIN_RADIUS = 1e-3
_ALONG_TOLERANCE = 1e-9


@dataclass(frozen=True)
class BendSpec:
    center: Point3D
    push_radius: float
    pull_disc_width: float
    spacing: float
    smoothing_mode: SmoothingMode = SmoothingMode.HOLISTIC
    use_pull_radius: bool = False

    @classmethod
    def from_options(cls, center: Point3D, options: BendOptions) -> "BendSpec":
        return cls(
            center=center,
            push_radius=options.push_radius,
            pull_disc_width=options.pull_disc_width,
            spacing=options.spacing,
            smoothing_mode=options.smoothing_mode,
            use_pull_radius=options.use_pull_radius,
        )


@dataclass(frozen=True)
class Tangent:
    """Where a transition arc leaves (or rejoins) an existing segment."""

    segment_index: int
    point: Point
    arc_center: Point


@dataclass(frozen=True)
class BendPreview:
    spec: BendSpec
    points_within_circle: tuple[TrackPoint, ...] = ()
    points_within_disc: tuple[TrackPoint, ...] = ()
    is_contiguous: bool = False
    problem: str | None = None
    start_index: int | None = None
    end_index: int | None = None
    new_points: tuple[Point3D, ...] = ()
    outline: tuple[Point3D, ...] = ()

    @property
    def is_applicable(self) -> bool:
        return self.problem is None

    @property
    def selection(self) -> tuple[TrackPoint, ...]:
        return tuple(
            sorted(
                self.points_within_circle + self.points_within_disc,
                key=lambda p: p.index,
            )
        )

    @property
    def new_track_points(self) -> list[TrackPoint]:
        """The replacement points with derived fields local to the bend."""
        return rebuild_derived_fields(self.new_points)


def center_from_drag(reference: TrackPoint, drag: tuple[float, float]) -> Point3D:
    return (reference.x + drag[0], reference.y + drag[1], reference.z)


def is_contiguous(indices: Iterable[int]) -> bool:
    values = list(indices)
    if not values:
        return False
    if len(set(values)) != len(values):
        return False
    return max(values) - min(values) == len(values) - 1


def select_points(
    points: Sequence[TrackPoint],
    spec: BendSpec,
    *,
    index: SpatialIndex | None = None,
    window: tuple[int, int] | None = None,
) -> tuple[list[TrackPoint], list[TrackPoint]]:
    """Return ``(circle_points, disc_points)``, each sorted by index."""
    if not points:
        return [], []
    index = index if index is not None else build_track_index(points)
    low, high = window if window is not None else (0, len(points) - 1)
    center = (spec.center[0], spec.center[1])
    radius = spec.push_radius
    outer = radius + (spec.pull_disc_width if spec.use_pull_radius else 0.0)

    candidates = index.query_with_filter(
        Box.around(center, outer), lambda p: low <= p.index <= high
    )
    distances = {p.index: planar_distance(center, p.planar) for p in candidates}

    circle = sorted(
        (p for p in candidates if distances[p.index] <= radius),
        key=lambda p: p.index,
    )
    disc: list[TrackPoint] = []
    if spec.use_pull_radius and circle:
        first, last = circle[0].index, circle[-1].index
        disc = sorted(
            (
                p
                for p in candidates
                if radius < distances[p.index] <= outer and first < p.index < last
            ),
            key=lambda p: p.index,
        )
    return circle, disc


def bend_orientation(
    points: Sequence[TrackPoint], first: int, last: int, center: Point
) -> float | None:
    """+1.0 for a left-hand bend, -1.0 for right-hand, from the first usable segment."""
    for idx in list(range(first, min(last + 1, len(points) - 1))) + [first - 1]:
        if idx < 0 or idx + 1 >= len(points):
            continue
        offset = signed_offset_from_line(points[idx].planar, points[idx + 1].planar, center)
        if offset is not None:
            return 1.0 if offset >= 0 else -1.0
    return None


def _tangent_on_segment(
    start: Point,
    end: Point,
    center: Point,
    radius: float,
    orientation: float,
    choose: Callable[[Iterable[float]], float],
) -> tuple[float, Point, Point] | None:
    direction = heading(start, end)
    if direction is None:
        return None
    length = planar_distance(start, end)
    # The transition turns against the bend, so its centre is on the far
    # side of the road from the bend centre.
    normal = (orientation * direction[1], -orientation * direction[0])
    shifted = (start[0] + normal[0] * radius, start[1] + normal[1] * radius)
    candidates = line_circle_intersections(
        line_through_with_heading(shifted, direction),
        Circle(center, 2.0 * radius),
    )

    along: dict[float, Point] = {}
    for candidate in candidates:
        distance = dot((candidate[0] - start[0], candidate[1] - start[1]), direction)
        if -_ALONG_TOLERANCE <= distance <= length + _ALONG_TOLERANCE:
            along[distance] = candidate
    if not along:
        return None
    best = choose(along)
    clamped = min(max(best, 0.0), length)
    tangent_point = (start[0] + direction[0] * clamped, start[1] + direction[1] * clamped)
    return best, tangent_point, along[best]


def find_entry_tangent(
    points: Sequence[TrackPoint], first: int, center: Point, radius: float, orientation: float
) -> Tangent | None:
    for idx in range(first - 1, -1, -1):
        found = _tangent_on_segment(
            points[idx].planar, points[idx + 1].planar, center, radius, orientation, min
        )
        if found is not None:
            _along, tangent_point, arc_center = found
            return Tangent(idx, tangent_point, arc_center)
        logger.debug("No entry tangent on segment %d", idx)
    return None


def find_exit_tangent(
    points: Sequence[TrackPoint], last: int, center: Point, radius: float, orientation: float
) -> Tangent | None:
    for idx in range(last, len(points) - 1):
        found = _tangent_on_segment(
            points[idx].planar, points[idx + 1].planar, center, radius, orientation, max
        )
        if found is not None:
            _along, tangent_point, arc_center = found
            return Tangent(idx, tangent_point, arc_center)
        logger.debug("No exit tangent on segment %d", idx)
    return None


def _arc_points(center: Point, radius: float, start: Point, sweep: float, spacing: float) -> list[Point]:
    if sweep == 0:
        return []
    return sample_arc(center, radius, angle_of(center, start), sweep, spacing)


def build_bend_path(
    entry: Tangent,
    exit_: Tangent,
    center: Point,
    radius: float,
    orientation: float,
    spacing: float,
) -> list[Point]:
    """Flat path from the entry tangent point to the exit tangent point."""
    entry_join = (
        (entry.arc_center[0] + center[0]) / 2.0,
        (entry.arc_center[1] + center[1]) / 2.0,
    )
    exit_join = (
        (exit_.arc_center[0] + center[0]) / 2.0,
        (exit_.arc_center[1] + center[1]) / 2.0,
    )
    entry_sweep = transition_sweep(entry.arc_center, entry.point, entry_join, -orientation)
    main_sweep = main_arc_sweep(center, entry_join, exit_join, orientation)
    exit_sweep = transition_sweep(exit_.arc_center, exit_join, exit_.point, -orientation)

    path = [entry.point]
    path += _arc_points(entry.arc_center, radius, entry.point, entry_sweep, spacing)
    path += _arc_points(center, radius, entry_join, main_sweep, spacing)
    path += _arc_points(exit_.arc_center, radius, exit_join, exit_sweep, spacing)
    if points_close(path[-1], exit_.point, 1e-9):
        path[-1] = exit_.point
    else:
        path.append(exit_.point)
    return path


def interpolate_elevations(
    path: Sequence[Point], start_elevation: float, end_elevation: float
) -> list[Point3D]:
    """Grade elevation linearly with flat distance along ``path``."""
    if not path:
        return []
    coords = np.asarray(path, dtype=float)
    steps = np.hypot(*np.diff(coords, axis=0).T) if len(path) > 1 else np.zeros(0)
    travelled = np.concatenate(([0.0], np.cumsum(steps)))
    total = float(travelled[-1])
    if total <= 0:
        heights = np.full(len(path), float(start_elevation))
    else:
        heights = np.interp(travelled, [0.0, total], [start_elevation, end_elevation])
    return [(float(x), float(y), float(z)) for (x, y), z in zip(path, heights)]


def preview_bend(
    points: Sequence[TrackPoint],
    spec: BendSpec,
    *,
    index: SpatialIndex | None = None,
    window: tuple[int, int] | None = None,
) -> BendPreview:
    if spec.push_radius < MIN_RADIUS:
        return BendPreview(spec, problem="radius is too small to form a bend")
    if spec.spacing <= 0:
        return BendPreview(spec, problem="point spacing must be positive")

    circle, disc = select_points(points, spec, index=index, window=window)
    selection = sorted(circle + disc, key=lambda p: p.index)
    contiguous = is_contiguous(p.index for p in selection)

    def _reject(problem: str) -> BendPreview:
        logger.debug("Bend not applicable: %s", problem)
        return BendPreview(spec, tuple(circle), tuple(disc), contiguous, problem=problem)

    if not selection:
        return _reject("no track points inside the circle")
    if not contiguous:
        return _reject("selected points are not contiguous")
    if spec.smoothing_mode is SmoothingMode.PIECEWISE:
        return _reject("piecewise smoothing is not available for bends")

    center = (spec.center[0], spec.center[1])
    radius = spec.push_radius
    first, last = selection[0].index, selection[-1].index
    orientation = bend_orientation(points, first, last, center)
    if orientation is None:
        return _reject("selected points do not define a direction")

    entry = find_entry_tangent(points, first, center, radius, orientation)
    if entry is None:
        return _reject("no entry transition fits before the bend")
    exit_ = find_exit_tangent(points, last, center, radius, orientation)
    if exit_ is None:
        return _reject("no exit transition fits after the bend")

    before = points[entry.segment_index]
    after = points[exit_.segment_index + 1]
    path = build_bend_path(entry, exit_, center, radius, orientation, spec.spacing)
    outline = interpolate_elevations([before.planar, *path, after.planar], before.z, after.z)

    return BendPreview(
        spec=spec,
        points_within_circle=tuple(circle),
        points_within_disc=tuple(disc),
        is_contiguous=True,
        start_index=entry.segment_index + 1,
        end_index=exit_.segment_index,
        new_points=tuple(outline[1:-1]),
        outline=tuple(outline),
    )


def bend_edit(preview: BendPreview) -> RangeEdit | None:
    if not preview.is_applicable or preview.start_index is None or preview.end_index is None:
        return None
    return RangeEdit(preview.start_index, preview.end_index, preview.new_points)


def apply_bend(points: Sequence[TrackPoint], preview: BendPreview) -> list[TrackPoint] | None:
    edit = bend_edit(preview)
    if edit is None:
        logger.warning("Bend cannot be applied: %s", preview.problem)
        return None
    updated, _inverse = apply_range_edit(points, edit)
    logger.info(
        "Replaced points %d-%d with %d bend points",
        edit.start_index,
        edit.end_index,
        len(edit.replacement),
    )
    return updated


def preview_geometry(preview: BendPreview) -> list[Point3D]:
    return list(preview.outline) if preview.is_applicable else []
