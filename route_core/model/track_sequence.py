"""Derived per-point geometry for an ordered route.

:func:`rebuild_derived_fields` is the only producer of
:class:`~route_core.model.track_point.TrackPoint` values. It must be run
after any insertion, deletion, reorder or move before anything reads
``index``, ``distance_from_start`` or the direction fields.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Union

import numpy as np

from route_core.geometry.primitives import (
    Point3D,
    heading,
    normalize_3d,
    signed_angle,
)
from route_core.model.track_point import TrackPoint

PointLike = Union[TrackPoint, Point3D]


def position_of(point: PointLike) -> Point3D:
    xyz = point.xyz if isinstance(point, TrackPoint) else point
    return (float(xyz[0]), float(xyz[1]), float(xyz[2]))


def positions(points: Iterable[PointLike]) -> list[Point3D]:
    return [position_of(p) for p in points]


def _segment_gradient(vector: Point3D) -> float | None:
    run = math.hypot(vector[0], vector[1])
    if run <= 0:
        return None
    return 100.0 * vector[2] / run


def _effective_direction(
    before: Point3D | None, after: Point3D | None
) -> Point3D | None:
    if before is None:
        return after
    if after is None:
        return before
    blended = normalize_3d(
        (before[0] + after[0], before[1] + after[1], before[2] + after[2])
    )
    return blended if blended is not None else after


def rebuild_derived_fields(points: Sequence[PointLike]) -> list[TrackPoint]:
    """Recompute every derived field in one left-to-right pass.

    Only the positions of ``points`` are read, so running this on its own
    output gives an equal result.
    """
    coords = positions(points)
    count = len(coords)
    if count == 0:
        return []

    array = np.asarray(coords, dtype=float)
    vectors = np.diff(array, axis=0)
    lengths = np.linalg.norm(vectors, axis=1) if count > 1 else np.zeros(0)
    distances = np.concatenate(([0.0], np.cumsum(lengths)))

    segments: list[Point3D] = [
        (float(v[0]), float(v[1]), float(v[2])) for v in vectors
    ]
    gradients = [_segment_gradient(v) for v in segments]

    result: list[TrackPoint] = []
    for idx, xyz in enumerate(coords):
        has_before = idx > 0
        has_after = idx < count - 1

        road_vector = segments[idx] if has_after else (0.0, 0.0, 0.0)
        before = normalize_3d(segments[idx - 1]) if has_before else None
        after = normalize_3d(road_vector) if has_after else None

        gradient_change = None
        direction_change = None
        if has_before and has_after:
            if gradients[idx - 1] is not None and gradients[idx] is not None:
                gradient_change = abs(gradients[idx] - gradients[idx - 1])
            incoming = heading((0.0, 0.0), segments[idx - 1])
            outgoing = heading((0.0, 0.0), road_vector)
            if incoming is not None and outgoing is not None:
                direction_change = signed_angle(incoming, outgoing)

        result.append(
            TrackPoint(
                index=idx,
                xyz=xyz,
                distance_from_start=float(distances[idx]),
                road_vector=road_vector,
                length=float(lengths[idx]) if has_after else 0.0,
                before_direction=before,
                after_direction=after,
                effective_direction=_effective_direction(before, after),
                gradient=gradients[idx] if has_after else None,
                gradient_change=gradient_change,
                direction_change=direction_change,
            )
        )
    return result


def track_length(points: Sequence[TrackPoint]) -> float:
    return points[-1].distance_from_start if points else 0.0


def bounding_box(points: Sequence[PointLike]) -> tuple[float, float, float, float] | None:
    if not points:
        return None
    coords = positions(points)
    xs = [p[0] for p in coords]
    ys = [p[1] for p in coords]
    return (min(xs), max(xs), min(ys), max(ys))


@dataclass(frozen=True)
class RangeEdit:
    """Replace the inclusive range ``[start_index, end_index]``.

    ``end_index == start_index - 1`` describes a pure insertion before
    ``start_index``.
    """

    start_index: int
    end_index: int
    replacement: tuple[Point3D, ...]

    @property
    def removed_count(self) -> int:
        return self.end_index - self.start_index + 1


def _check_range(count: int, start_index: int, end_index: int) -> None:
    if not 0 <= start_index <= count:
        raise ValueError(f"start index {start_index} outside track of {count} points")
    if not start_index - 1 <= end_index < count:
        raise ValueError(
            f"end index {end_index} invalid for start {start_index} and {count} points"
        )


def apply_range_edit(
    points: Sequence[PointLike], edit: RangeEdit
) -> tuple[list[TrackPoint], RangeEdit]:
    """Apply ``edit`` and return the rebuilt track with the edit that undoes it."""
    _check_range(len(points), edit.start_index, edit.end_index)
    coords = positions(points)
    removed = tuple(coords[edit.start_index : edit.end_index + 1])
    updated = (
        coords[: edit.start_index]
        + [position_of(p) for p in edit.replacement]
        + coords[edit.end_index + 1 :]
    )
    inverse = RangeEdit(
        edit.start_index,
        edit.start_index + len(edit.replacement) - 1,
        removed,
    )
    return rebuild_derived_fields(updated), inverse


def replace_range(
    points: Sequence[PointLike],
    start_index: int,
    end_index: int,
    replacement: Iterable[PointLike],
) -> list[TrackPoint]:
    edit = RangeEdit(start_index, end_index, tuple(positions(replacement)))
    updated, _inverse = apply_range_edit(points, edit)
    return updated
