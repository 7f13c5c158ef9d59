"""Loop detection and start/direction changes that work on the flat sequence."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from route_core.config import LoopOptions
from route_core.geometry.primitives import Point3D, distance_3d, heading, planar_distance
from route_core.model.track_point import TrackPoint
from route_core.model.track_sequence import (
    PointLike,
    position_of,
    positions,
    rebuild_derived_fields,
)

logger = logging.getLogger(__name__)


class LoopKind(Enum):
    IS_A_LOOP = "is_a_loop"
    ALMOST_LOOP = "almost_loop"
    NOT_A_LOOP = "not_a_loop"


@dataclass(frozen=True)
class Loopiness:
    kind: LoopKind
    gap: float

    @property
    def is_loop(self) -> bool:
        return self.kind is LoopKind.IS_A_LOOP


def detect_loopiness(
    points: Sequence[PointLike], options: LoopOptions | None = None
) -> Loopiness:
    """Classify how close the end of the route comes back to its start.

    ``gap`` is the 3D distance between the first and last points.
    """
    options = options or LoopOptions()
    if len(points) < 2:
        return Loopiness(LoopKind.NOT_A_LOOP, 0.0)

    first = position_of(points[0])
    last = position_of(points[-1])
    gap = distance_3d(first, last)
    if _within_tolerance(first, last, options.loop_tolerance):
        return Loopiness(LoopKind.IS_A_LOOP, gap)
    if planar_distance(first, last) <= options.almost_loop_limit:
        return Loopiness(LoopKind.ALMOST_LOOP, gap)
    return Loopiness(LoopKind.NOT_A_LOOP, gap)


def _within_tolerance(first: Point3D, last: Point3D, tolerance: float) -> bool:
    return (
        planar_distance(first, last) <= tolerance
        and abs(last[2] - first[2]) <= tolerance
    )


def close_loop(
    points: Sequence[PointLike], options: LoopOptions | None = None
) -> list[TrackPoint]:
    options = options or LoopOptions()
    coords = positions(points)
    if len(coords) < 2:
        return rebuild_derived_fields(coords)

    start = coords[0]
    if _within_tolerance(start, coords[-1], options.loop_tolerance):
        closed = coords[:-1] + [start]
    else:
        closed = list(coords)
        bearing = None
        for later in coords[1:]:
            bearing = heading(start, later)
            if bearing is not None:
                break
        if bearing is not None:
            closed.append(
                (
                    start[0] - bearing[0] * options.closing_offset,
                    start[1] - bearing[1] * options.closing_offset,
                    start[2],
                )
            )
        closed.append(start)
    logger.info("Closed loop; track now has %d points", len(closed))
    return rebuild_derived_fields(closed)


def change_start(points: Sequence[PointLike], new_start: int) -> list[TrackPoint] | None:
    """Rotate a loop so ``new_start`` becomes index 0 and re-close it there.

    The result has one more point than the input.
    """
    coords = positions(points)
    if not 0 <= new_start < len(coords):
        return None
    rotated = coords[new_start:] + coords[:new_start] + [coords[new_start]]
    return rebuild_derived_fields(rotated)


def reverse_track(
    points: Sequence[PointLike], marked: tuple[int, int] | None = None
) -> list[TrackPoint] | None:
    """Reverse the whole track, or only the inclusive range ``marked``."""
    coords = positions(points)
    if marked is None:
        return rebuild_derived_fields(coords[::-1])

    low, high = sorted(marked)
    if low < 0 or high >= len(coords):
        return None
    reordered = coords[:low] + coords[low : high + 1][::-1] + coords[high + 1 :]
    return rebuild_derived_fields(reordered)
