from __future__ import annotations

import math

from route_core.geometry.primitives import Point, directed_angle, signed_angle


def angle_of(center: Point, point: Point) -> float:
    return math.atan2(point[1] - center[1], point[0] - center[0])


def transition_sweep(center: Point, start: Point, end: Point, orientation: float) -> float:
    """Sweep from ``start`` to ``end`` around ``center`` turning with ``orientation``."""
    start_vec = (start[0] - center[0], start[1] - center[1])
    end_vec = (end[0] - center[0], end[1] - center[1])
    if abs(signed_angle(start_vec, end_vec)) <= 1e-12:
        return 0.0
    return directed_angle(angle_of(center, start), angle_of(center, end), orientation)


def main_arc_sweep(center: Point, start: Point, end: Point, orientation: float) -> float:
    """Sweep of the main arc between the two join points.

    A signed angle that agrees with the bend handedness is used as is (the
    minor arc); one that disagrees is taken the long way round so the arc
    keeps turning in the established direction.
    """
    start_vec = (start[0] - center[0], start[1] - center[1])
    end_vec = (end[0] - center[0], end[1] - center[1])
    if start_vec == (0.0, 0.0) or end_vec == (0.0, 0.0):
        return 0.0
    signed = signed_angle(start_vec, end_vec)
    if signed * orientation >= 0:
        return signed
    return signed + math.copysign(2.0 * math.pi, orientation)


def arc_segment_count(radius: float, sweep: float, spacing: float) -> int:
    return max(1, math.ceil(abs(sweep) * radius / spacing))


def sample_arc(
    center: Point,
    radius: float,
    start_angle: float,
    sweep: float,
    spacing: float,
) -> list[Point]:
    """Points along an arc, excluding the start and including the end."""
    count = arc_segment_count(radius, sweep, spacing)
    step = sweep / count
    return [
        (
            center[0] + radius * math.cos(start_angle + step * i),
            center[1] + radius * math.sin(start_angle + step * i),
        )
        for i in range(1, count + 1)
    ]
