from __future__ import annotations

import math

Point = tuple[float, float]
Point3D = tuple[float, float, float]
Heading = tuple[float, float]


def dot(a: Heading, b: Heading) -> float:
    return a[0] * b[0] + a[1] * b[1]


def cross(a: Heading, b: Heading) -> float:
    return a[0] * b[1] - a[1] * b[0]


def planar(point: Point3D | Point) -> Point:
    return (point[0], point[1])


def planar_distance(a: Point3D | Point, b: Point3D | Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def distance_3d(a: Point3D, b: Point3D) -> float:
    return math.sqrt(
        (b[0] - a[0]) ** 2 + (b[1] - a[1]) ** 2 + (b[2] - a[2]) ** 2
    )


def magnitude_3d(vec: Point3D) -> float:
    return math.sqrt(vec[0] * vec[0] + vec[1] * vec[1] + vec[2] * vec[2])


def normalize_3d(vec: Point3D | None) -> Point3D | None:
    if vec is None:
        return None
    length = magnitude_3d(vec)
    if length == 0:
        return None
    return (vec[0] / length, vec[1] / length, vec[2] / length)


def heading(a: Point3D | Point, b: Point3D | Point) -> Heading | None:
    dx, dy = b[0] - a[0], b[1] - a[1]
    mag = math.hypot(dx, dy)
    return None if mag <= 0 else (dx / mag, dy / mag)


def signed_angle(a: Heading, b: Heading) -> float:
    """Signed angle from ``a`` to ``b`` in radians. Positive = CCW."""
    return math.atan2(cross(a, b), dot(a, b))


def rotate_clockwise(vec: Heading) -> Heading:
    """Rotate by -90 degrees, giving the right-hand side of travel."""
    return (vec[1], -vec[0])


def points_close(a: Point, b: Point, tol: float = 1e-6) -> bool:
    return math.hypot(a[0] - b[0], a[1] - b[1]) <= tol


def directed_angle(start_angle: float, end_angle: float, orientation: float) -> float:
    angle = end_angle - start_angle
    if orientation > 0:
        while angle <= 0:
            angle += 2 * math.pi
    else:
        while angle >= 0:
            angle -= 2 * math.pi
    return angle


def signed_offset_from_line(start: Point, end: Point, point: Point) -> float | None:
    """Signed perpendicular distance of ``point`` from the line start->end.

    Positive values lie to the left of the direction of travel.
    """
    direction = heading(start, end)
    if direction is None:
        return None
    return cross(direction, (point[0] - start[0], point[1] - start[1]))
