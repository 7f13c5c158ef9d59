"""Line and circle constructions in the local (x, y) plane.

Every function here is total over finite floats. Constructions that can
fail (parallel lines, a line missing a circle) return ``None`` or an empty
list instead of raising.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

from route_core.geometry.primitives import Point

PARALLEL_DETERMINANT = 1e-20
TANGENT_DISCRIMINANT = 1e-12


@dataclass(frozen=True)
class LineEquation:
    """A line in general form ``a*x + b*y + c = 0``."""

    a: float
    b: float
    c: float


@dataclass(frozen=True)
class Circle:
    center: Point
    radius: float


def line_from_two_points(p1: Point, p2: Point) -> LineEquation:
    a = p2[1] - p1[1]
    b = p1[0] - p2[0]
    c = p2[0] * p1[1] - p1[0] * p2[1]
    return LineEquation(a, b, c)


def line_through_with_heading(point: Point, direction: tuple[float, float]) -> LineEquation:
    return line_from_two_points(point, (point[0] + direction[0], point[1] + direction[1]))


def line_intersection(l1: LineEquation, l2: LineEquation) -> Point | None:
    det = l1.a * l2.b - l2.a * l1.b
    if abs(det) < PARALLEL_DETERMINANT:
        return None
    x = (l1.b * l2.c - l2.b * l1.c) / det
    y = (l2.a * l1.c - l1.a * l2.c) / det
    return (x, y)


def _solve_quadratic(qa: float, qb: float, qc: float) -> list[float]:
    discriminant = qb * qb - 4.0 * qa * qc
    if abs(discriminant) <= TANGENT_DISCRIMINANT:
        return [-qb / (2.0 * qa)]
    if discriminant < 0:
        return []
    root = math.sqrt(discriminant)
    return [(-qb - root) / (2.0 * qa), (-qb + root) / (2.0 * qa)]


def line_circle_intersections(line: LineEquation, circle: Circle) -> list[Point]:
    """Return 0, 1 (tangent) or 2 intersection points.

    The line is rewritten in terms of whichever axis keeps the slope bounded,
    so vertical and horizontal lines are handled by the same quadratic.
    """
    h, k = circle.center
    r = circle.radius
    if line.a == 0 and line.b == 0:
        return []

    if abs(line.b) >= abs(line.a):
        m = -line.a / line.b
        q = -line.c / line.b
        roots = _solve_quadratic(
            1.0 + m * m,
            2.0 * (m * (q - k) - h),
            h * h + (q - k) * (q - k) - r * r,
        )
        return [(x, m * x + q) for x in roots]

    m = -line.b / line.a
    q = -line.c / line.a
    roots = _solve_quadratic(
        1.0 + m * m,
        2.0 * (m * (q - h) - k),
        (q - h) * (q - h) + k * k - r * r,
    )
    return [(m * y + q, y) for y in roots]


def incircle_of_triangle(a: Point, b: Point, c: Point) -> Circle:
    side_a = math.hypot(c[0] - b[0], c[1] - b[1])
    side_b = math.hypot(a[0] - c[0], a[1] - c[1])
    side_c = math.hypot(b[0] - a[0], b[1] - a[1])
    perimeter = side_a + side_b + side_c
    if perimeter <= 0:
        return Circle(a, 0.0)

    center = (
        (side_a * a[0] + side_b * b[0] + side_c * c[0]) / perimeter,
        (side_a * a[1] + side_b * b[1] + side_c * c[1]) / perimeter,
    )
    s = perimeter / 2.0
    # Heron; clamp for colinear input where rounding can go slightly negative.
    area = math.sqrt(max(0.0, s * (s - side_a) * (s - side_b) * (s - side_c)))
    return Circle(center, area / s)
