from __future__ import annotations

from dataclasses import dataclass

from route_core.geometry.primitives import Point, Point3D


@dataclass(frozen=True)
class TrackPoint:
    """One point of a route with its geometry derived from its neighbours.

    Instances are only produced by
    :func:`route_core.model.track_sequence.rebuild_derived_fields`; every
    field other than ``xyz`` is a function of the whole sequence.
    """

    index: int
    xyz: Point3D
    distance_from_start: float
    road_vector: Point3D
    length: float
    before_direction: Point3D | None
    after_direction: Point3D | None
    effective_direction: Point3D | None
    gradient: float | None
    gradient_change: float | None
    direction_change: float | None

    @property
    def x(self) -> float:
        return self.xyz[0]

    @property
    def y(self) -> float:
        return self.xyz[1]

    @property
    def z(self) -> float:
        return self.xyz[2]

    @property
    def planar(self) -> Point:
        return (self.xyz[0], self.xyz[1])
