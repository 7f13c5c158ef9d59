"""Flatten GPS fixes into the local metric frame the editor works in."""
from __future__ import annotations

import math
from typing import Iterable

from route_core.geometry.primitives import Point3D

EARTH_RADIUS_M = 6_371_000.0


def project_lat_lon(rows: Iterable[tuple[float, float, float]]) -> list[Point3D]:
    """Equirectangular projection of ``(lat, lon, elevation)`` about the first fix.

    x grows eastwards and y northwards, both in metres. Accurate enough for
    route-sized areas.
    """
    fixes = [(float(lat), float(lon), float(ele)) for lat, lon, ele in rows]
    if not fixes:
        return []
    origin_lat, origin_lon, _ = fixes[0]
    scale_x = EARTH_RADIUS_M * math.cos(math.radians(origin_lat))
    return [
        (
            math.radians(lon - origin_lon) * scale_x,
            math.radians(lat - origin_lat) * EARTH_RADIUS_M,
            ele,
        )
        for lat, lon, ele in fixes
    ]
