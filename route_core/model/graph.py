from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Tuple

from route_core.geometry.primitives import Point
from route_core.model.track_point import TrackPoint

# Elevation is left out so revisits at a different recorded height still
# land on the same node.
PlanarKey = Point
EdgeKey = Tuple[PlanarKey, PlanarKey, PlanarKey]


class Direction(Enum):
    FORWARDS = "forwards"
    BACKWARDS = "backwards"


@dataclass(frozen=True)
class Traversal:
    edge_key: EdgeKey
    direction: Direction


@dataclass(frozen=True)
class Graph:
    """Canonical nodes and edges for a route plus the walk that rebuilds it.

    ``edges`` map to interior points only; the bounding nodes are looked up
    in ``nodes`` by the first two components of the key.
    """

    nodes: Dict[PlanarKey, TrackPoint] = field(default_factory=dict)
    edges: Dict[EdgeKey, List[TrackPoint]] = field(default_factory=dict)
    route: List[Traversal] = field(default_factory=list)
    centre_line_offset: float = 0.0
    points: List[TrackPoint] = field(default_factory=list)
    passes: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.edges and not self.route


@dataclass(frozen=True)
class EdgeSummary:
    key: EdgeKey
    start: PlanarKey
    end: PlanarKey
    interior_count: int
    length: float
    traversal_count: int


def reverse_key(key: EdgeKey, interior: List[TrackPoint]) -> EdgeKey:
    """Key the same physical edge would get if walked the other way."""
    start, end, _second = key
    second_to_last = interior[-1].planar if interior else start
    return (end, start, second_to_last)
