"""Collapse a route into canonical nodes and edges, and walk it back out.

A route that rides the same road more than once shares a single edge for
that road. Nodes are planar locations that are the start, the end, or have
a number of distinct neighbours other than two.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, List, Sequence

from route_core.config import GraphOptions
from route_core.geometry.primitives import (
    Point3D,
    distance_3d,
    heading,
    planar_distance,
    rotate_clockwise,
)
from route_core.model.graph import (
    Direction,
    EdgeKey,
    EdgeSummary,
    Graph,
    PlanarKey,
    Traversal,
)
from route_core.model.track_point import TrackPoint
from route_core.model.track_sequence import (
    PointLike,
    position_of,
    rebuild_derived_fields,
)

logger = logging.getLogger(__name__)


def _neighbour_sets(points: Sequence[TrackPoint]) -> Dict[PlanarKey, set[PlanarKey]]:
    neighbours: Dict[PlanarKey, set[PlanarKey]] = {}
    for prev, here in zip(points, points[1:]):
        a, b = prev.planar, here.planar
        if a == b:
            continue
        neighbours.setdefault(a, set()).add(b)
        neighbours.setdefault(b, set()).add(a)
    return neighbours


def classify_nodes(points: Sequence[TrackPoint]) -> Dict[PlanarKey, TrackPoint]:
    """Return one representative point per node location, in route order.

    The first visit to a location supplies its representative, so when the
    start and end coincide the start is the canonical node.
    """
    if not points:
        return {}
    neighbours = _neighbour_sets(points)
    forced = {points[0].planar, points[-1].planar}
    nodes: Dict[PlanarKey, TrackPoint] = {}
    for point in points:
        key = point.planar
        if key in nodes:
            continue
        if key in forced or len(neighbours.get(key, ())) != 2:
            nodes[key] = point
    return nodes


def split_fragments(
    points: Sequence[TrackPoint], nodes: Dict[PlanarKey, TrackPoint]
) -> List[List[TrackPoint]]:
    """Cut the route at every node; each fragment includes both end nodes."""
    fragments: List[List[TrackPoint]] = []
    current: List[TrackPoint] = [points[0]]
    for point in points[1:]:
        current.append(point)
        if point.planar in nodes:
            # A repeated node point carries no road.
            if not (len(current) == 2 and current[0].planar == point.planar):
                fragments.append(current)
            current = [point]
    return fragments


def canonicalise(
    fragments: Sequence[List[TrackPoint]],
) -> tuple[Dict[EdgeKey, List[TrackPoint]], List[Traversal]]:
    edges: Dict[EdgeKey, List[TrackPoint]] = {}
    route: List[Traversal] = []
    for fragment in fragments:
        start, end = fragment[0].planar, fragment[-1].planar
        key = (start, end, fragment[1].planar)
        reverse = (end, start, fragment[-2].planar)
        if key in edges:
            route.append(Traversal(key, Direction.FORWARDS))
        elif reverse in edges:
            route.append(Traversal(reverse, Direction.BACKWARDS))
        else:
            edges[key] = list(fragment[1:-1])
            route.append(Traversal(key, Direction.FORWARDS))
    return edges, route


def find_annoying_points(
    edges: Dict[EdgeKey, List[TrackPoint]], slack: float
) -> set[PlanarKey]:
    """Locations of lone interior points that sit almost on the node-to-node line."""
    annoying: set[PlanarKey] = set()
    for (start, end, _second), interior in edges.items():
        if len(interior) != 1:
            continue
        middle = interior[0].planar
        detour = (
            planar_distance(start, middle)
            + planar_distance(middle, end)
            - planar_distance(start, end)
        )
        if detour < slack:
            annoying.add(middle)
    return annoying


def derive_graph(
    points: Sequence[PointLike],
    options: GraphOptions | None = None,
    *,
    centre_line_offset: float = 0.0,
) -> Graph:
    options = options or GraphOptions()
    current = rebuild_derived_fields(points)
    if len(current) < 2:
        return Graph(centre_line_offset=centre_line_offset, points=current)

    passes = 0
    while True:
        passes += 1
        nodes = classify_nodes(current)
        edges, route = canonicalise(split_fragments(current, nodes))
        annoying = find_annoying_points(edges, options.colinear_slack)
        if not annoying:
            break
        logger.debug(
            "Pruning %d colinear waypoint(s) on pass %d", len(annoying), passes
        )
        current = rebuild_derived_fields(
            [p for p in current if p.planar not in annoying]
        )

    logger.info(
        "Derived graph with %d nodes, %d edges, %d traversals",
        len(nodes),
        len(edges),
        len(route),
        extra={"passes": passes, "point_count": len(current)},
    )
    return Graph(
        nodes=nodes,
        edges=edges,
        route=route,
        centre_line_offset=centre_line_offset,
        points=current,
        passes=passes,
    )


def _traversal_points(graph: Graph, traversal: Traversal) -> List[TrackPoint]:
    start_key, end_key, _second = traversal.edge_key
    interior = graph.edges[traversal.edge_key]
    if traversal.direction is Direction.BACKWARDS:
        return [graph.nodes[end_key], *reversed(interior), graph.nodes[start_key]]
    return [graph.nodes[start_key], *interior, graph.nodes[end_key]]


def offset_points(points: Sequence[TrackPoint], offset: float) -> List[Point3D]:
    """Shift each point ``offset`` metres to the right of its direction of travel."""
    shifted: List[Point3D] = []
    for point in points:
        direction = point.effective_direction
        flat = heading((0.0, 0.0), direction) if direction is not None else None
        if flat is None:
            shifted.append(point.xyz)
            continue
        rx, ry = rotate_clockwise(flat)
        shifted.append((point.x + rx * offset, point.y + ry * offset, point.z))
    return shifted


def walk_route(graph: Graph, offset: float | None = None) -> List[TrackPoint]:
    """Flatten the graph back into a point sequence following ``graph.route``."""
    emitted: List[Point3D] = []
    for traversal in graph.route:
        segment = _traversal_points(graph, traversal)
        if emitted:
            segment = segment[1:]
        emitted.extend(position_of(p) for p in segment)

    walked = rebuild_derived_fields(emitted)
    offset = graph.centre_line_offset if offset is None else offset
    if offset == 0 or not walked:
        return walked
    return rebuild_derived_fields(offset_points(walked, offset))


def node_positions(graph: Graph) -> List[Point3D]:
    return [node.xyz for node in graph.nodes.values()]


def edge_summaries(graph: Graph) -> List[EdgeSummary]:
    usage = Counter(traversal.edge_key for traversal in graph.route)
    summaries: List[EdgeSummary] = []
    for key, interior in graph.edges.items():
        start_key, end_key, _second = key
        path = [graph.nodes[start_key].xyz, *(p.xyz for p in interior), graph.nodes[end_key].xyz]
        length = sum(distance_3d(a, b) for a, b in zip(path, path[1:]))
        summaries.append(
            EdgeSummary(
                key=key,
                start=start_key,
                end=end_key,
                interior_count=len(interior),
                length=length,
                traversal_count=usage[key],
            )
        )
    return summaries
