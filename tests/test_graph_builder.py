import math

import pytest

from route_core.config import GraphOptions
from route_core.model.graph import Direction, reverse_key
from route_core.model.track_sequence import positions, rebuild_derived_fields
from route_core.services.graph_builder import (
    derive_graph,
    edge_summaries,
    find_annoying_points,
    node_positions,
    walk_route,
)


def _out_and_back_with_spur():
    # Start, a junction, a dead-end spur ridden out and back, then onwards.
    return rebuild_derived_fields(
        [
            (0.0, 0.0, 0.0),
            (10.0, 8.0, 0.0),
            (20.0, 0.0, 0.0),
            (30.0, 8.0, 0.0),
            (40.0, 0.0, 0.0),
            (30.0, 8.0, 0.0),
            (20.0, 0.0, 0.0),
            (28.0, -10.0, 0.0),
            (20.0, -20.0, 0.0),
        ]
    )


def _waypoint_ladder():
    outbound = [(10.0 * i, 0.0, 0.0) for i in range(12)]
    inbound = [(x, 0.0, 0.0) for x in (100.0, 80.0, 60.0, 40.0, 20.0, 0.0)]
    return rebuild_derived_fields(outbound + inbound)


def test_simple_route_round_trips():
    track = rebuild_derived_fields(
        [
            (0.0, 0.0, 1.0),
            (10.0, 0.0, 2.0),
            (20.0, 5.0, 3.0),
            (30.0, 0.0, 2.5),
            (40.0, 8.0, 4.0),
            (55.0, 12.0, 4.5),
        ]
    )

    graph = derive_graph(track)

    assert len(graph.nodes) == 2
    assert len(graph.edges) == 1
    assert positions(walk_route(graph)) == positions(track)


def test_revisited_road_shares_one_edge():
    track = _out_and_back_with_spur()

    graph = derive_graph(track)

    assert set(graph.nodes) == {(0.0, 0.0), (20.0, 0.0), (40.0, 0.0), (20.0, -20.0)}
    assert len(graph.edges) == 3
    spur = ((20.0, 0.0), (40.0, 0.0), (30.0, 8.0))
    assert [t.edge_key for t in graph.route].count(spur) == 2
    assert [t.direction for t in graph.route if t.edge_key == spur] == [
        Direction.FORWARDS,
        Direction.BACKWARDS,
    ]
    assert positions(walk_route(graph)) == positions(track)


def test_reverse_key_matches_backwards_walk():
    graph = derive_graph(_out_and_back_with_spur())
    spur = ((20.0, 0.0), (40.0, 0.0), (30.0, 8.0))

    assert reverse_key(spur, graph.edges[spur]) == ((40.0, 0.0), (20.0, 0.0), (30.0, 8.0))


def test_edge_summaries_count_traversals():
    graph = derive_graph(_out_and_back_with_spur())

    summaries = {s.key: s for s in edge_summaries(graph)}
    spur = summaries[((20.0, 0.0), (40.0, 0.0), (30.0, 8.0))]

    assert spur.traversal_count == 2
    assert spur.interior_count == 1
    assert math.isclose(spur.length, 2 * math.hypot(10.0, 8.0))


def test_colinear_waypoints_are_pruned():
    track = _waypoint_ladder()

    graph = derive_graph(track)

    assert graph.passes <= 5
    assert find_annoying_points(graph.edges, GraphOptions().colinear_slack) == set()
    remaining_x = {p.x for p in graph.points}
    assert remaining_x.isdisjoint({10.0, 30.0, 50.0, 70.0, 90.0})
    assert len(graph.points) == len(track) - 5
    assert len(graph.edges) == 1
    assert [t.direction for t in graph.route] == [Direction.FORWARDS, Direction.BACKWARDS]


def test_slack_zero_keeps_waypoints():
    track = _waypoint_ladder()

    graph = derive_graph(track, GraphOptions(colinear_slack=0.0))

    assert graph.passes == 1
    assert len(graph.points) == len(track)


def test_short_input_gives_empty_graph():
    graph = derive_graph([(0.0, 0.0, 0.0)])

    assert graph.is_empty
    assert walk_route(graph) == []


def test_loop_start_wins_node_elevation():
    track = rebuild_derived_fields(
        [
            (0.0, 0.0, 0.0),
            (100.0, 0.0, 0.0),
            (100.0, 100.0, 0.0),
            (0.0, 100.0, 0.0),
            (0.0, 0.0, 5.0),
        ]
    )

    graph = derive_graph(track)

    assert list(graph.nodes) == [(0.0, 0.0)]
    assert graph.nodes[(0.0, 0.0)].z == 0.0
    assert walk_route(graph)[-1].xyz == (0.0, 0.0, 0.0)
    assert node_positions(graph) == [(0.0, 0.0, 0.0)]


def test_centre_line_offset_shifts_to_the_right():
    track = rebuild_derived_fields([(10.0 * i, 0.0, 0.0) for i in range(5)])

    graph = derive_graph(track, centre_line_offset=2.0)
    lane = walk_route(graph)

    assert [p.x for p in lane] == pytest.approx([0.0, 10.0, 20.0, 30.0, 40.0])
    assert all(math.isclose(p.y, -2.0) for p in lane)
    assert positions(walk_route(graph, offset=0.0)) == positions(track)
