import math

import pytest

from route_core.config import BendOptions, SmoothingMode
from route_core.geometry.primitives import planar_distance
from route_core.model.track_sequence import rebuild_derived_fields
from route_core.services.curve_former import (
    BendSpec,
    apply_bend,
    bend_edit,
    bend_orientation,
    center_from_drag,
    is_contiguous,
    preview_bend,
    preview_geometry,
    select_points,
)

TANGENT_OFFSET = math.sqrt(24.0**2 - 20.0**2)


def _corner_track():
    # East along y=0, then a left turn north along x=100; z climbs 1m per point.
    east = [(5.0 * i, 0.0, float(i)) for i in range(21)]
    north = [(100.0, 5.0 * j, float(20 + j)) for j in range(1, 21)]
    return rebuild_derived_fields(east + north)


def _right_corner_track():
    # The same corner mirrored: east along y=0, then a right turn south.
    east = [(5.0 * i, 0.0, float(i)) for i in range(21)]
    south = [(100.0, -5.0 * j, float(20 + j)) for j in range(1, 21)]
    return rebuild_derived_fields(east + south)


def _spec(center=(92.0, 8.0), **overrides):
    values = dict(
        center=(center[0], center[1], 0.0),
        push_radius=12.0,
        pull_disc_width=5.0,
        spacing=2.0,
    )
    values.update(overrides)
    return BendSpec(**values)


def test_contiguity_requires_gapless_distinct_indices():
    assert is_contiguous([2, 3, 4])
    assert not is_contiguous([2, 3, 5])
    assert not is_contiguous([2, 2, 3])
    assert not is_contiguous([])


def test_bend_around_corner():
    track = _corner_track()

    preview = preview_bend(track, _spec())

    assert preview.is_applicable
    assert preview.is_contiguous
    assert [p.index for p in preview.points_within_circle] == list(range(17, 24))
    assert (preview.start_index, preview.end_index) == (16, 24)
    assert preview.new_points[0][:2] == pytest.approx((92.0 - TANGENT_OFFSET, 0.0))
    assert preview.new_points[-1][:2] == pytest.approx((100.0, 8.0 + TANGENT_OFFSET))


def test_right_hand_bend_mirrors_left_hand_bend():
    track = _right_corner_track()

    preview = preview_bend(track, _spec(center=(92.0, -8.0)))
    flat = [p[:2] for p in preview.new_points]

    assert preview.is_applicable
    assert bend_orientation(track, 17, 23, (92.0, -8.0)) == -1.0
    assert [p.index for p in preview.points_within_circle] == list(range(17, 24))
    assert (preview.start_index, preview.end_index) == (16, 24)
    assert flat[0] == pytest.approx((92.0 - TANGENT_OFFSET, 0.0))
    assert flat[-1] == pytest.approx((100.0, -8.0 - TANGENT_OFFSET))
    assert all(planar_distance((92.0, -8.0), p) >= 12.0 - 1e-6 for p in flat)
    assert all(planar_distance(a, b) <= 2.0 + 1e-6 for a, b in zip(flat, flat[1:]))


def test_bend_keeps_clear_of_circle_and_respects_spacing():
    preview = preview_bend(_corner_track(), _spec())
    flat = [p[:2] for p in preview.new_points]

    assert all(planar_distance((92.0, 8.0), p) >= 12.0 - 1e-6 for p in flat)
    assert all(planar_distance(a, b) <= 2.0 + 1e-6 for a, b in zip(flat, flat[1:]))


def test_bend_elevation_is_interpolated_between_bracketing_points():
    preview = preview_bend(_corner_track(), _spec())
    heights = [p[2] for p in preview.new_points]

    assert preview.outline[0] == (75.0, 0.0, 15.0)
    assert preview.outline[-1] == (100.0, 25.0, 25.0)
    assert all(15.0 < h < 25.0 for h in heights)
    assert all(a < b for a, b in zip(heights, heights[1:]))


def test_apply_bend_replaces_range_and_rebuilds():
    track = _corner_track()
    preview = preview_bend(track, _spec())

    updated = apply_bend(track, preview)

    assert updated is not None
    assert len(updated) == len(track) - 9 + len(preview.new_points)
    assert [p.index for p in updated] == list(range(len(updated)))
    assert updated[16].xyz == preview.new_points[0]
    assert updated[15].xyz == track[15].xyz
    assert updated[-1].xyz == track[-1].xyz
    assert preview_geometry(preview) == list(preview.outline)


def test_non_contiguous_selection_is_not_applicable():
    track = _corner_track()

    preview = preview_bend(track, _spec(center=(90.0, 10.0)))

    assert [p.index for p in preview.points_within_circle] == [17, 18, 19, 21, 22, 23]
    assert not preview.is_contiguous
    assert not preview.is_applicable
    assert bend_edit(preview) is None
    assert apply_bend(track, preview) is None
    assert preview_geometry(preview) == []


def test_pull_disc_fills_bracketed_gap():
    track = _corner_track()
    spec = _spec(center=(90.0, 10.0), use_pull_radius=True)

    circle, disc = select_points(track, spec)
    preview = preview_bend(track, spec)

    assert [p.index for p in disc] == [20]
    assert [p.index for p in preview.selection] == list(range(17, 24))
    assert preview.is_applicable
    assert (preview.start_index, preview.end_index) == (17, 23)


def test_window_limits_selection():
    circle, _disc = select_points(_corner_track(), _spec(), window=(0, 18))

    assert [p.index for p in circle] == [17, 18]


def test_piecewise_smoothing_is_reported():
    preview = preview_bend(_corner_track(), _spec(smoothing_mode=SmoothingMode.PIECEWISE))

    assert not preview.is_applicable
    assert "piecewise" in preview.problem


def test_empty_circle_is_not_applicable():
    preview = preview_bend(_corner_track(), _spec(center=(500.0, 500.0)))

    assert preview.problem == "no track points inside the circle"


def test_bend_at_track_start_has_no_entry():
    preview = preview_bend(_corner_track(), _spec(center=(0.0, 5.0), push_radius=8.0))

    assert not preview.is_applicable
    assert "entry" in preview.problem


def test_tiny_radius_is_not_applicable():
    preview = preview_bend(_corner_track(), _spec(push_radius=0.0))

    assert not preview.is_applicable


def test_orientation_follows_side_of_centre():
    track = _corner_track()

    assert bend_orientation(track, 17, 23, (92.0, 8.0)) == 1.0
    assert bend_orientation(track, 5, 8, (30.0, -8.0)) == -1.0


def test_spec_from_options_and_drag():
    track = _corner_track()
    center = center_from_drag(track[18], (2.0, 8.0))

    spec = BendSpec.from_options(center, BendOptions(push_radius=12.0))

    assert center == (92.0, 8.0, 18.0)
    assert spec.push_radius == 12.0
    assert spec.smoothing_mode is SmoothingMode.HOLISTIC
