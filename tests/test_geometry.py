"""Tests for canvas geometry helpers."""

import pytest

from relboard.canvas.geometry import (
    box_center,
    control_point,
    distance_to_curve,
    point_in_box,
    point_to_segment_distance,
    quadratic_path,
    quadratic_point,
    screen_to_world,
    world_to_screen,
)


class TestTransforms:

    def test_world_to_screen(self):
        assert world_to_screen((10, 20), (5, 5), 2) == (25, 45)

    def test_screen_to_world_inverts(self):
        screen = world_to_screen((-37.5, 12.25), (140, -60), 0.75)
        world = screen_to_world(screen, (140, -60), 0.75)
        assert world == pytest.approx((-37.5, 12.25))

    def test_box_center(self):
        assert box_center(0, 0) == (64, 40)
        assert box_center(100, 50) == (164, 90)

    def test_point_in_box(self):
        assert point_in_box((10, 10), 0, 0)
        assert point_in_box((128, 80), 0, 0)
        assert not point_in_box((129, 10), 0, 0)


class TestControlPoint:

    def test_short_edge_offset_scales_with_distance(self):
        # distance 100 -> offset 30, rotated to +y for an edge pointing +x
        assert control_point((0, 0), (100, 0)) == pytest.approx((50, 30))

    def test_long_edge_offset_is_capped(self):
        assert control_point((0, 0), (1000, 0)) == pytest.approx((500, 100))

    def test_direction_flips_side(self):
        forward = control_point((0, 0), (100, 0))
        backward = control_point((100, 0), (0, 0))
        assert forward[1] == pytest.approx(30)
        assert backward[1] == pytest.approx(-30)

    def test_coincident_endpoints_do_not_divide_by_zero(self):
        assert control_point((42, 7), (42, 7)) == (42, 7)


class TestCurves:

    def test_quadratic_path_format(self):
        path = quadratic_path((0, 0), (50, 30), (100, 0))
        assert path == "M 0.00,0.00 Q 50.00,30.00 100.00,0.00"

    def test_quadratic_point_endpoints_and_middle(self):
        start, control, end = (0, 0), (50, 30), (100, 0)
        assert quadratic_point(start, control, end, 0) == (0, 0)
        assert quadratic_point(start, control, end, 1) == (100, 0)
        assert quadratic_point(start, control, end, 0.5) == pytest.approx((50, 15))

    def test_point_to_segment_distance_middle(self):
        dist, t = point_to_segment_distance((5, 5), (0, 0), (10, 10))
        assert t == pytest.approx(0.5)
        assert dist < 0.1

    def test_point_to_segment_distance_clamps_beyond_end(self):
        dist, t = point_to_segment_distance((20, 0), (0, 0), (10, 0))
        assert t == 1.0
        assert dist == pytest.approx(10)

    def test_distance_to_curve(self):
        start, control, end = (0, 0), (50, 30), (100, 0)
        assert distance_to_curve((50, 15), start, control, end) < 1e-6
        assert distance_to_curve((50, 65), start, control, end) == pytest.approx(50, abs=0.5)
