# tests/test_geometry.py
import pytest
from shapely.geometry import Polygon

from gridnav.geometry import (
    Point,
    bounding_rect,
    closest_point_on_lines,
    closest_point_on_segment,
    corner_between_points,
    distance,
    extend_line_point,
    lines_eq,
    lines_from_path,
    orthogonal_direction,
    point_in_polygon,
    point_on_segment,
    resolve_self_intersections,
    segment_intersection,
    simplify_path,
    translate_point,
    weighted_midpoint,
)
from gridnav.models import Orientation


def test_segment_intersection_crossing():
    hit = segment_intersection(((0, 0), (2, 0)), ((1, -1), (1, 1)))
    assert hit == pytest.approx((1.0, 0.0))
    assert segment_intersection(((1, -1), (1, 1)), ((0, 0), (2, 0))) == pytest.approx((1.0, 0.0))


def test_segment_intersection_touching_endpoint():
    hit = segment_intersection(((0, 0), (1, 0)), ((1, 0), (1, 1)))
    assert hit == pytest.approx((1.0, 0.0))


def test_segment_intersection_misses():
    assert segment_intersection(((0, 0), (1, 0)), ((2, -1), (2, 1))) is None


def test_segment_intersection_parallel_and_collinear():
    assert segment_intersection(((0, 0), (2, 0)), ((0, 1), (2, 1))) is None
    assert segment_intersection(((0, 0), (2, 0)), ((1, 0), (3, 0))) is None


def test_closest_point_on_segment():
    seg = ((0, 0), (2, 0))
    assert closest_point_on_segment(seg, (1, 1)) == pytest.approx((1.0, 0.0))
    assert closest_point_on_segment(seg, (3, 1)) == pytest.approx((2.0, 0.0))
    assert closest_point_on_segment(seg, (0, 1), 0.25, 0.75) == pytest.approx((0.5, 0.0))


def test_closest_point_on_zero_length_segment():
    assert closest_point_on_segment(((1, 1), (1, 1)), (3, 4)) == (1.0, 1.0)


def test_closest_point_on_lines():
    lines = [((0, 0), (1, 0)), ((0, 2), (1, 2))]
    point, index = closest_point_on_lines(lines, (0.5, 1.5))
    assert point == pytest.approx((0.5, 2.0))
    assert index == 1


def test_closest_point_on_lines_keeps_point_on_line():
    lines = [((0, 0), (1, 0)), ((0, 2), (1, 2))]
    assert closest_point_on_lines(lines, (0.3, 2.0)) == ((0.3, 2.0), 1)


def test_closest_point_on_lines_tie_keeps_first():
    lines = [((0, 0), (1, 0)), ((0, 2), (1, 2))]
    _, index = closest_point_on_lines(lines, (0.5, 1.0))
    assert index == 0


def test_closest_point_on_no_lines():
    assert closest_point_on_lines([], (0, 0)) == (None, -1)


def test_orthogonal_direction():
    assert orthogonal_direction(Point(0, 0), Point(0, 1)) is Orientation.VERTICAL
    assert orthogonal_direction(Point(0, 0), Point(1, 0)) is Orientation.HORIZONTAL
    assert orthogonal_direction(Point(0, 0), Point(0, 0)) is None
    assert orthogonal_direction(Point(0, 0), Point(3, 1)) is Orientation.HORIZONTAL
    assert orthogonal_direction(Point(0, 0), Point(1, 3)) is Orientation.VERTICAL


def test_corner_between_points():
    p1, p2 = Point(5.35, 5.0), Point(5.0, 5.35)
    assert corner_between_points(p1, p2, convex=True) == (5.35, 5.35)
    assert corner_between_points(p1, p2, convex=False) == (5.0, 5.0)


def test_translate_and_extend():
    assert translate_point(Point(1, 1), Point(0, 0), Point(2, 0), 0.5) == pytest.approx((1.5, 1.0))
    assert translate_point(Point(1, 1), Point(0, 0), Point(0, 0), 0.5) == (1, 1)
    assert extend_line_point(Point(0, 0), Point(0, 1), -0.25) == pytest.approx((0.0, 0.75))


def test_weighted_midpoint():
    assert weighted_midpoint(Point(0, 0), Point(4, 0), 0.25) == pytest.approx((1.0, 0.0))


def test_lines_eq_is_undirected():
    assert lines_eq(((0, 0), (1, 0)), ((1, 0), (0, 0)))
    assert not lines_eq(((0, 0), (1, 0)), ((0, 0), (2, 0)))


def test_lines_from_path():
    path = [Point(0, 0), Point(1, 0), Point(1, 1)]
    assert len(lines_from_path(path)) == 3
    assert lines_from_path(path)[-1] == ((1, 1), (0, 0))
    assert len(lines_from_path(path, closed=False)) == 2


def test_bounding_rect():
    rect = bounding_rect([Point(1, 2), Point(3, 0), Point(2, 5)])
    assert rect == [(1, 0), (3, 0), (3, 5), (1, 5)]
    assert bounding_rect([]) == []


def test_point_on_segment():
    assert point_on_segment(((0, 0), (2, 0)), (1, 0))
    assert not point_on_segment(((0, 0), (2, 0)), (3, 0))
    assert not point_on_segment(((0, 0), (2, 0)), (1, 0.5))


def test_point_in_polygon():
    square = [Point(0, 0), Point(2, 0), Point(2, 2), Point(0, 2)]
    assert point_in_polygon(square, Point(1, 1))
    assert not point_in_polygon(square, Point(3, 1))
    assert not point_in_polygon(square[:2], Point(1, 0))


def test_simplify_path_drops_duplicates_and_collinear():
    path = [Point(0, 0), Point(1, 0), Point(2, 0), Point(2, 0), Point(2, 2), Point(0, 2)]
    assert simplify_path(path, closed=True) == [(0, 0), (2, 0), (2, 2), (0, 2)]


def test_simplify_path_snaps_near_equal_coordinates():
    path = [Point(0, 0), Point(2, 0.00005), Point(2, 2), Point(0, 2)]
    result = simplify_path(path, closed=True, tol=1e-4)
    assert len(result) == 4
    assert result[1] == (2.0, 0.0)


def test_simplify_open_path():
    assert simplify_path([Point(0, 0), Point(1, 0), Point(2, 0)], closed=False) == [(0, 0), (2, 0)]


def test_resolve_self_intersections():
    # the fourth edge cuts back through the first one
    path = [Point(0, 0), Point(2, 0), Point(2, 2), Point(1, 2), Point(1, -1), Point(0, -1)]
    result = resolve_self_intersections(path)
    assert result == [(0, -1), (0, 0), (1, 0), (1, -1)]
    assert Polygon(result).is_valid


def test_resolve_leaves_simple_path_alone():
    square = [Point(0, 0), Point(2, 0), Point(2, 2), Point(0, 2)]
    assert resolve_self_intersections(square) == square


def test_resolve_starts_at_top_left_vertex():
    # smallest x + y wins
    square = [Point(2, 2), Point(0, 2), Point(0, 0), Point(2, 0)]
    assert resolve_self_intersections(square) == [(0, 0), (2, 0), (2, 2), (0, 2)]
    # on a tie in x + y, the smaller x wins
    diamond = [Point(1, 0), Point(0, 1), Point(1, 2), Point(2, 1)]
    assert resolve_self_intersections(diamond) == [(0, 1), (1, 2), (2, 1), (1, 0)]


def test_distance():
    assert distance(Point(0, 0), Point(3, 4)) == 5.0
