# tests/test_outline.py
import pytest
from shapely.geometry import Point as ShapelyPoint
from shapely.geometry import Polygon

from gridnav.geometry import Point, points_eq
from gridnav.outline import build_outline, correct_deep_doors, normalize_path, outline_for_doors

SQUARE_DOORS = [Point(5.35, 5.0), Point(5.0, 5.35), Point(4.65, 5.0), Point(5.0, 4.65)]

# two cells side by side, (5, 5) and (6, 5)
WIDE_DOORS = [
    Point(6.35, 5.0),
    Point(6.0, 5.35),
    Point(5.0, 5.35),
    Point(4.65, 5.0),
    Point(5.0, 4.65),
    Point(6.0, 4.65),
]


def _has_point(path, point):
    return any(points_eq(p, point, 1e-6) for p in path)


def test_correct_deep_doors_leaves_three_alone():
    doors = [Point(5.3, 5.0), Point(4.9, 5.0), Point(5.0, 4.7)]
    assert correct_deep_doors(doors) == doors


def test_correct_deep_doors_pulls_back_inner_door():
    doors = [Point(5.4, 5.0), Point(4.6, 4.7), Point(4.8, 5.0), Point(4.6, 5.3)]
    corrected = correct_deep_doors(doors)
    assert corrected[2] == pytest.approx((4.6, 5.0))
    assert corrected[0] == doors[0]
    assert corrected[1] == doors[1]
    assert corrected[3] == doors[3]


def test_build_outline_square(square_outline):
    outline = build_outline(SQUARE_DOORS, [(5, 5)])
    assert len(outline) == 4
    for got, want in zip(outline, square_outline):
        assert got == pytest.approx(want)


def test_build_outline_merged_cells():
    outline = build_outline(WIDE_DOORS, [(5, 5), (6, 5)])
    expected = [(4.65, 4.65), (6.35, 4.65), (6.35, 5.35), (4.65, 5.35)]
    assert len(outline) == 4
    for got, want in zip(outline, expected):
        assert got == pytest.approx(want)


def test_build_outline_flips_corners_outside_building():
    outline = build_outline(WIDE_DOORS, [(5, 5)])
    assert not _has_point(outline, Point(6.35, 5.35))
    assert not _has_point(outline, Point(6.35, 4.65))


def test_build_outline_passes_through_doors():
    outline = build_outline(SQUARE_DOORS, [(5, 5)])
    ring = Polygon(outline).exterior
    for door in SQUARE_DOORS:
        assert ring.distance(ShapelyPoint(door)) < 1e-6


def test_build_outline_needs_two_points():
    assert build_outline([Point(5.0, 5.0)], [(5, 5)]) == []


def test_normalize_path():
    normalized, offset = normalize_path([Point(4.65, 4.65), Point(5.35, 4.65), Point(5.35, 5.35)])
    assert offset == (5.0, 5.0)
    assert normalized[0] == pytest.approx((-0.35, -0.35))
    assert normalize_path([]) == ([], (0.0, 0.0))


def test_outline_for_doors():
    result = outline_for_doors(SQUARE_DOORS, [(5, 5)])
    assert len(result.walls) == 4
    assert result.door_points == SQUARE_DOORS
    assert result.normal_offset == (5.0, 5.0)
    assert result.bounding_rect[0] == pytest.approx((-0.35, -0.35))
    assert result.bounding_rect[2] == pytest.approx((0.35, 0.35))
    # walls chain around the outline
    for (_, end), (start, _) in zip(result.walls, result.walls[1:] + result.walls[:1]):
        assert end == start
