# tests/test_grid.py
from gridnav.geometry import Point
from gridnav.grid import (
    adjacent_cell,
    building_cells,
    building_id,
    cell_corners,
    cell_for_id,
    cell_wall,
    clamp_to_grid,
    estimate_cell,
    in_bounds,
    record_coords,
    record_point,
)
from gridnav.models import BuildingRecord, Direction, DoorRecord


def test_building_id_round_trip():
    assert building_id((3, 5), 10) == 35
    assert cell_for_id(35, 10) == (3, 5)
    assert cell_for_id(building_id((0, 7), 8), 8) == (0, 7)


def test_record_point_is_zero_indexed():
    door = DoorRecord(id=1, x=6.25, y=3.5)
    assert record_point(door) == (5.25, 2.5)
    assert record_coords(Point(5.25, 2.5)) == (6.25, 3.5)


def test_estimate_cell_rounds_halves_up():
    assert estimate_cell(Point(5.4, 5.6)) == (5, 6)
    assert estimate_cell(Point(5.5, -0.5)) == (6, 0)
    assert estimate_cell(Point(-0.6, 2.0)) == (-1, 2)


def test_bounds_and_clamp():
    assert in_bounds((0, 9), 10)
    assert not in_bounds((10, 0), 10)
    assert not in_bounds((-1, 3), 10)
    assert clamp_to_grid((-3, 4), 10) == (0, 4)
    assert clamp_to_grid((12, -2), 10) == (9, 0)
    assert clamp_to_grid((3, 3), 10) == (3, 3)


def test_adjacent_cell():
    assert adjacent_cell((3, 5), Direction.UP) == (3, 4)
    assert adjacent_cell((3, 5), Direction.RIGHT) == (4, 5)


def test_cell_corners_with_offset():
    assert cell_corners((1, 1)) == [(0.5, 0.5), (1.5, 0.5), (1.5, 1.5), (0.5, 1.5)]
    tl, tr, br, bl = cell_corners((0, 0), 0.25)
    assert tl == (-0.25, -0.25)
    assert br == (0.25, 0.25)


def test_cell_wall_runs_clockwise():
    assert cell_wall((0, 0), Direction.UP) == ((-0.5, -0.5), (0.5, -0.5))
    assert cell_wall((0, 0), Direction.RIGHT) == ((0.5, -0.5), (0.5, 0.5))
    assert cell_wall((0, 0), Direction.DOWN) == ((0.5, 0.5), (-0.5, 0.5))
    assert cell_wall((0, 0), Direction.LEFT) == ((-0.5, 0.5), (-0.5, -0.5))


def test_building_cells_include_merged():
    building = BuildingRecord(id=24, x=3, y=5, merged_x=[4, 3], merged_y=[5, 5])
    assert building_cells(building) == [(2, 4), (3, 4)]
