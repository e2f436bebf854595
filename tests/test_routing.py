# tests/test_routing.py
import pytest

from gridnav.geometry import Point, floats_eq
from gridnav.models import Direction
from gridnav.routing import (
    UsableWallGrid,
    WallRef,
    find_wall_path,
    route_between_buildings,
    wall_path_to_points,
)


def test_all_walls_usable_without_merges():
    grid = UsableWallGrid(4)
    assert all(
        usable for row in grid.usable for sides in row for usable in sides.values()
    )


def test_merged_cells_block_shared_sides():
    grid = UsableWallGrid(10, lambda a, b: {a, b} == {35, 45})
    assert not grid.is_usable((3, 5), Direction.RIGHT)
    assert not grid.is_usable((4, 5), Direction.LEFT)
    assert grid.is_usable((3, 5), Direction.LEFT)
    assert grid.is_usable((4, 5), Direction.UP)


def test_neighbors_of_side_wall():
    grid = UsableWallGrid(10)
    found = grid.neighbors(WallRef(35, Direction.RIGHT))
    assert len(found) == 13
    # along the same side
    assert WallRef(34, Direction.RIGHT) in found
    assert WallRef(36, Direction.RIGHT) in found
    # crosswise sides of the facing cell and of this cell
    assert WallRef(45, Direction.UP) in found
    assert WallRef(35, Direction.DOWN) in found
    # facing walls
    assert WallRef(45, Direction.LEFT) in found
    assert WallRef(44, Direction.LEFT) in found


def test_neighbors_stop_at_grid_edge():
    grid = UsableWallGrid(1)
    found = grid.neighbors(WallRef(0, Direction.UP))
    assert found == [WallRef(0, Direction.LEFT), WallRef(0, Direction.RIGHT)]


def test_single_cell_path_goes_around():
    grid = UsableWallGrid(1)
    path = find_wall_path(grid, WallRef(0, Direction.UP), WallRef(0, Direction.DOWN), Point(0, 0.5))
    assert path == [
        WallRef(0, Direction.UP),
        WallRef(0, Direction.LEFT),
        WallRef(0, Direction.DOWN),
    ]

    points = wall_path_to_points(grid, path)
    assert len(points) == 8
    assert points[0] == (0.5, -0.5)
    assert points[-1] == (0.5, 0.5)


def test_adjacent_cells_share_their_wall():
    grid = UsableWallGrid(10)
    start, end = WallRef(35, Direction.RIGHT), WallRef(45, Direction.LEFT)
    assert find_wall_path(grid, start, end, Point(3.5, 5.0)) == [start, end]

    points = route_between_buildings(
        grid, 35, Direction.RIGHT, 45, Direction.LEFT, Point(3.5, 5.0), offset=0.0
    )
    assert points
    assert all(floats_eq(p.x, 3.5) for p in points)


def test_offset_pulls_path_into_cells():
    grid = UsableWallGrid(10)
    points = route_between_buildings(
        grid, 35, Direction.RIGHT, 45, Direction.LEFT, Point(3.5, 5.0), offset=0.05
    )
    xs = sorted({round(p.x, 6) for p in points})
    assert xs == pytest.approx([3.45, 3.55])


def test_unreachable_wall_gives_empty_path():
    grid = UsableWallGrid(3)
    path = find_wall_path(grid, WallRef(0, Direction.UP), WallRef(99, Direction.UP), Point(0, 0))
    assert path == []
    assert wall_path_to_points(grid, path) == []


def test_single_wall_path_is_its_line():
    grid = UsableWallGrid(3)
    assert wall_path_to_points(grid, [WallRef(4, Direction.UP)]) == [(0.5, 0.5), (1.5, 0.5)]


def test_path_avoids_merged_interior():
    # cells (3, 5) and (4, 5) form one building
    grid = UsableWallGrid(10, lambda a, b: {a, b} == {35, 45})
    path = find_wall_path(
        grid, WallRef(35, Direction.LEFT), WallRef(45, Direction.RIGHT), Point(4.5, 5.0)
    )
    assert path[0] == WallRef(35, Direction.LEFT)
    assert path[-1] == WallRef(45, Direction.RIGHT)
    assert WallRef(35, Direction.RIGHT) not in path
    assert WallRef(45, Direction.LEFT) not in path


def test_walls_outside_grid_give_empty_path():
    grid = UsableWallGrid(10)
    target = Point(6.5, 5.0)
    # 999 is past the last cell; -1 would wrap onto the last row
    assert find_wall_path(grid, WallRef(999, Direction.RIGHT), WallRef(75, Direction.LEFT), target) == []
    assert find_wall_path(grid, WallRef(-1, Direction.RIGHT), WallRef(75, Direction.LEFT), target) == []
    assert find_wall_path(grid, WallRef(55, Direction.RIGHT), WallRef(100, Direction.LEFT), target) == []
    assert grid.has_cell(99)
    assert not grid.has_cell(100)
    assert not grid.has_cell(-1)
