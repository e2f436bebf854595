# src/gridnav/grid.py
"""Conversions between building ids, grid cells and record coordinates."""
from __future__ import annotations

import math

from gridnav.geometry import Line, Point
from gridnav.models import ORDERED_DIRECTIONS, BuildingRecord, Direction, DoorRecord

Cell = tuple[int, int]


def building_id(cell: Cell, grid_size: int) -> int:
    return cell[0] * grid_size + cell[1]


def cell_for_id(cell_id: int, grid_size: int) -> Cell:
    return cell_id // grid_size, cell_id % grid_size


def record_point(record: BuildingRecord | DoorRecord) -> Point:
    """0-indexed grid position of a 1-indexed record."""
    return Point(record.x - 1, record.y - 1)


def record_coords(point: Point) -> tuple[float, float]:
    """1-indexed record coordinates of a grid point."""
    return point[0] + 1, point[1] + 1


def estimate_cell(point: Point) -> Cell:
    """Cell whose centre is nearest to the point (halves round up)."""
    return math.floor(point[0] + 0.5), math.floor(point[1] + 0.5)


def in_bounds(cell: Cell, grid_size: int) -> bool:
    return 0 <= cell[0] < grid_size and 0 <= cell[1] < grid_size


def clamp_to_grid(cell: Cell, grid_size: int) -> Cell:
    """Nearest border cell for an out-of-bounds cell; in-bounds cells pass through."""
    return (
        min(max(cell[0], 0), grid_size - 1),
        min(max(cell[1], 0), grid_size - 1),
    )


def adjacent_cell(cell: Cell, direction: Direction) -> Cell:
    dx, dy = direction.offset
    return cell[0] + dx, cell[1] + dy


def cell_corners(cell: Cell, offset: float = 0.0) -> list[Point]:
    """TL, TR, BR, BL corners of a cell, pulled inward by ``offset``."""
    x, y = cell
    return [
        Point(x - 0.5 + offset, y - 0.5 + offset),
        Point(x + 0.5 - offset, y - 0.5 + offset),
        Point(x + 0.5 - offset, y + 0.5 - offset),
        Point(x - 0.5 + offset, y + 0.5 - offset),
    ]


def cell_wall(cell: Cell, direction: Direction, offset: float = 0.0) -> Line:
    """Side of a cell facing ``direction``, running clockwise around the cell."""
    corners = cell_corners(cell, offset)
    i = direction.order
    return corners[i], corners[(i + 1) % 4]


def cell_walls(cell: Cell, offset: float = 0.0) -> list[tuple[Direction, Line]]:
    return [(direction, cell_wall(cell, direction, offset)) for direction in ORDERED_DIRECTIONS]


def building_cells(building: BuildingRecord) -> list[Cell]:
    """0-indexed cells covered by a building, its own cell first."""
    cells = [(building.x - 1, building.y - 1)]
    if building.merged_x is not None and building.merged_y is not None:
        for x, y in zip(building.merged_x, building.merged_y):
            cell = (x - 1, y - 1)
            if cell not in cells:
                cells.append(cell)
    return cells
