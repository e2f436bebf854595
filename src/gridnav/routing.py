# src/gridnav/routing.py
"""Routing between buildings along the walls of grid cells.

Every cell has four walls. A route hops from wall to wall through the open
space between buildings, crossing to the facing wall of the next cell where
two cells meet. Sides shared by two cells of the same merged building are
interior and cannot be used.
"""
from __future__ import annotations

import heapq
import itertools
import logging
from typing import Callable, NamedTuple, Optional, Sequence

from gridnav.geometry import (
    Line,
    Point,
    corner_between_points,
    distance,
    manhattan_distance,
)
from gridnav.grid import Cell, adjacent_cell, building_id, cell_for_id, cell_wall, in_bounds
from gridnav.models import ORDERED_DIRECTIONS, Direction

logger = logging.getLogger(__name__)


class WallRef(NamedTuple):
    cell_id: int
    direction: Direction


class UsableWallGrid:
    """Per-cell wall usability for one routing request."""

    def __init__(self, grid_size: int, connected: Optional[Callable[[int, int], bool]] = None):
        self.grid_size = grid_size
        # usable[y][x][direction]
        self.usable: list[list[dict[Direction, bool]]] = []
        for y in range(grid_size):
            row = []
            for x in range(grid_size):
                cell_id = building_id((x, y), grid_size)
                sides = {}
                for direction in ORDERED_DIRECTIONS:
                    adj = adjacent_cell((x, y), direction)
                    sides[direction] = not (
                        connected is not None
                        and in_bounds(adj, grid_size)
                        and connected(cell_id, building_id(adj, grid_size))
                    )
                row.append(sides)
            self.usable.append(row)

    def cell(self, wall: WallRef) -> Cell:
        return cell_for_id(wall.cell_id, self.grid_size)

    def has_cell(self, cell_id: int) -> bool:
        return cell_id >= 0 and in_bounds(cell_for_id(cell_id, self.grid_size), self.grid_size)

    def is_usable(self, cell: Cell, direction: Direction) -> bool:
        return self.usable[cell[1]][cell[0]][direction]

    def _wall(self, cell: Cell, direction: Direction) -> WallRef:
        return WallRef(building_id(cell, self.grid_size), direction)

    def neighbors(self, wall: WallRef) -> list[WallRef]:
        """Walls reachable in one step from ``wall``, then their facing walls."""
        n = self.grid_size
        cell = self.cell(wall)
        x, y = cell
        direction = wall.direction
        found: list[WallRef] = []

        if direction in (Direction.LEFT, Direction.RIGHT):
            along = ((x, y - 1), (x, y + 1))
            across_cell = (x + direction.offset[0], y)
            crosswise = (Direction.UP, Direction.DOWN)
        else:
            along = ((x - 1, y), (x + 1, y))
            across_cell = (x, y + direction.offset[1])
            crosswise = (Direction.LEFT, Direction.RIGHT)

        # same side of the cells before and after along the wall
        for other in along:
            if in_bounds(other, n) and self.is_usable(other, direction):
                found.append(self._wall(other, direction))

        # crosswise sides of the cell the wall faces
        if in_bounds(across_cell, n):
            for side in crosswise:
                if self.is_usable(across_cell, side):
                    found.append(self._wall(across_cell, side))

        # crosswise sides of this cell
        for side in crosswise:
            if self.is_usable(cell, side):
                found.append(self._wall(cell, side))

        paired = []
        for candidate in [*found, wall]:
            adj = adjacent_cell(self.cell(candidate), candidate.direction)
            if in_bounds(adj, n):
                paired.append(self._wall(adj, candidate.direction.opposite))

        return found + paired

    def wall_line(self, wall: WallRef, offset: float = 0.0) -> Line:
        return cell_wall(self.cell(wall), wall.direction, offset)


def find_wall_path(
    grid: UsableWallGrid,
    start: WallRef,
    end: WallRef,
    target: Point,
    offset: float = 0.0,
) -> list[WallRef]:
    """Best-first search over walls, ordered by closeness to ``target``.

    Returns the walls from start to end inclusive, or an empty list when the
    end cannot be reached or either wall lies outside the grid.
    """
    for wall in (start, end):
        if not grid.has_cell(wall.cell_id):
            logger.info("wall %s is outside the %dx%d grid", wall, grid.grid_size, grid.grid_size)
            return []

    counter = itertools.count()
    queue = [(0.0, next(counter), start)]
    came_from: dict[WallRef, Optional[WallRef]] = {start: None}

    while queue:
        _, _, cur = heapq.heappop(queue)
        if cur == end:
            break
        for nxt in grid.neighbors(cur):
            if nxt in came_from:
                continue
            line = grid.wall_line(nxt, offset)
            priority = min(
                manhattan_distance(line[0], target), manhattan_distance(line[1], target)
            )
            heapq.heappush(queue, (priority, next(counter), nxt))
            came_from[nxt] = cur

    if end not in came_from:
        logger.info("no wall path from %s to %s", start, end)
        return []

    path = [end]
    while path[-1] != start:
        path.append(came_from[path[-1]])
    path.reverse()
    return path


def wall_path_to_points(
    grid: UsableWallGrid, walls: Sequence[WallRef], offset: float = 0.0
) -> list[Point]:
    """Lay each wall out as a segment pointing at the next, joined by corners."""
    if not walls:
        return []

    lines = [grid.wall_line(w, offset) for w in walls]
    if len(lines) == 1:
        return list(lines[0])

    ordered: list[Line] = []
    for cur, nxt in zip(lines, lines[1:]):
        # the end nearer to the next wall goes last
        a, b = sorted(
            cur, key=lambda p: -min(distance(p, nxt[0]), distance(p, nxt[1]))
        )
        ordered.append((a, b))

    prev_end = ordered[-1][1]
    last = lines[-1]
    ordered.append(tuple(sorted(last, key=lambda p: distance(p, prev_end))))

    points: list[Point] = []
    for cur, nxt in zip(ordered, ordered[1:]):
        points.extend(cur)
        points.append(corner_between_points(cur[1], nxt[0]))
    points.extend(ordered[-1])
    return points


def route_between_buildings(
    grid: UsableWallGrid,
    building_a: int,
    wall_a: Direction,
    building_b: int,
    wall_b: Direction,
    target: Point,
    offset: float = 0.0,
) -> list[Point]:
    walls = find_wall_path(
        grid, WallRef(building_a, wall_a), WallRef(building_b, wall_b), target, offset
    )
    return wall_path_to_points(grid, walls, offset)
