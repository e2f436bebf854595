# src/gridnav/endpoints.py
"""Paths from arbitrary points and from doors out to the border of a grid cell."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from gridnav.geometry import (
    Line,
    Point,
    closest_point_on_segment,
    corner_between_points,
    distance,
    extend_line_point,
    point_in_polygon,
    points_eq,
    segment_intersection,
    translate_point,
)
from gridnav.grid import Cell, cell_wall, cell_walls, clamp_to_grid, estimate_cell, in_bounds
from gridnav.models import Direction, EndpointStatus, LayoutConfig, Orientation
from gridnav.walls import DoorAttachment

if TYPE_CHECKING:
    from gridnav.building import DerivedGeometry

logger = logging.getLogger(__name__)

GeometryLookup = Callable[[Cell], Optional["DerivedGeometry"]]


@dataclass
class BorderPath:
    """Segment from an endpoint to its cell border, and the side it leaves by."""

    path: list[Point]
    wall_dir: Optional[Direction]
    cell: Cell
    status: EndpointStatus


def endpoint_status(
    point: Point, grid_size: int, geometry_at: GeometryLookup
) -> EndpointStatus:
    cell = estimate_cell(point)
    if not in_bounds(cell, grid_size):
        return EndpointStatus.OUTSIDE_GRID

    geometry = geometry_at(cell)
    if geometry is None or not point_in_polygon(geometry.outline, point):
        return EndpointStatus.OPEN_SPACE
    return EndpointStatus.INSIDE_BUILDING


def _crosses_any(walls: Sequence[Line], line: Line) -> bool:
    return any(segment_intersection(wall, line) is not None for wall in walls)


def cell_border_path(
    cell: Cell,
    point: Point,
    outline_offset: float = 0.0,
    door_offset: float = 0.0,
    target: Optional[Point] = None,
    building_walls: Sequence[Line] = (),
) -> tuple[list[Point], Direction]:
    """Straight segment from ``point`` to one side of ``cell``.

    With a target, the side crossed first by the line towards the target is
    used, unless reaching it would cut through the building outline. Otherwise
    the nearest side wins.
    """
    point = Point(*point)
    walls = cell_walls(cell)
    best: Optional[tuple[Point, Direction, Line]] = None

    if target is not None:
        toward = (point, Point(*target))
        for direction, wall in walls:
            if segment_intersection(wall, toward) is None:
                continue
            candidate = closest_point_on_segment(wall, point)
            if not _crosses_any(building_walls, (point, candidate)):
                best = (candidate, direction, wall)
            break

    if best is None:
        best = min(
            ((closest_point_on_segment(wall, point), direction, wall) for direction, wall in walls),
            key=lambda c: distance(c[0], point),
        )

    border, direction, wall = best
    x, y = border
    if direction is Direction.LEFT:
        x += outline_offset
    elif direction is Direction.UP:
        y += outline_offset
    elif direction is Direction.RIGHT:
        x -= outline_offset
    else:
        y -= outline_offset

    border = translate_point(Point(x, y), wall[0], wall[1], door_offset)
    start = translate_point(point, wall[0], wall[1], door_offset)
    return [start, border], direction


def door_border_path(
    attachment: DoorAttachment,
    outline_offset: float = 0.0,
    door_offset: float = 0.0,
) -> Optional[tuple[list[Point], Direction, Cell]]:
    """Straight exit from a door to the side of its cell that the door faces."""
    if attachment.orientation is None:
        return None

    cell = estimate_cell(attachment.point)
    x, y = attachment.point
    if attachment.wall_direction is Orientation.VERTICAL:
        y += door_offset
    else:
        x += door_offset
    door = Point(x, y)

    border = closest_point_on_segment(cell_wall(cell, attachment.orientation), door)
    border = extend_line_point(door, border, -outline_offset)
    return [door, border], attachment.orientation, cell


def nearest_door(geometry: DerivedGeometry, target: Point) -> Optional[int]:
    best_id, best_dist = None, float("inf")
    for door_id, attachment in geometry.attachments.items():
        dist = distance(attachment.point, target)
        if dist < best_dist:
            best_id, best_dist = door_id, dist
    return best_id


def route_endpoint_to_border(
    point: Point,
    target: Optional[Point],
    grid_size: int,
    geometry_at: GeometryLookup,
    config: Optional[LayoutConfig] = None,
) -> BorderPath:
    """Classify ``point`` and route it to the border of the cell it leaves from."""
    config = config or LayoutConfig()
    outline_offset = config.path_outline_offset
    door_offset = config.path_door_offset
    point = Point(*point)
    cell = estimate_cell(point)
    status = endpoint_status(point, grid_size, geometry_at)

    if status is EndpointStatus.OUTSIDE_GRID:
        cell = clamp_to_grid(cell, grid_size)
        path, direction = cell_border_path(cell, point, outline_offset, door_offset)
        return BorderPath(path, direction, cell, status)

    geometry = geometry_at(cell)
    walls = geometry.outline_walls if geometry is not None else []

    if status is EndpointStatus.INSIDE_BUILDING:
        door_id = nearest_door(geometry, target if target is not None else point)
        exit_path = (
            door_border_path(geometry.attachments[door_id], outline_offset, door_offset)
            if door_id is not None
            else None
        )
        if exit_path is not None:
            border, direction, door_cell = exit_path
            graph = geometry.corridor_graph
            temp = graph.add_temporary_node(point)
            corridor = graph.find_path(temp, graph.node_with_door_id(door_id))
            graph.remove_temporary_nodes()

            corridor = corridor[1:]
            if corridor and points_eq(corridor[-1], border[0]):
                corridor.pop()
            if corridor:
                corner = corner_between_points(point, corridor[0], convex=True)
                border = [corner, *corridor, *border]
            return BorderPath(border, direction, door_cell, status)

        logger.info("no usable door in building at %s, leaving straight", cell)

    path, direction = cell_border_path(
        cell, point, outline_offset, door_offset, target, walls
    )
    return BorderPath(path, direction, cell, status)
