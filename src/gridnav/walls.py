# src/gridnav/walls.py
"""Effective (corner-trimmed) walls and door attachment."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from gridnav.geometry import (
    Line,
    Point,
    closest_point_on_lines,
    distance,
    orthogonal_direction,
    translate_point,
)
from gridnav.models import Direction, LayoutConfig, Orientation


@dataclass(frozen=True)
class EffectiveWall:
    line: Line
    outline_index: int


@dataclass(frozen=True)
class DoorAttachment:
    door_id: int
    point: Point
    wall: Optional[Line] = None
    wall_direction: Optional[Orientation] = None
    outline_index: int = -1
    orientation: Optional[Direction] = None

    @property
    def attached(self) -> bool:
        return self.outline_index >= 0


def find_effective_walls(
    walls: Sequence[Line], config: LayoutConfig
) -> list[EffectiveWall]:
    """Trim every usable outline edge so doors keep clear of the corners.

    Edges shorter than a door, or that trimming would consume entirely, are
    dropped.
    """
    trim = config.wall_trim
    effective = []
    for i, (p1, p2) in enumerate(walls):
        length = distance(p1, p2)
        if length < config.door_len_ratio or length <= 2 * trim:
            continue
        line = (translate_point(p1, p1, p2, trim), translate_point(p2, p2, p1, trim))
        effective.append(EffectiveWall(line=line, outline_index=i))
    return effective


def door_orientation(wall: Line, tol: float = 1e-3) -> Optional[Direction]:
    """Side a door on this outline wall faces, from the wall's winding."""
    p1, p2 = wall
    axis = orthogonal_direction(p1, p2, tol)
    if axis is Orientation.HORIZONTAL:
        return Direction.DOWN if p1.x > p2.x else Direction.UP
    if axis is Orientation.VERTICAL:
        return Direction.LEFT if p1.y > p2.y else Direction.RIGHT
    return None


def attach_door(
    door_id: int,
    point: Point,
    effective_walls: Sequence[EffectiveWall],
    outline_walls: Sequence[Line],
    tol: float = 1e-4,
) -> DoorAttachment:
    if not effective_walls:
        return DoorAttachment(door_id=door_id, point=Point(*point))

    projected, index = closest_point_on_lines([w.line for w in effective_walls], point, tol)
    wall = effective_walls[index]
    return DoorAttachment(
        door_id=door_id,
        point=projected,
        wall=wall.line,
        wall_direction=orthogonal_direction(wall.line[0], wall.line[1], tol),
        outline_index=wall.outline_index,
        orientation=door_orientation(outline_walls[wall.outline_index]),
    )


def attach_doors(
    doors: Sequence[tuple[int, Point]],
    effective_walls: Sequence[EffectiveWall],
    outline_walls: Sequence[Line],
    tol: float = 1e-4,
) -> list[DoorAttachment]:
    """Snap each ``(door_id, point)`` to its closest effective wall."""
    return [
        attach_door(door_id, point, effective_walls, outline_walls, tol)
        for door_id, point in doors
    ]
