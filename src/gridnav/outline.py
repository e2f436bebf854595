# src/gridnav/outline.py
"""Building outline polygons synthesised from door positions."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from gridnav.geometry import (
    Line,
    Point,
    bounding_rect,
    corner_between_points,
    lines_from_path,
    resolve_self_intersections,
    simplify_path,
)
from gridnav.grid import Cell, estimate_cell


@dataclass
class OutlineResult:
    path: list[Point]
    walls: list[Line]
    door_points: list[Point]
    bounding_rect: list[Point] = field(default_factory=list)
    normal_offset: Point = Point(0.0, 0.0)


def correct_deep_doors(points: Sequence[Point]) -> list[Point]:
    """Pull doors that poke inward past both cyclic neighbours back onto their line.

    Single pass, in order; a door corrected early is seen corrected by the
    doors after it. Three or fewer doors are returned unchanged.
    """
    doors = [[p[0], p[1]] for p in points]
    n = len(doors)
    if n <= 3:
        return [Point(x, y) for x, y in doors]

    for d in range(n):
        n1 = doors[d]
        target = doors[(d + 1) % n]
        n2 = doors[(d + 2) % n]
        ref_x, ref_y = estimate_cell(Point(*target))

        if target[0] < ref_x and target[0] > n1[0] and target[0] > n2[0]:
            target[0] = max(n1[0], n2[0])
        elif target[0] > ref_x and target[0] < n1[0] and target[0] < n2[0]:
            target[0] = min(n1[0], n2[0])
        elif target[1] > ref_y and target[1] < n1[1] and target[1] < n2[1]:
            target[1] = min(n1[1], n2[1])
        elif target[1] < ref_y and target[1] > n1[1] and target[1] > n2[1]:
            target[1] = max(n1[1], n2[1])

    return [Point(x, y) for x, y in doors]


def build_outline(
    points: Sequence[Point], cells: Iterable[Cell], tol: float = 5e-4
) -> list[Point]:
    """Closed axis-aligned outline through the door points, in door order.

    Between each pair of consecutive doors the convex corner of their box is
    used, or the opposite corner when the convex one falls outside every cell
    of the building.
    """
    if len(points) < 2:
        return []

    cell_set = set(cells)
    path: list[Point] = []
    for i, p1 in enumerate(points):
        p2 = points[(i + 1) % len(points)]
        corner = corner_between_points(p1, p2, convex=True)
        if estimate_cell(corner) not in cell_set:
            corner = corner_between_points(p1, p2, convex=False)
        path.extend([Point(*p1), corner])

    path = simplify_path(path, closed=True, tol=tol)
    # the untangling walk needs a second pass to settle
    path = resolve_self_intersections(path)
    path = resolve_self_intersections(path)
    return path


def normalize_path(path: Sequence[Point]) -> tuple[list[Point], Point]:
    """Shift a path so the cell of its left-most / top-most vertex becomes (0, 0)."""
    if not path:
        return [], Point(0.0, 0.0)

    left = min(path, key=lambda p: p[0])
    top = min(path, key=lambda p: p[1])
    offset = Point(float(estimate_cell(left)[0]), float(estimate_cell(top)[1]))
    return [Point(p[0] - offset.x, p[1] - offset.y) for p in path], offset


def outline_for_doors(
    door_points: Sequence[Point], cells: Iterable[Cell], tol: float = 5e-4
) -> OutlineResult:
    corrected = correct_deep_doors(door_points)
    path = build_outline(corrected, cells, tol)
    normalized, offset = normalize_path(path)
    return OutlineResult(
        path=path,
        walls=lines_from_path(path) if len(path) >= 2 else [],
        door_points=corrected,
        bounding_rect=bounding_rect(normalized),
        normal_offset=offset,
    )
