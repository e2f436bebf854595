# src/gridnav/geometry.py
"""Point and line primitives in grid-fractional coordinates.

One grid cell spans 1.0 in each axis and cell ``(x, y)`` is centred on the
integer point ``(x, y)``. The y axis grows downward, so "up" means ``y - 1``.
All comparisons go through a tolerance; nothing here compares floats exactly.
"""
from __future__ import annotations

import math
from typing import NamedTuple, Optional, Sequence

import numpy as np

from gridnav.models import Orientation

TOL = 1e-4

# slack on the parametric range so that segments touching at an endpoint
# still report the contact after rounding
_PARAM_EPS = 1e-9


class Point(NamedTuple):
    x: float
    y: float


Line = tuple[Point, Point]


def floats_eq(a: float, b: float, tol: float = TOL) -> bool:
    return abs(a - b) < tol


def points_eq(p1: Point, p2: Point, tol: float = TOL) -> bool:
    return floats_eq(p1[0], p2[0], tol) and floats_eq(p1[1], p2[1], tol)


def lines_eq(l1: Line, l2: Line, tol: float = TOL) -> bool:
    """Undirected segment equality."""
    return (points_eq(l1[0], l2[0], tol) and points_eq(l1[1], l2[1], tol)) or (
        points_eq(l1[0], l2[1], tol) and points_eq(l1[1], l2[0], tol)
    )


def distance(p1: Point, p2: Point) -> float:
    return math.hypot(p2[0] - p1[0], p2[1] - p1[1])


def manhattan_distance(p1: Point, p2: Point) -> float:
    return abs(p1[0] - p2[0]) + abs(p1[1] - p2[1])


def midpoint(p1: Point, p2: Point) -> Point:
    return Point((p1[0] + p2[0]) / 2, (p1[1] + p2[1]) / 2)


def weighted_midpoint(p1: Point, p2: Point, end_weight: float) -> Point:
    """Point at fraction ``end_weight`` of the way from p1 to p2."""
    start_weight = 1 - end_weight
    return Point(
        p1[0] * start_weight + p2[0] * end_weight,
        p1[1] * start_weight + p2[1] * end_weight,
    )


def translate_point(p: Point, l1: Point, l2: Point, length: float) -> Point:
    """Move p by ``length`` along the direction l1 -> l2."""
    dist = distance(l1, l2)
    if dist == 0:
        return Point(p[0], p[1])
    return Point(
        p[0] + (l2[0] - l1[0]) / dist * length,
        p[1] + (l2[1] - l1[1]) / dist * length,
    )


def extend_line_point(l1: Point, l2: Point, length: float) -> Point:
    """Point ``length`` beyond l2 on the line l1 -> l2 (negative pulls back)."""
    return translate_point(l2, l1, l2, length)


def lines_from_path(path: Sequence[Point], closed: bool = True) -> list[Line]:
    lines = [
        (Point(*path[i]), Point(*path[(i + 1) % len(path)]))
        for i in range(len(path))
    ]
    if not closed and lines:
        lines.pop()
    return lines


def bounding_rect(points: Sequence[Point]) -> list[Point]:
    """Corners of the axis-aligned bounding box: TL, TR, BR, BL."""
    if not points:
        return []
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    min_x, max_x, min_y, max_y = min(xs), max(xs), min(ys), max(ys)
    return [
        Point(min_x, min_y),
        Point(max_x, min_y),
        Point(max_x, max_y),
        Point(min_x, max_y),
    ]


def is_left_of_line(point: Point, line: Line) -> bool:
    (x0, y0), (x1, y1) = line
    return (x1 - x0) * (point[1] - y0) - (y1 - y0) * (point[0] - x0) > 0


def point_on_segment(line: Line, point: Point, tol: float = TOL) -> bool:
    (x0, y0), (x1, y1) = line
    dxl, dyl = x1 - x0, y1 - y0
    cross = (point[0] - x0) * dyl - (point[1] - y0) * dxl
    if abs(cross) > tol:
        return False

    if abs(dxl) >= abs(dyl):
        lo, hi = sorted((x0, x1))
        return lo - tol <= point[0] <= hi + tol
    lo, hi = sorted((y0, y1))
    return lo - tol <= point[1] <= hi + tol


def segment_intersection(a: Line, b: Line) -> Optional[Point]:
    """Intersection point of two finite segments, or None.

    Parallel and collinear segments never intersect here, even when they
    overlap.
    """
    (ax, ay), (ax2, ay2) = a
    (bx, by), (bx2, by2) = b
    v1x, v1y = ax2 - ax, ay2 - ay
    v2x, v2y = bx2 - bx, by2 - by

    denom = -v2x * v1y + v1x * v2y
    if abs(denom) < 1e-12:
        return None

    s = (-v1y * (ax - bx) + v1x * (ay - by)) / denom
    t = (v2x * (ay - by) - v2y * (ax - bx)) / denom

    lo, hi = -_PARAM_EPS, 1 + _PARAM_EPS
    if lo <= s <= hi and lo <= t <= hi:
        return Point(ax + t * v1x, ay + t * v1y)
    return None


def closest_point_on_segment(
    seg: Line, p: Point, t_min: float = 0.0, t_max: float = 1.0
) -> Point:
    """Project p onto seg, clamped to the parametric range [t_min, t_max]."""
    start = np.asarray(seg[0], dtype=float)
    vec = np.asarray(seg[1], dtype=float) - start

    length_sq = float(vec @ vec)
    if length_sq == 0:
        return Point(float(start[0]), float(start[1]))

    t = float(np.dot(np.asarray(p, dtype=float) - start, vec)) / length_sq
    t = min(t_max, max(t_min, t))
    x, y = start + t * vec
    return Point(float(x), float(y))


def distance_to_segment(seg: Line, p: Point) -> float:
    return distance(closest_point_on_segment(seg, p), p)


def closest_point_on_lines(
    lines: Sequence[Line], p: Point, tol: float = TOL
) -> tuple[Optional[Point], int]:
    """Closest point across several segments and the index of its segment.

    A point already lying on one of the lines is returned as is. Ties keep
    the first line found.
    """
    best_point: Optional[Point] = None
    best_index = -1
    best_dist = math.inf

    for i, line in enumerate(lines):
        if point_on_segment(line, p, tol):
            return Point(p[0], p[1]), i

        candidate = closest_point_on_segment(line, p)
        dist = distance(candidate, p)
        if dist < best_dist:
            best_point, best_index, best_dist = candidate, i, dist

    return best_point, best_index


def orthogonal_direction(
    p1: Point, p2: Point, tol: float = TOL
) -> Optional[Orientation]:
    """Axis a segment runs along; None for a zero-length segment."""
    if points_eq(p1, p2, tol):
        return None
    if floats_eq(p1[0], p2[0], tol):
        return Orientation.VERTICAL
    if floats_eq(p1[1], p2[1], tol):
        return Orientation.HORIZONTAL

    dx = abs(p1[0] - p2[0])
    dy = abs(p1[1] - p2[1])
    return Orientation.HORIZONTAL if dx > dy else Orientation.VERTICAL


def corner_between_points(
    p1: Point, p2: Point, convex: bool = False, invert_y: bool = False
) -> Point:
    """One of the two right-angle corners of the box spanned by p1 and p2.

    The points are assumed to run counter-clockwise around a shape; ``convex``
    picks the outward corner. ``invert_y`` flips the sense of the y axis.
    """
    a = p1[0] > p2[0]
    b = (invert_y and p1[1] > p2[1]) or (not invert_y and p1[1] < p2[1])

    if (convex and a == b) or (not convex and a != b):
        return Point(p1[0], p2[1])
    return Point(p2[0], p1[1])


def point_in_polygon(
    polygon: Sequence[Point], point: Point, far_point: Optional[Point] = None
) -> bool:
    """Ray-cast containment test; parity of crossings from a far outside point."""
    if len(polygon) < 3:
        return False

    if far_point is None:
        # skewed so the ray does not run along grid-aligned vertices
        min_x = min(min(p[0] for p in polygon), point[0])
        min_y = min(min(p[1] for p in polygon), point[1])
        far_point = Point(min_x - 1.0, min_y - 1.618)

    ray = (Point(*far_point), Point(*point))
    crossings = sum(
        1 for wall in lines_from_path(polygon) if segment_intersection(ray, wall) is not None
    )
    return crossings % 2 == 1


def simplify_path(
    points: Sequence[Point], closed: bool, tol: float = TOL
) -> list[Point]:
    """Drop duplicate and axis-collinear points, then snap near-equal coordinates."""
    offset1 = 0 if closed else 1
    offset2 = 0 if closed else 2

    pts = [[float(p[0]), float(p[1])] for p in points]
    if not pts:
        return []

    # consecutive duplicates
    n = len(pts)
    drop = {
        i
        for i in range(n - offset1)
        if floats_eq(pts[i][0], pts[(i + 1) % n][0], tol)
        and floats_eq(pts[i][1], pts[(i + 1) % n][1], tol)
    }
    pts = [p for i, p in enumerate(pts) if i not in drop]

    # middle points of straight runs
    n = len(pts)
    drop = set()
    for i in range(n - offset2):
        left, target, right = pts[i], pts[(i + 1) % n], pts[(i + 2) % n]
        same_x = floats_eq(target[0], left[0], tol) and floats_eq(target[0], right[0], tol)
        same_y = floats_eq(target[1], left[1], tol) and floats_eq(target[1], right[1], tol)
        if same_x or same_y:
            drop.add((i + 1) % n)
    pts = [p for i, p in enumerate(pts) if i not in drop]

    n = len(pts)
    for i in range(n - offset1):
        cur, nxt = pts[i], pts[(i + 1) % n]
        if floats_eq(cur[0], nxt[0], tol):
            nxt[0] = cur[0]
        if floats_eq(cur[1], nxt[1], tol):
            nxt[1] = cur[1]

    return [Point(x, y) for x, y in pts]


def resolve_self_intersections(
    path: Sequence[Point], max_steps: Optional[int] = None
) -> list[Point]:
    """Untangle a closed path by walking it and rerouting at crossings.

    The walk starts at the top-left-most vertex. Whenever the current edge
    crosses a non-adjacent edge, the nearest crossing is spliced in and the
    walk continues along the crossed edge. This is a heuristic bounded to
    ``len(path) + 1`` steps; in practice two passes are needed to settle.
    """
    pts = [Point(*p) for p in path]
    n = len(pts)
    if n < 4:
        return simplify_path(pts, closed=True)

    limit = n + 1 if max_steps is None else max_steps
    start = min(range(n), key=lambda i: (pts[i].x + pts[i].y, pts[i].x))

    result = [pts[start]]
    cur = (start + 1) % n
    steps = 0

    while cur != start and steps < limit:
        steps += 1
        nxt = (cur + 1) % n
        cur_line = (pts[cur], pts[nxt])

        best: Optional[Point] = None
        best_index = -1
        best_dist = math.inf
        for i in range(n):
            j = (i + 1) % n
            if i in (cur, nxt) or j in (cur, nxt):
                continue
            hit = segment_intersection(cur_line, (pts[i], pts[j]))
            if hit is None:
                continue
            dist = distance(hit, pts[cur])
            if dist < best_dist:
                best, best_index, best_dist = hit, i, dist

        result.append(pts[cur])
        if best is None:
            cur = nxt
        else:
            result.append(best)
            if is_left_of_line(pts[best_index], cur_line):
                cur = (best_index + 1) % n
            else:
                cur = best_index

    return simplify_path(result, closed=True)
