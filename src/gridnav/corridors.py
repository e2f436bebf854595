# src/gridnav/corridors.py
"""Corridor skeletons inside a building.

Interior probe lines are cast from every outline wall (and from every door)
to the opposite wall. Their crossings form a visibility graph, which is cut
down to a spanning tree that prefers running away from the walls. The tree is
the navigable corridor network of the building.

Nodes and edges live in flat lists and refer to each other by index.
"""
from __future__ import annotations

import heapq
import logging
import math
from dataclasses import dataclass, field
from typing import Iterator, Optional, Sequence

import networkx as nx
from shapely.geometry import MultiLineString
from shapely.geometry import Point as ShapelyPoint

from gridnav.geometry import (
    Line,
    Point,
    closest_point_on_segment,
    distance,
    lines_eq,
    orthogonal_direction,
    points_eq,
    segment_intersection,
    weighted_midpoint,
)
from gridnav.models import LayoutConfig, Orientation
from gridnav.walls import DoorAttachment

logger = logging.getLogger(__name__)

# fractions along a wall section where probes start, midpoint first
PROBE_WEIGHTS = (0.5, 0.25, 0.75)


@dataclass
class CorridorNode:
    point: Point
    door_id: int = -1
    weight: float = math.inf
    parent: Optional[int] = None
    children: list[int] = field(default_factory=list)
    neighbors: list[int] = field(default_factory=list)
    edges: list[int] = field(default_factory=list)
    left: Optional[int] = None
    right: Optional[int] = None
    up: Optional[int] = None
    down: Optional[int] = None

    @property
    def is_door(self) -> bool:
        return self.door_id >= 0


@dataclass
class CorridorEdge:
    line: Line
    orientation: Orientation
    nodes: list[int] = field(default_factory=list)
    remove_later: bool = False


class CorridorGraph:
    """Visibility graph of one building and its corridor spanning tree."""

    def __init__(
        self,
        outline_walls: Sequence[Line] = (),
        door_len: float = 0.1,
        tol: float = 1e-4,
    ):
        self.nodes: list[CorridorNode] = []
        self.edges: list[CorridorEdge] = []
        self.mst_nodes: list[int] = []
        self.outline_walls = list(outline_walls)
        self.door_len = door_len
        self.tol = tol
        self._walls_shape = (
            MultiLineString([[tuple(a), tuple(b)] for a, b in self.outline_walls])
            if self.outline_walls
            else None
        )
        self._snapshot: Optional[tuple] = None

    @property
    def is_empty(self) -> bool:
        return not self.mst_nodes

    # ------------------------------------------------------------------ #
    #  Construction                                                       #
    # ------------------------------------------------------------------ #

    def add_line(
        self, line: Line, door_id: int = -1, remove_later: bool = False
    ) -> Optional[int]:
        """Add an interior line, creating nodes where it crosses existing lines.

        A line equal to one already in the graph is not added again; a door
        starting that line is attached to the existing edge instead.
        Returns the edge index, or None for a degenerate line.
        """
        line = (Point(*line[0]), Point(*line[1]))
        orientation = orthogonal_direction(line[0], line[1], self.tol)
        if orientation is None:
            return None

        existing = self.find_edge(line)
        if existing is not None:
            if door_id >= 0:
                self._attach_door_node(existing, line[0], door_id)
            if not remove_later:
                self.edges[existing].remove_later = False
            return existing

        edge_index = len(self.edges)
        self.edges.append(
            CorridorEdge(line=line, orientation=orientation, remove_later=remove_later)
        )
        if door_id >= 0:
            self._attach_door_node(edge_index, line[0], door_id)

        for other_index in range(edge_index):
            other = self.edges[other_index]
            if other.orientation is orientation:
                continue
            hit = segment_intersection(other.line, line)
            if hit is None:
                continue

            node = self._node_on_edge(other_index, hit)
            if node is None:
                node = self._node_on_edge(edge_index, hit)
            if node is None:
                node = self._create_node(hit)
            self._link(node, other_index)
            self._link(node, edge_index)

        return edge_index

    def find_edge(self, line: Line) -> Optional[int]:
        for i, edge in enumerate(self.edges):
            if lines_eq(line, edge.line, self.tol):
                return i
        return None

    def _create_node(self, point: Point, door_id: int = -1) -> int:
        self.nodes.append(CorridorNode(point=Point(*point), door_id=door_id))
        return len(self.nodes) - 1

    def _node_on_edge(self, edge_index: int, point: Point) -> Optional[int]:
        for i in self.edges[edge_index].nodes:
            if points_eq(self.nodes[i].point, point, self.tol):
                return i
        return None

    def _link(self, node: int, edge_index: int):
        if edge_index not in self.nodes[node].edges:
            self.nodes[node].edges.append(edge_index)
        if node not in self.edges[edge_index].nodes:
            self.edges[edge_index].nodes.append(node)

    def _attach_door_node(self, edge_index: int, point: Point, door_id: int):
        node = self._node_on_edge(edge_index, point)
        if node is not None and not self.nodes[node].is_door:
            self.nodes[node].door_id = door_id
            return
        if node is None or self.nodes[node].door_id != door_id:
            node = self._create_node(point, door_id)
        self._link(node, edge_index)

    def link_neighbors(self):
        """Sort nodes along every edge and link each to the next one."""
        for node in self.nodes:
            node.left = node.right = node.up = node.down = None
            node.neighbors = []

        for edge in self.edges:
            if edge.orientation is Orientation.HORIZONTAL:
                edge.nodes.sort(key=lambda i: self.nodes[i].point.x)
            else:
                edge.nodes.sort(key=lambda i: self.nodes[i].point.y)

            for a, b in zip(edge.nodes, edge.nodes[1:]):
                if edge.orientation is Orientation.HORIZONTAL:
                    self.nodes[a].right = b
                    self.nodes[b].left = a
                else:
                    self.nodes[a].down = b
                    self.nodes[b].up = a
                if b not in self.nodes[a].neighbors:
                    self.nodes[a].neighbors.append(b)
                    self.nodes[b].neighbors.append(a)

    # ------------------------------------------------------------------ #
    #  Spanning tree                                                      #
    # ------------------------------------------------------------------ #

    def wall_distance(self, point: Point) -> float:
        if self._walls_shape is None:
            return 0.0
        return float(self._walls_shape.distance(ShapelyPoint(point[0], point[1])))

    def build_spanning_tree(self):
        """Prune the visibility graph and grow the corridor tree over it."""
        self.link_neighbors()
        self.mst_nodes = []
        self._snapshot = None
        for node in self.nodes:
            node.weight = math.inf
            node.parent = None
            node.children = []

        if not self.nodes:
            return

        graph = self._pruned_graph()
        components = list(nx.connected_components(graph))
        if not components:
            return

        def door_count(component) -> int:
            return sum(1 for i in component if self.nodes[i].is_door)

        best = max(components, key=lambda c: (door_count(c), len(c)))
        if door_count(best) == 0:
            logger.debug("corridor graph has no reachable doors")
            return
        if len(components) > 1:
            logger.debug(
                "corridor graph split into %d components; spanning the one with %d doors",
                len(components),
                door_count(best),
            )

        root = min(i for i in best if self.nodes[i].is_door)
        self._grow_tree(graph, root)
        self._prune_dead_ends()
        logger.debug(
            "corridor tree: %d of %d nodes kept", len(self.mst_nodes), len(self.nodes)
        )

    def _pruned_graph(self) -> nx.Graph:
        """Visibility graph without near-wall and short-probe nodes.

        A node is kept when it is a door, or when taking it out would split
        its neighbours apart. A removed node between two neighbours on a
        straight edge is bridged so the edge stays continuous.
        """
        graph = nx.Graph()
        graph.add_nodes_from(range(len(self.nodes)))
        for i, node in enumerate(self.nodes):
            graph.add_edges_from((i, j) for j in node.neighbors)

        candidates = [
            i
            for i, node in enumerate(self.nodes)
            if not node.is_door
            and (
                any(self.edges[e].remove_later for e in node.edges)
                or self.wall_distance(node.point) < self.door_len
            )
        ]

        for i in candidates:
            nbrs = list(graph.neighbors(i))
            bridges = []
            for before, after in (("left", "right"), ("up", "down")):
                a = self._alive_along(graph, i, before)
                b = self._alive_along(graph, i, after)
                if a is not None and b is not None and not graph.has_edge(a, b):
                    bridges.append((a, b))

            graph.remove_node(i)
            graph.add_edges_from(bridges)

            if len(nbrs) > 1 and any(
                not nx.has_path(graph, nbrs[0], other) for other in nbrs[1:]
            ):
                # articulation node, put it back
                graph.remove_edges_from(bridges)
                graph.add_node(i)
                graph.add_edges_from((i, j) for j in nbrs)
            elif bridges:
                for a, b in bridges:
                    self._bridge(a, b)

        return graph

    def _alive_along(self, graph: nx.Graph, i: int, side: str) -> Optional[int]:
        """Nearest node still in ``graph`` walking from i towards ``side``."""
        j = getattr(self.nodes[i], side)
        while j is not None and j not in graph:
            j = getattr(self.nodes[j], side)
        return j

    def _bridge(self, a: int, b: int):
        if b not in self.nodes[a].neighbors:
            self.nodes[a].neighbors.append(b)
            self.nodes[b].neighbors.append(a)

    def _grow_tree(self, graph: nx.Graph, root: int):
        """Prim's algorithm; edges are cheaper the further they end from a wall."""
        wall_dist = {i: self.wall_distance(self.nodes[i].point) for i in graph.nodes}

        self.nodes[root].weight = 0.0
        heap = [(0.0, root)]
        visited: set[int] = set()

        while heap:
            weight, i = heapq.heappop(heap)
            if i in visited or weight > self.nodes[i].weight:
                continue
            visited.add(i)
            self.mst_nodes.append(i)

            node = self.nodes[i]
            if node.parent is not None:
                self.nodes[node.parent].children.append(i)

            for j in graph.neighbors(i):
                if j in visited:
                    continue
                w = distance(node.point, self.nodes[j].point) - wall_dist[j]
                if w < self.nodes[j].weight:
                    self.nodes[j].weight = w
                    self.nodes[j].parent = i
                    heapq.heappush(heap, (w, j))

    def _is_dead_end(self, i: int) -> bool:
        node = self.nodes[i]
        return not node.is_door and not node.children

    def _prune_dead_ends(self):
        """Strip non-door leaves one at a time until none are left."""
        removed: set[int] = set()
        stack = [i for i in self.mst_nodes if self._is_dead_end(i)]
        while stack:
            i = stack.pop()
            if i in removed or not self._is_dead_end(i):
                continue
            removed.add(i)
            parent = self.nodes[i].parent
            self.nodes[i].parent = None
            if parent is not None:
                self.nodes[parent].children.remove(i)
                if self._is_dead_end(parent):
                    stack.append(parent)
        self.mst_nodes = [i for i in self.mst_nodes if i not in removed]

    def mst_edges(self) -> list[Line]:
        edges = []
        for i in self.mst_nodes:
            parent = self.nodes[i].parent
            if parent is not None:
                edges.append((self.nodes[i].point, self.nodes[parent].point))
        return edges

    # ------------------------------------------------------------------ #
    #  Queries                                                            #
    # ------------------------------------------------------------------ #

    def _tree_links(self, i: int) -> Iterator[int]:
        node = self.nodes[i]
        yield from node.children
        if node.parent is not None:
            yield node.parent

    def find_path(self, start: Optional[int], end: Optional[int]) -> list[Point]:
        """Points along the tree from start to end; children are tried before the parent."""
        if start is None or end is None:
            return []

        visited = {start}
        stack = [(start, self._tree_links(start))]
        while stack:
            i, links = stack[-1]
            if i == end:
                return [self.nodes[j].point for j, _ in stack]
            for j in links:
                if j not in visited:
                    visited.add(j)
                    stack.append((j, self._tree_links(j)))
                    break
            else:
                stack.pop()
        return []

    def node_with_door_id(self, door_id: int) -> Optional[int]:
        for i in self.mst_nodes:
            if self.nodes[i].door_id == door_id:
                return i
        return None

    def door_node(self) -> Optional[int]:
        for i in self.mst_nodes:
            if self.nodes[i].is_door:
                return i
        return None

    def find_door_path(self, door_a: int, door_b: int) -> list[Point]:
        start = self.node_with_door_id(door_a)
        end = self.node_with_door_id(door_b)
        if start is None or end is None:
            return []
        return self.find_path(start, end)

    def full_path(self) -> list[Point]:
        """Euler tour of the whole tree as one continuous polyline."""
        start = self.door_node()
        if start is None:
            return []

        order = [start]
        visited = {start}
        stack = [(start, self._tree_links(start))]
        while stack:
            _, links = stack[-1]
            for j in links:
                if j not in visited:
                    visited.add(j)
                    order.append(j)
                    stack.append((j, self._tree_links(j)))
                    break
            else:
                stack.pop()
                if stack:
                    order.append(stack[-1][0])
        return [self.nodes[i].point for i in order]

    # ------------------------------------------------------------------ #
    #  Temporary nodes                                                    #
    # ------------------------------------------------------------------ #

    def add_temporary_node(self, point: Point) -> Optional[int]:
        """Hang an ad hoc node for ``point`` off the nearest tree segment.

        Must be paired with remove_temporary_nodes() before other queries.
        """
        if not self.mst_nodes:
            return None
        if self._snapshot is None:
            self._snapshot = (
                len(self.nodes),
                [(n.parent, list(n.children)) for n in self.nodes],
                list(self.mst_nodes),
            )

        anchor = self._anchor_for(Point(*point))
        if points_eq(self.nodes[anchor].point, point, self.tol):
            return anchor

        temp = self._create_node(Point(*point))
        self.nodes[temp].parent = anchor
        self.nodes[anchor].children.append(temp)
        self.mst_nodes.append(temp)
        return temp

    def _anchor_for(self, point: Point) -> int:
        best_child: Optional[int] = None
        best_point: Optional[Point] = None
        best_dist = math.inf
        for i in self.mst_nodes:
            parent = self.nodes[i].parent
            if parent is None:
                continue
            candidate = closest_point_on_segment(
                (self.nodes[i].point, self.nodes[parent].point), point
            )
            dist = distance(candidate, point)
            if dist < best_dist:
                best_child, best_point, best_dist = i, candidate, dist

        if best_child is None:
            return self.mst_nodes[0]

        parent = self.nodes[best_child].parent
        for end in (best_child, parent):
            if points_eq(self.nodes[end].point, best_point, self.tol):
                return end

        anchor = self._create_node(best_point)
        siblings = self.nodes[parent].children
        siblings[siblings.index(best_child)] = anchor
        self.nodes[anchor].parent = parent
        self.nodes[anchor].children = [best_child]
        self.nodes[best_child].parent = anchor
        self.mst_nodes.append(anchor)
        return anchor

    def remove_temporary_nodes(self):
        if self._snapshot is None:
            return
        count, links, mst_nodes = self._snapshot
        del self.nodes[count:]
        for node, (parent, children) in zip(self.nodes, links):
            node.parent = parent
            node.children = children
        self.mst_nodes = mst_nodes
        self._snapshot = None


# ---------------------------------------------------------------------- #
#  Building the graph from an outline                                     #
# ---------------------------------------------------------------------- #


def _is_neighbor_wall(i: int, j: int, count: int) -> bool:
    return j in (i, (i + 1) % count, (i - 1) % count)


def split_wall(
    walls: Sequence[Line],
    orientations: Sequence[Optional[Orientation]],
    index: int,
    tol: float = 1e-4,
) -> list[Line]:
    """Cut a wall where the lines of perpendicular, non-adjacent walls cross it."""
    wall = walls[index]
    axis = orientations[index]
    if axis is None:
        return []

    k = 0 if axis is Orientation.HORIZONTAL else 1
    lo, hi = sorted((wall[0][k], wall[1][k]))
    cuts = [lo, hi]
    for j, other in enumerate(walls):
        if _is_neighbor_wall(index, j, len(walls)):
            continue
        if orientations[j] is None or orientations[j] is axis:
            continue
        c = other[0][k]
        if lo + tol < c < hi - tol:
            cuts.append(c)

    cuts.sort()
    unique = [cuts[0]]
    for c in cuts[1:]:
        if c - unique[-1] > tol:
            unique.append(c)

    fixed = wall[0][1 - k]
    sections = []
    for a, b in zip(unique, unique[1:]):
        if k == 0:
            sections.append((Point(a, fixed), Point(b, fixed)))
        else:
            sections.append((Point(fixed, a), Point(fixed, b)))
    return sections


def interior_probe(
    walls: Sequence[Line],
    orientations: Sequence[Optional[Orientation]],
    index: int,
    start: Point,
    reach: float,
    tol: float = 1e-4,
) -> Optional[Line]:
    """Line from ``start`` on wall ``index`` straight into the building to the facing wall."""
    wall = walls[index]
    axis = orientations[index]
    if axis is Orientation.HORIZONTAL:
        far = Point(start[0], -reach if wall[0].x > wall[1].x else reach)
    elif axis is Orientation.VERTICAL:
        far = Point(reach if wall[0].y > wall[1].y else -reach, start[1])
    else:
        return None

    probe = (Point(*start), far)
    best: Optional[Point] = None
    best_dist = math.inf
    for j, other in enumerate(walls):
        if _is_neighbor_wall(index, j, len(walls)) or orientations[j] is not axis:
            continue
        hit = segment_intersection(probe, other)
        if hit is None:
            continue
        dist = distance(start, hit)
        if tol < dist < best_dist:
            best, best_dist = hit, dist

    if best is None:
        return None
    return probe[0], best


def build_corridor_graph(
    outline_walls: Sequence[Line],
    attachments: Sequence[DoorAttachment],
    config: Optional[LayoutConfig] = None,
) -> CorridorGraph:
    config = config or LayoutConfig()
    tol = config.tolerance
    walls = [(Point(*a), Point(*b)) for a, b in outline_walls]
    graph = CorridorGraph(walls, door_len=config.door_len_ratio, tol=tol)
    if len(walls) < 4:
        return graph

    orientations = [orthogonal_direction(a, b, tol) for a, b in walls]
    reach = 2 * max(max(abs(c) for c in p) for wall in walls for p in wall) + 2

    for i in range(len(walls)):
        for section in split_wall(walls, orientations, i, tol):
            short = distance(*section) < config.door_len_ratio
            for weight in PROBE_WEIGHTS:
                start = weighted_midpoint(section[0], section[1], weight)
                line = interior_probe(walls, orientations, i, start, reach, tol)
                if line is not None:
                    graph.add_line(line, remove_later=short)

    for attachment in attachments:
        if not attachment.attached:
            continue
        line = interior_probe(
            walls, orientations, attachment.outline_index, attachment.point, reach, tol
        )
        if line is not None:
            graph.add_line(line, door_id=attachment.door_id)

    graph.build_spanning_tree()
    return graph


def route_between_doors(graph: CorridorGraph, door_a: int, door_b: int) -> list[Point]:
    return graph.find_door_path(door_a, door_b)
