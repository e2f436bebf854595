# src/gridnav/building.py
"""Derived geometry of a single building, recomputed from its record."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from shapely.geometry import Polygon
from shapely.ops import polylabel

from gridnav.corridors import CorridorGraph, build_corridor_graph
from gridnav.geometry import Line, Point
from gridnav.grid import building_cells, record_coords, record_point
from gridnav.models import BuildingRecord, LayoutConfig
from gridnav.outline import outline_for_doors
from gridnav.walls import DoorAttachment, EffectiveWall, attach_doors, find_effective_walls

logger = logging.getLogger(__name__)


@dataclass
class DerivedGeometry:
    """Everything computed from a building's doors. Replaced, never patched."""

    building_id: int
    outline: list[Point]
    outline_walls: list[Line]
    effective_walls: list[EffectiveWall]
    attachments: dict[int, DoorAttachment]
    bounding_rect: list[Point]
    normal_offset: Point
    corridor_graph: CorridorGraph
    center: Optional[Point] = None
    cells: list[tuple[int, int]] = field(default_factory=list)

    def door_point(self, door_id: int) -> Optional[Point]:
        attachment = self.attachments.get(door_id)
        return attachment.point if attachment is not None else None


def _outline_center(outline: list[Point]) -> Optional[Point]:
    if len(outline) < 3:
        return None
    polygon = Polygon(outline)
    if not polygon.is_valid or polygon.area <= 0:
        return None
    label = polylabel(polygon, tolerance=0.01)
    return Point(float(label.x), float(label.y))


def recompute(
    building: BuildingRecord, config: Optional[LayoutConfig] = None
) -> DerivedGeometry:
    """Outline, walls, door attachments and corridor graph for one building.

    Doors are taken in id order. The record itself is left untouched; see
    snap_doors() for writing the attached positions back.
    """
    config = config or LayoutConfig()
    doors = sorted(building.entrances, key=lambda d: d.id)
    cells = building_cells(building)

    outline = outline_for_doors(
        [record_point(d) for d in doors], cells, config.outline_tolerance
    )
    effective = find_effective_walls(outline.walls, config)
    attachments = attach_doors(
        [(d.id, p) for d, p in zip(doors, outline.door_points)],
        effective,
        outline.walls,
        config.tolerance,
    )
    graph = build_corridor_graph(outline.walls, attachments, config)

    logger.debug(
        "building %d: %d outline walls, %d effective, %d corridor nodes",
        building.id,
        len(outline.walls),
        len(effective),
        len(graph.mst_nodes),
    )

    return DerivedGeometry(
        building_id=building.id,
        outline=outline.path,
        outline_walls=outline.walls,
        effective_walls=effective,
        attachments={a.door_id: a for a in attachments},
        bounding_rect=outline.bounding_rect,
        normal_offset=outline.normal_offset,
        corridor_graph=graph,
        center=_outline_center(outline.path),
        cells=cells,
    )


def snap_doors(building: BuildingRecord, geometry: DerivedGeometry):
    """Write attached door positions back into the 1-indexed record."""
    for door in building.entrances:
        point = geometry.door_point(door.id)
        if point is not None:
            door.x, door.y = record_coords(point)


def build_building(
    building: BuildingRecord, config: Optional[LayoutConfig] = None
) -> DerivedGeometry:
    """recompute() followed by snap_doors()."""
    geometry = recompute(building, config)
    snap_doors(building, geometry)
    return geometry
