# src/gridnav/city.py
"""In-memory city session: building records, their geometry, and routing."""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from gridnav import routing
from gridnav.building import DerivedGeometry, build_building
from gridnav.endpoints import BorderPath, cell_border_path, door_border_path, route_endpoint_to_border
from gridnav.generation import generate_doors
from gridnav.geometry import Point, corner_between_points, points_eq
from gridnav.grid import Cell, building_cells, estimate_cell, in_bounds, record_coords
from gridnav.grid import building_id as cell_id
from gridnav.models import BuildingRecord, Direction, EndpointStatus, GridLayout, LayoutConfig

logger = logging.getLogger(__name__)


class CityMap:
    """Owns a grid layout and keeps every building's derived geometry current.

    Any edit to a building recomputes that building's geometry from scratch.
    """

    def __init__(self, layout: GridLayout, config: Optional[LayoutConfig] = None) -> None:
        self.layout = layout
        self.config = config or LayoutConfig()
        self.geometries: dict[int, DerivedGeometry] = {}
        self._cell_owner: dict[Cell, int] = {}
        self._next_door_id: dict[int, int] = {}
        for building in layout.buildings:
            self.process_building(building)

    @property
    def grid_size(self) -> int:
        return self.layout.grid_size

    # ------------------------------------------------------------------ #
    #  Lookup                                                             #
    # ------------------------------------------------------------------ #

    def building(self, building_id: int) -> BuildingRecord:
        for building in self.layout.buildings:
            if building.id == building_id:
                return building
        raise KeyError(f"no building with id {building_id}")

    def building_at(self, cell: Cell) -> Optional[BuildingRecord]:
        owner = self._cell_owner.get(tuple(cell))
        return self.building(owner) if owner is not None else None

    def geometry_for(self, building_id: int) -> DerivedGeometry:
        try:
            return self.geometries[building_id]
        except KeyError:
            raise KeyError(f"no building with id {building_id}") from None

    def geometry_at(self, cell: Cell) -> Optional[DerivedGeometry]:
        owner = self._cell_owner.get(tuple(cell))
        return self.geometries.get(owner) if owner is not None else None

    def connected(self, cell_id_a: int, cell_id_b: int) -> bool:
        """True when two different cells belong to the same merged building."""
        if cell_id_a == cell_id_b:
            return False
        n = self.grid_size
        owner_a = self._cell_owner.get((cell_id_a // n, cell_id_a % n))
        owner_b = self._cell_owner.get((cell_id_b // n, cell_id_b % n))
        return owner_a is not None and owner_a == owner_b

    # ------------------------------------------------------------------ #
    #  Editing                                                            #
    # ------------------------------------------------------------------ #

    def process_building(self, building: BuildingRecord) -> DerivedGeometry:
        """Recompute a building's geometry and snap its doors onto the walls."""
        geometry = build_building(building, self.config)
        self.geometries[building.id] = geometry
        for cell in building_cells(building):
            self._cell_owner[cell] = building.id
        # ids are never handed out twice
        self._next_door_id[building.id] = max(
            self._next_door_id.get(building.id, 1),
            max((d.id for d in building.entrances), default=0) + 1,
        )
        return geometry

    def add_building(self, building: BuildingRecord) -> DerivedGeometry:
        """Place a building, replacing whatever occupies its cells."""
        cells = building_cells(building)
        for cell in cells:
            if not in_bounds(cell, self.grid_size):
                raise ValueError(f"cell {cell} is outside the {self.grid_size}x{self.grid_size} grid")

        for owner in {self._cell_owner[c] for c in cells if c in self._cell_owner}:
            self.delete_building(owner)

        self.layout.buildings.append(building)
        return self.process_building(building)

    def delete_building(self, building_id: int) -> None:
        """Remove a building together with its doors."""
        building = self.building(building_id)
        self.layout.buildings.remove(building)
        self.geometries.pop(building_id, None)
        self._next_door_id.pop(building_id, None)
        for cell in building_cells(building):
            if self._cell_owner.get(cell) == building_id:
                del self._cell_owner[cell]

    def add_door(self, building_id: int, rng: Optional[np.random.Generator] = None) -> int:
        """Generate a new door near a random cell of the building and return its id."""
        rng = rng if rng is not None else np.random.default_rng()
        building = self.building(building_id)
        cells = building_cells(building)
        cell = cells[int(rng.integers(0, len(cells)))]

        door_id = self._next_door_id[building_id]
        building.entrances.extend(generate_doors(cell, 1, door_id, rng))
        self.process_building(building)
        return door_id

    def delete_door(self, building_id: int, door_id: int) -> None:
        building = self.building(building_id)
        door = building.door(door_id)
        if door is None:
            raise KeyError(f"building {building_id} has no door {door_id}")
        building.entrances.remove(door)
        self.process_building(building)

    def move_door(self, building_id: int, door_id: int, point: Point) -> Point:
        """Move a door to a 0-indexed grid point; returns where it ended up."""
        building = self.building(building_id)
        door = building.door(door_id)
        if door is None:
            raise KeyError(f"building {building_id} has no door {door_id}")
        door.x, door.y = record_coords(point)
        geometry = self.process_building(building)
        return geometry.door_point(door_id)

    # ------------------------------------------------------------------ #
    #  Routing                                                            #
    # ------------------------------------------------------------------ #

    def wall_grid(self) -> routing.UsableWallGrid:
        return routing.UsableWallGrid(self.grid_size, self.connected)

    def route_between_doors(self, building_id: int, door_a: int, door_b: int) -> list[Point]:
        """Corridor path between two doors of the same building."""
        return self.geometry_for(building_id).corridor_graph.find_door_path(door_a, door_b)

    def route_between_buildings(
        self,
        building_a: int,
        wall_a: Direction,
        building_b: int,
        wall_b: Direction,
        target: Point,
    ) -> list[Point]:
        """Wall-to-wall path between two cells, given by cell id and side."""
        grid = self.wall_grid()
        for building_id in (building_a, building_b):
            if not grid.has_cell(building_id):
                raise KeyError(f"no cell with id {building_id}")
        return routing.route_between_buildings(
            grid,
            building_a,
            Direction(wall_a),
            building_b,
            Direction(wall_b),
            Point(*target),
            self.config.path_outline_offset,
        )

    def route_endpoint_to_border(self, point: Point, target: Optional[Point] = None) -> BorderPath:
        return route_endpoint_to_border(
            Point(*point),
            Point(*target) if target is not None else None,
            self.grid_size,
            self.geometry_at,
            self.config,
        )

    def _door_exit(self, building_id: int, door_id: int) -> tuple[Point, BorderPath]:
        geometry = self.geometry_for(building_id)
        attachment = geometry.attachments.get(door_id)
        if attachment is None:
            raise KeyError(f"building {building_id} has no door {door_id}")

        cfg = self.config
        exit_path = door_border_path(attachment, cfg.path_outline_offset, cfg.path_door_offset)
        if exit_path is not None:
            path, direction, cell = exit_path
        else:
            cell = estimate_cell(attachment.point)
            path, direction = cell_border_path(
                cell, attachment.point, cfg.path_outline_offset, cfg.path_door_offset
            )
        border = BorderPath(path, direction, cell, EndpointStatus.INSIDE_BUILDING)
        return attachment.point, border

    def _join(
        self, start: Point, start_border: BorderPath, end: Point, end_border: BorderPath
    ) -> list[Point]:
        n = self.grid_size
        walls = routing.route_between_buildings(
            self.wall_grid(),
            cell_id(start_border.cell, n),
            start_border.wall_dir,
            cell_id(end_border.cell, n),
            end_border.wall_dir,
            end_border.path[-1],
            self.config.path_outline_offset,
        )
        # the border paths already reach the first and last wall
        walls = walls[1:-1]
        if not walls:
            walls = [corner_between_points(start_border.path[-1], end_border.path[-1])]

        points = [
            Point(*start),
            *start_border.path,
            *walls,
            *reversed(end_border.path),
            Point(*end),
        ]
        return [p for i, p in enumerate(points) if i == 0 or not points_eq(p, points[i - 1])]

    def route_door_to_door(
        self, building_a: int, door_a: int, building_b: int, door_b: int
    ) -> list[Point]:
        """Path leaving one building by a door and entering another by a door."""
        start, start_border = self._door_exit(building_a, door_a)
        end, end_border = self._door_exit(building_b, door_b)
        return self._join(start, start_border, end, end_border)

    def route_point_to_door(self, point: Point, building_id: int, door_id: int) -> list[Point]:
        end, end_border = self._door_exit(building_id, door_id)
        start_border = self.route_endpoint_to_border(point, end_border.path[-1])
        return self._join(point, start_border, end, end_border)

    def route_point_to_point(self, start: Point, end: Point) -> list[Point]:
        """End-to-end route between two arbitrary grid points."""
        start, end = Point(*start), Point(*end)
        start_border = self.route_endpoint_to_border(start, end)
        end_border = self.route_endpoint_to_border(end, start)

        if (
            start_border.status is EndpointStatus.OUTSIDE_GRID
            and end_border.status is EndpointStatus.OUTSIDE_GRID
        ):
            return [start, end]

        if (
            start_border.status is EndpointStatus.INSIDE_BUILDING
            and end_border.status is EndpointStatus.INSIDE_BUILDING
        ):
            start_geometry = self.geometry_at(estimate_cell(start))
            end_geometry = self.geometry_at(estimate_cell(end))
            if start_geometry is end_geometry:
                graph = start_geometry.corridor_graph
                a = graph.add_temporary_node(start)
                b = graph.add_temporary_node(end)
                path = graph.find_path(a, b)
                graph.remove_temporary_nodes()
                if path:
                    return path
                logger.info("no corridor between %s and %s, going straight", start, end)
                return [start, end]

        return self._join(start, start_border, end, end_border)
