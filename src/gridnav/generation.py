# src/gridnav/generation.py
"""Random buildings and doors for a city grid."""
from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from gridnav.geometry import Point
from gridnav.grid import Cell, building_id
from gridnav.models import BuildingRecord, DoorRecord, GridLayout
from gridnav.outline import correct_deep_doors

logger = logging.getLogger(__name__)

# doors sit on a ring around the cell centre, clear of the centre and of the cell edge
DOOR_RADIUS_RANGE = (0.25, 0.45)


def generate_doors(
    cell: Cell,
    num_doors: int,
    door_id_start: int,
    rng: np.random.Generator,
) -> list[DoorRecord]:
    """One door per equal angular slice around the cell, at a random radius.

    Coordinates are 1-indexed, ready to go into a record.
    """
    doors = []
    partition = 360 / num_doors
    for i in range(num_doors):
        radius = rng.uniform(*DOOR_RADIUS_RANGE)
        theta = np.radians(i * partition + rng.uniform(0, partition))
        doors.append(
            DoorRecord(
                id=door_id_start + i,
                x=float(cell[0] + radius * np.cos(theta) + 1),
                y=float(cell[1] + radius * np.sin(theta) + 1),
                accessible=1 if rng.random() > 0.5 else 0,
            )
        )
    return doors


def generate_building(
    cell: Cell,
    grid_size: int,
    rng: np.random.Generator,
    min_doors: int = 3,
    max_doors: int = 5,
) -> BuildingRecord:
    num_doors = int(rng.integers(min_doors, max_doors + 1))
    doors = generate_doors(cell, num_doors, 1, rng)

    corrected = correct_deep_doors([Point(d.x, d.y) for d in doors])
    for door, point in zip(doors, corrected):
        door.x, door.y = point

    return BuildingRecord(
        id=building_id(cell, grid_size),
        x=cell[0] + 1,
        y=cell[1] + 1,
        entrances=doors,
    )


@dataclass
class CityConfig:
    """Configuration for the city generator."""

    grid_size: int = 10
    building_prob: float = 0.6
    min_doors: int = 3
    max_doors: int = 5
    seed: int = 42


class CityGenerator:
    """Fills a grid with randomly shaped buildings."""

    def __init__(self, config: CityConfig) -> None:
        self.config = config
        self.rng = np.random.default_rng(config.seed)

    def generate(self) -> GridLayout:
        cfg = self.config
        buildings = []
        for x in range(cfg.grid_size):
            for y in range(cfg.grid_size):
                if self.rng.random() >= cfg.building_prob:
                    continue
                buildings.append(
                    generate_building(
                        (x, y), cfg.grid_size, self.rng, cfg.min_doors, cfg.max_doors
                    )
                )

        logger.debug(
            "generated %d buildings on a %dx%d grid",
            len(buildings),
            cfg.grid_size,
            cfg.grid_size,
        )
        return GridLayout(grid_size=cfg.grid_size, buildings=buildings)
