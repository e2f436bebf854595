# src/gridnav/models.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Direction(str, Enum):
    UP = "up"
    RIGHT = "right"
    DOWN = "down"
    LEFT = "left"

    @property
    def order(self) -> int:
        return ORDERED_DIRECTIONS.index(self)

    @property
    def opposite(self) -> Direction:
        return ORDERED_DIRECTIONS[(self.order + 2) % 4]

    @property
    def offset(self) -> tuple[int, int]:
        """Grid step (dx, dy) towards the neighbouring cell; y grows downward."""
        return _DIRECTION_OFFSETS[self]

    @property
    def is_horizontal_side(self) -> bool:
        """True for the top and bottom sides of a cell."""
        return self in (Direction.UP, Direction.DOWN)


# cyclic order shared by cell corners and cell walls
ORDERED_DIRECTIONS: tuple[Direction, ...] = (
    Direction.UP,
    Direction.RIGHT,
    Direction.DOWN,
    Direction.LEFT,
)

_DIRECTION_OFFSETS = {
    Direction.UP: (0, -1),
    Direction.RIGHT: (1, 0),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
}


class Orientation(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class EndpointStatus(IntEnum):
    OUTSIDE_GRID = 0
    OPEN_SPACE = 1
    INSIDE_BUILDING = 2


class DoorRecord(BaseModel):
    id: int = Field(ge=0)
    x: float = Field(description="1-indexed grid x")
    y: float = Field(description="1-indexed grid y")
    accessible: int = Field(default=1, ge=0, le=1)


class BuildingRecord(BaseModel):
    id: int = Field(ge=0, description="x * grid_size + y of the 0-indexed cell")
    x: int = Field(ge=1, description="1-indexed grid column")
    y: int = Field(ge=1, description="1-indexed grid row")
    entrances: list[DoorRecord] = Field(default_factory=list)
    merged_x: Optional[list[int]] = None
    merged_y: Optional[list[int]] = None

    @field_validator("entrances")
    @classmethod
    def validate_unique_door_ids(cls, v: list[DoorRecord]) -> list[DoorRecord]:
        ids = [door.id for door in v]
        if len(ids) != len(set(ids)):
            raise ValueError("door ids must be unique within a building")
        return v

    @model_validator(mode="after")
    def validate_merged_cells(self) -> BuildingRecord:
        if (self.merged_x is None) != (self.merged_y is None):
            raise ValueError("merged_x and merged_y must be given together")
        if self.merged_x is not None and len(self.merged_x) != len(self.merged_y):
            raise ValueError("merged_x and merged_y must have equal lengths")
        return self

    def door(self, door_id: int) -> Optional[DoorRecord]:
        for door in self.entrances:
            if door.id == door_id:
                return door
        return None


class GridLayout(BaseModel):
    grid_size: int = Field(gt=0)
    buildings: list[BuildingRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_building_cells(self) -> GridLayout:
        n = self.grid_size
        for building in self.buildings:
            cells = [(building.x, building.y)]
            if building.merged_x is not None:
                cells.extend(zip(building.merged_x, building.merged_y))
            for x, y in cells:
                if not (1 <= x <= n and 1 <= y <= n):
                    raise ValueError(
                        f"building {building.id} cell ({x}, {y}) is outside the grid"
                    )
            if building.id != (building.x - 1) * n + (building.y - 1):
                raise ValueError(
                    f"building id {building.id} does not match cell ({building.x}, {building.y})"
                )
        return self


@dataclass
class LayoutConfig:
    """Geometry constants, as fractions of one grid cell."""

    door_len_ratio: float = 0.1
    building_stroke_ratio: float = 0.02
    door_stroke_ratio: float = 0.01
    tolerance: float = 1e-4
    outline_tolerance: float = 5e-4
    path_outline_offset: float = 0.05
    path_door_offset: float = 0.0

    @property
    def wall_trim(self) -> float:
        """Amount cut from each end of an outline edge to get an effective wall."""
        return (self.door_len_ratio + self.building_stroke_ratio + self.door_stroke_ratio) / 2
