# tests/conftest.py
import pytest

from gridnav.building import recompute
from gridnav.geometry import Point
from gridnav.models import BuildingRecord, DoorRecord, GridLayout


def square_building_record(cell=(5, 5), grid_size=10) -> BuildingRecord:
    """Four doors at radius 0.35 around the cell centre: right, down, left, up."""
    x, y = cell
    offsets = [(0.35, 0.0), (0.0, 0.35), (-0.35, 0.0), (0.0, -0.35)]
    doors = [
        DoorRecord(id=i + 1, x=x + dx + 1, y=y + dy + 1, accessible=1)
        for i, (dx, dy) in enumerate(offsets)
    ]
    return BuildingRecord(id=x * grid_size + y, x=x + 1, y=y + 1, entrances=doors)


@pytest.fixture
def square_record():
    return square_building_record()


@pytest.fixture
def square_geometry(square_record):
    return recompute(square_record)


@pytest.fixture
def square_outline():
    return [
        Point(4.65, 4.65),
        Point(5.35, 4.65),
        Point(5.35, 5.35),
        Point(4.65, 5.35),
    ]


@pytest.fixture
def two_square_layout():
    return GridLayout(
        grid_size=10,
        buildings=[square_building_record((5, 5)), square_building_record((7, 5))],
    )
