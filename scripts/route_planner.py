# scripts/route_planner.py
"""CLI for routing between points and doors of a city layout."""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gridnav.city import CityMap
from gridnav.geometry import Point
from gridnav.models import GridLayout


def parse_point(value: str) -> Point:
    """Parse ``x,y`` in 0-indexed grid coordinates."""
    try:
        x, y = value.split(",")
        return Point(float(x), float(y))
    except ValueError:
        raise click.BadParameter(f"expected x,y but got {value!r}") from None


def parse_door(value: str) -> tuple[int, int]:
    """Parse ``building_id:door_id``."""
    try:
        building, door = value.split(":")
        return int(building), int(door)
    except ValueError:
        raise click.BadParameter(f"expected building:door but got {value!r}") from None


def _point_list(points) -> list[list[float]]:
    return [[round(float(p[0]), 6), round(float(p[1]), 6)] for p in points]


@click.command()
@click.option("--layout", "layout_path", type=click.Path(exists=True), required=True,
              help="City layout JSON")
@click.option("--start", type=str, default=None, help="Start point x,y")
@click.option("--end", type=str, default=None, help="End point x,y")
@click.option("--from-door", type=str, default=None, help="Start door building:door")
@click.option("--to-door", type=str, default=None, help="End door building:door")
@click.option("--corridors", is_flag=True, help="Print every building's corridor network")
@click.option("--verbose", is_flag=True, help="Log routing decisions")
def cli(layout_path, start, end, from_door, to_door, corridors, verbose):
    """Print a route through a city layout as JSON."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    layout = GridLayout.model_validate_json(Path(layout_path).read_text())
    city = CityMap(layout)

    if corridors:
        result = {
            str(bid): _point_list(geometry.corridor_graph.full_path())
            for bid, geometry in sorted(city.geometries.items())
        }
        click.echo(json.dumps(result, indent=2))
        return

    if (start is None) == (from_door is None) or (end is None) == (to_door is None):
        raise click.UsageError("give exactly one of --start/--from-door and one of --end/--to-door")

    try:
        if from_door and to_door:
            (ba, da), (bb, db) = parse_door(from_door), parse_door(to_door)
            if ba == bb:
                path = city.route_between_doors(ba, da, db)
            else:
                path = city.route_door_to_door(ba, da, bb, db)
        elif start and end:
            path = city.route_point_to_point(parse_point(start), parse_point(end))
        elif start:
            bb, db = parse_door(to_door)
            path = city.route_point_to_door(parse_point(start), bb, db)
        else:
            ba, da = parse_door(from_door)
            path = list(reversed(city.route_point_to_door(parse_point(end), ba, da)))
    except KeyError as exc:
        raise click.ClickException(str(exc.args[0])) from None

    click.echo(json.dumps({"path": _point_list(path)}, indent=2))


if __name__ == "__main__":
    cli()
