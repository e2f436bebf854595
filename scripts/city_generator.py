# scripts/city_generator.py
"""CLI for batch city layout JSON generation."""
from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from tqdm import tqdm

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from gridnav.city import CityMap
from gridnav.generation import CityConfig, CityGenerator


def parse_range(value: str) -> tuple[int, int]:
    if "-" in value:
        lo, hi = value.split("-", 1)
        return int(lo), int(hi)
    v = int(value)
    return v, v


@click.command()
@click.option("--count", type=int, required=True, help="Number of city layouts")
@click.option("--seed", type=int, default=42, help="Base random seed")
@click.option("--grid-size", type=int, default=10, help="Cells per grid side")
@click.option("--building-prob", type=float, default=0.6, help="Chance a cell holds a building")
@click.option("--doors", type=str, default="3-5", help="Door count range per building (e.g. 3-5)")
@click.option("--output-dir", type=click.Path(), required=True, help="Output directory for JSON files")
@click.option("--verbose", is_flag=True, help="Log geometry rebuilds")
def cli(count, seed, grid_size, building_prob, doors, output_dir, verbose):
    """Generate city layouts with doors snapped onto building walls."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    lo, hi = parse_range(doors)
    if lo < 1 or hi < lo:
        raise click.BadParameter(f"invalid door range {doors!r}", param_hint="--doors")

    for i in tqdm(range(count), desc="Generating cities"):
        cfg = CityConfig(
            grid_size=grid_size,
            building_prob=building_prob,
            min_doors=lo,
            max_doors=hi,
            seed=seed + i,
        )
        layout = CityGenerator(cfg).generate()
        # snaps every door onto its building's walls
        CityMap(layout)
        fname = out / f"city_{i:05d}.json"
        fname.write_text(layout.model_dump_json(indent=2))

    click.echo(f"Generated {count} cities in {out}")


if __name__ == "__main__":
    cli()
