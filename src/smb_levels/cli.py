"""CLI entry point for smb-levels."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional

from smb_levels.area import Environment
from smb_levels.errors import SmbLevelsError
from smb_levels.rom.data import DEFAULT_LEVELS_PER_WORLD, RomData, RomLayout
from smb_levels.rom.parser import load_rom


def _say(text: str) -> None:
    print(text, flush=True)


def _parse_counts(text: str) -> tuple[int, ...]:
    try:
        counts = tuple(int(part) for part in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"expected comma-separated counts, got {text!r}") from None
    if any(c < 0 for c in counts):
        raise argparse.ArgumentTypeError(f"counts must not be negative: {text!r}")
    return counts


def _parse_area_counts(text: str) -> dict[Environment, int]:
    counts = _parse_counts(text)
    if len(counts) != len(Environment):
        raise argparse.ArgumentTypeError(
            f"expected {len(Environment)} area counts, got {text!r}")
    return dict(zip(Environment, counts))


def summarize(rom_data: RomData) -> list[str]:
    """One line per area, then one per level."""
    lines: list[str] = []
    atlas = rom_data.atlas
    for area in atlas:
        h = area.header
        lines.append(
            f"{area.identity}  {area.environment.name:<11}  index 0x{atlas.index_of(area):02X}  "
            f"{len(area.geography):3d} geography  {len(area.population):3d} population  "
            f"timer {h.ticks}{'  autowalk' if h.autowalk else ''}")
    for w, n, level in rom_data.scenario.iter_levels():
        lines.append(f"{w}-{n}  start {level.area_id}  checkpoint page {level.checkpoint}")
    return lines


def dump_rom(rom_data: RomData, path: str = "levels.json") -> str:
    """Write every decoded area and the scenario to a JSON file."""
    data: dict = {"source": rom_data.source}

    areas = []
    for area in rom_data.atlas:
        entry: dict = {
            "identity": area.identity,
            "environment": area.environment.name,
            "index": f"0x{rom_data.atlas.index_of(area):02X}",
            "header": area.header.describe(),
            "geography": [a.describe() for a in area.geography],
            "population": [a.describe() for a in area.population],
        }
        raw = rom_data.raw_areas.get(area.identity)
        if raw is not None:
            entry["raw"] = {
                "geography_offset": f"0x{raw.geography_offset:04X}",
                "population_offset": f"0x{raw.population_offset:04X}",
                "geography": raw.geography.hex(" ").upper(),
                "population": raw.population.hex(" ").upper(),
            }
        areas.append(entry)
    data["areas"] = areas

    data["scenario"] = [
        {
            "world": w,
            "hidden_1up_cost": world.hidden_1up_cost,
            "levels": [
                {"area": level.area_id, "checkpoint": level.checkpoint}
                for level in world.levels
            ],
        }
        for w, world in enumerate(rom_data.scenario.worlds, start=1)
    ]

    with open(path, "w") as f:
        json.dump(data, f, indent=2)

    return path


def main(argv: Optional[list[str]] = None):
    parser = argparse.ArgumentParser(
        description="smb-levels - decode and re-encode Super Mario Bros. level data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Reads the area and level tables from a Super Mario Bros. ROM image
(headerless PRG or iNES) and prints what it finds.

Examples:
  smb-levels smb.nes
  smb-levels smb.nes --check
  smb-levels smb.nes --dump levels.json --verbose
""",
    )
    parser.add_argument("rom", help="Path to the ROM image")
    parser.add_argument("--dump", nargs="?", const="levels.json", default=None,
                        metavar="FILE",
                        help="Write decoded areas and levels to FILE (default: levels.json)")
    parser.add_argument("--check", action="store_true",
                        help="Re-encode every area and compare with the bytes in the ROM")
    parser.add_argument("--levels-per-world", type=_parse_counts,
                        default=DEFAULT_LEVELS_PER_WORLD, metavar="N,N,...",
                        help="Level table entries per world (default: 5,5,4,5,4,4,5,4)")
    parser.add_argument("--area-counts", type=_parse_area_counts, default=None,
                        metavar="UW,OW,UG,C",
                        help="Areas per environment (default: 3,22,3,6)")
    parser.add_argument("--allow-internal", action="store_true",
                        help="Decode engine-internal and beta actors instead of failing")
    parser.add_argument("--quiet", action="store_true",
                        help="Do not print the area and level summary")
    parser.add_argument("--verbose", action="store_true",
                        help="Print progress while parsing")
    args = parser.parse_args(argv)

    layout = RomLayout(levels_per_world=args.levels_per_world)
    if args.area_counts is not None:
        layout.area_counts = args.area_counts
    try:
        rom_data = load_rom(args.rom, layout, allow_internal=args.allow_internal,
                            verbose=args.verbose)
    except (OSError, SmbLevelsError) as e:
        _say(f"Failed to load {args.rom}: {e}")
        sys.exit(1)

    if not args.quiet:
        for line in summarize(rom_data):
            _say(line)

    if args.dump:
        out = dump_rom(rom_data, args.dump)
        _say(f"Levels dumped to {out}.")

    if args.check:
        mismatched = rom_data.check_round_trip()
        if mismatched:
            _say(f"{len(mismatched)} areas did not re-encode to their ROM bytes: "
                 + ", ".join(mismatched))
            sys.exit(1)
        _say(f"All {len(rom_data.atlas)} areas re-encode to their ROM bytes.")
