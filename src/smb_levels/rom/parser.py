"""ROM parsing functions.

Locates every area's geography and population data through the split
address tables, decodes them into an Atlas, and reads the world/level
tables, checkpoints and hidden 1-up costs into a Scenario.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from smb_levels.area import Area, Atlas, Environment, Level, Scenario, World
from smb_levels.bytecode import (
    GEOGRAPHY,
    POPULATION,
    StreamFormat,
    area_name,
    stream_length,
)
from smb_levels.errors import RomLayoutError
from smb_levels.rom.data import (
    INES_HEADER_SIZE,
    INES_MAGIC,
    RawArea,
    RomData,
    RomLayout,
)


_AREA_SELECTOR_MASK = 0x7F


# ─── Low-level reads ─────────────────────────────────────────────────────────

def _detect_header(rom_data: bytes) -> int:
    """Detect and return iNES header size (0 or 16)."""
    if rom_data[:len(INES_MAGIC)] == INES_MAGIC:
        return INES_HEADER_SIZE
    return 0


def _read(rom: bytes, offset: int, length: int, what: str) -> bytes:
    if offset < 0 or offset + length > len(rom):
        raise RomLayoutError(
            f"{what} at {offset:#06x}+{length} lies outside the {len(rom):#x}-byte image")
    return bytes(rom[offset:offset + length])


def cpu_to_rom(address: int, layout: RomLayout) -> int:
    """Convert a CPU address in PRG space to an image offset."""
    return address - layout.cpu_base


def read_addresses(rom: bytes, lsb_table: int, msb_table: int,
                   layout: RomLayout) -> list[int]:
    """Join a pair of split address tables into image offsets."""
    count = layout.address_table_entries
    lsbs = _read(rom, lsb_table, count, "Address LSB table")
    msbs = _read(rom, msb_table, count, "Address MSB table")
    return [cpu_to_rom((msb << 8) | lsb, layout) for lsb, msb in zip(lsbs, msbs)]


def read_stream(rom: bytes, offset: int, fmt: StreamFormat) -> bytes:
    """Slice one stream out of the image, up to and including its end marker.

    The end is found by stepping over whole commands, since operand bytes
    may equal the marker value.
    """
    if not 0 <= offset < len(rom):
        raise RomLayoutError(f"{fmt.name} data address {offset:#06x} is outside the image")
    length = stream_length(rom, fmt, offset)
    return bytes(rom[offset:offset + length])


# ─── Areas ───────────────────────────────────────────────────────────────────

def extract_area_data(rom: bytes, layout: Optional[RomLayout] = None) -> dict[str, RawArea]:
    """Locate the raw bytes of every area, in Atlas order."""
    layout = layout or RomLayout()
    geography_starts = _read(rom, layout.geography_env_offsets, len(Environment),
                             "Geography environment offsets")
    population_starts = _read(rom, layout.population_env_offsets, len(Environment),
                              "Population environment offsets")
    geography_addresses = read_addresses(
        rom, layout.geography_lsb_table, layout.geography_msb_table, layout)
    population_addresses = read_addresses(
        rom, layout.population_lsb_table, layout.population_msb_table, layout)

    areas: dict[str, RawArea] = {}
    for env in Environment:
        for subindex in range(layout.area_counts.get(env, 0)):
            g = geography_starts[env] + subindex
            p = population_starts[env] + subindex
            if g >= len(geography_addresses) or p >= len(population_addresses):
                raise RomLayoutError(
                    f"{env.name} area {subindex} is past the end of the address tables")

            identity = area_name((env << 5) | subindex)
            geography_offset = geography_addresses[g]
            population_offset = population_addresses[p]
            areas[identity] = RawArea(
                identity=identity,
                environment=env,
                subindex=subindex,
                geography_offset=geography_offset,
                population_offset=population_offset,
                geography=read_stream(rom, geography_offset, GEOGRAPHY),
                population=read_stream(rom, population_offset, POPULATION),
            )
    return areas


def parse_atlas(raw_areas: dict[str, RawArea], allow_internal: bool = False) -> Atlas:
    """Decode raw areas into an Atlas.

    Areas are added category by category in subindex order, so each one's
    Atlas index matches the index in its ``Area_XX`` identity.
    """
    atlas = Atlas()
    atlas.add_all(
        Area.decode(raw.identity, raw.environment, raw.geography, raw.population,
                    allow_internal=allow_internal)
        for raw in sorted(raw_areas.values(), key=lambda r: (r.environment, r.subindex))
    )
    return atlas


# ─── Scenario ────────────────────────────────────────────────────────────────

def parse_checkpoints(rom: bytes, layout: Optional[RomLayout] = None) -> list[int]:
    """Unpack the checkpoint table, two levels per byte, high nibble first."""
    layout = layout or RomLayout()
    table = _read(rom, layout.checkpoint_table, layout.checkpoint_table_size,
                  "Checkpoint table")
    pages: list[int] = []
    for b in table:
        pages.append(b >> 4)
        pages.append(b & 0xF)
    return pages


def parse_hidden_1up_costs(rom: bytes, layout: Optional[RomLayout] = None) -> list[int]:
    layout = layout or RomLayout()
    return list(_read(rom, layout.hidden_1up_cost_table, layout.num_worlds,
                      "Hidden 1-up cost table"))


def parse_scenario(rom: bytes, atlas: Atlas, layout: Optional[RomLayout] = None) -> Scenario:
    """Build worlds and levels from the level area selector tables.

    Levels whose start area autowalks (the pipe intro scenes) have no
    checkpoint and do not take a slot in the checkpoint table.
    """
    layout = layout or RomLayout()
    world_offsets = _read(rom, layout.world_offset_table, layout.num_worlds,
                          "World offset table")
    checkpoints = parse_checkpoints(rom, layout)
    costs = parse_hidden_1up_costs(rom, layout)

    worlds: list[World] = []
    slot = 0
    for w, level_count in enumerate(layout.levels_per_world):
        selectors = _read(rom, layout.level_area_table + world_offsets[w], level_count,
                          f"World {w + 1} level table")
        levels: list[Level] = []
        for selector in selectors:
            area = atlas.area_at(selector & _AREA_SELECTOR_MASK)
            if area.header.autowalk:
                checkpoint = 0
            else:
                if slot >= len(checkpoints):
                    raise RomLayoutError(
                        f"World {w + 1} needs more than {len(checkpoints)} checkpoints")
                checkpoint = checkpoints[slot]
                slot += 1
            levels.append(Level(area.identity, checkpoint))
        worlds.append(World(levels, costs[w]))

    return Scenario(worlds)


# ─── Entry points ────────────────────────────────────────────────────────────

def parse_rom(rom_data: bytes, layout: Optional[RomLayout] = None,
              allow_internal: bool = False, verbose: bool = False) -> RomData:
    """Parse an in-memory image, with or without an iNES header."""
    layout = layout or RomLayout()

    header_size = _detect_header(rom_data)
    if header_size and verbose:
        print(f"Detected {header_size}-byte iNES header, skipping.")
    rom = rom_data[header_size:]

    raw_areas = extract_area_data(rom, layout)
    if verbose:
        total = sum(len(r.geography) + len(r.population) for r in raw_areas.values())
        print(f"Located {len(raw_areas)} areas ({total} bytes of level data).")

    atlas = parse_atlas(raw_areas, allow_internal=allow_internal)
    if verbose:
        actor_count = sum(len(a.geography) + len(a.population) for a in atlas)
        print(f"Decoded {len(atlas)} areas ({actor_count} actors).")

    scenario = parse_scenario(rom, atlas, layout)
    if verbose:
        level_count = sum(len(world.levels) for world in scenario.worlds)
        print(f"Parsed {len(scenario.worlds)} worlds ({level_count} levels).")

    return RomData(atlas=atlas, scenario=scenario, raw_areas=raw_areas)


def load_rom(path: str, layout: Optional[RomLayout] = None,
             allow_internal: bool = False, verbose: bool = False) -> RomData:
    """Load and parse a ROM file.

    Raises ``OSError`` if the file cannot be read and a ``SmbLevelsError``
    subclass if its contents do not parse.
    """
    rom = Path(path).read_bytes()
    if verbose:
        print(f"Read {len(rom)} bytes from {path}.")
    data = parse_rom(rom, layout, allow_internal=allow_internal, verbose=verbose)
    data.source = str(path)
    return data
