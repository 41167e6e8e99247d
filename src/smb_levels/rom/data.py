"""ROM layout constants and the containers the ROM parser fills."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from smb_levels.area import Atlas, Environment, Scenario
from smb_levels.errors import SmbLevelsError


# ─── Constants ───────────────────────────────────────────────────────────────

CPU_BASE = 0x8000  # PRG ROM is mapped at $8000-$FFFF

INES_MAGIC = b"NES\x1a"
INES_HEADER_SIZE = 16

# Per-environment start offsets into the address tables, one byte each
POPULATION_ENV_OFFSETS = 0x1CE0
GEOGRAPHY_ENV_OFFSETS = 0x1D28

# Split little/big halves of the CPU address of every area's data
POPULATION_LSB_TABLE = 0x1CE4
POPULATION_MSB_TABLE = 0x1D06
GEOGRAPHY_LSB_TABLE = 0x1D2C
GEOGRAPHY_MSB_TABLE = 0x1D4E
ADDRESS_TABLE_ENTRIES = 34

# World -> offset into the level area selector table
WORLD_OFFSET_TABLE = 0x1CB4
LEVEL_AREA_TABLE = 0x1CBC

# Checkpoint pages, one nibble per level, high nibble first
CHECKPOINT_TABLE = 0x11BD
CHECKPOINT_TABLE_SIZE = 16

# Coins needed in the previous level for the hidden 1-up to appear
HIDDEN_1UP_COST_TABLE = 0x32C2

DEFAULT_AREA_COUNTS: dict[Environment, int] = {
    Environment.UNDERWATER: 3,
    Environment.OVERWORLD: 22,
    Environment.UNDERGROUND: 3,
    Environment.CASTLE: 6,
}

DEFAULT_LEVELS_PER_WORLD: tuple[int, ...] = (5, 5, 4, 5, 4, 4, 5, 4)


# ─── Data Classes ─────────────────────────────────────────────────────────────

@dataclass
class RomLayout:
    """Where the level tables live in a headerless PRG image.

    The defaults describe the original cartridge. Levels per world count
    the areas a world's selector table lists, so the intermediate areas
    that continue a level after a pipe are included.
    """
    population_env_offsets: int = POPULATION_ENV_OFFSETS
    geography_env_offsets: int = GEOGRAPHY_ENV_OFFSETS
    population_lsb_table: int = POPULATION_LSB_TABLE
    population_msb_table: int = POPULATION_MSB_TABLE
    geography_lsb_table: int = GEOGRAPHY_LSB_TABLE
    geography_msb_table: int = GEOGRAPHY_MSB_TABLE
    address_table_entries: int = ADDRESS_TABLE_ENTRIES
    world_offset_table: int = WORLD_OFFSET_TABLE
    level_area_table: int = LEVEL_AREA_TABLE
    checkpoint_table: int = CHECKPOINT_TABLE
    checkpoint_table_size: int = CHECKPOINT_TABLE_SIZE
    hidden_1up_cost_table: int = HIDDEN_1UP_COST_TABLE
    cpu_base: int = CPU_BASE
    area_counts: dict[Environment, int] = field(
        default_factory=lambda: dict(DEFAULT_AREA_COUNTS))
    levels_per_world: tuple[int, ...] = DEFAULT_LEVELS_PER_WORLD

    @property
    def num_worlds(self) -> int:
        return len(self.levels_per_world)

    @property
    def level_total(self) -> int:
        return sum(self.levels_per_world)


@dataclass
class RawArea:
    """The undecoded bytes of one area as found in the image."""
    identity: str
    environment: Environment
    subindex: int
    geography_offset: int
    population_offset: int
    geography: bytes = b""
    population: bytes = b""


@dataclass
class RomData:
    """Everything parsed from a ROM image."""
    atlas: Atlas = field(default_factory=Atlas)
    scenario: Scenario = field(default_factory=Scenario)
    raw_areas: dict[str, RawArea] = field(default_factory=dict, repr=False)
    source: Optional[str] = None

    def check_round_trip(self) -> list[str]:
        """Re-encode every area and list those whose bytes differ from the image."""
        mismatched: list[str] = []
        for area in self.atlas:
            raw = self.raw_areas.get(area.identity)
            if raw is None:
                continue
            try:
                same = (area.encode_geography() == raw.geography
                        and area.encode_population(self.atlas.resolve) == raw.population)
            except SmbLevelsError:
                same = False
            if not same:
                mismatched.append(area.identity)
        return mismatched
