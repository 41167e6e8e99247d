"""Shared fixtures: a small synthetic PRG image laid out like the cartridge."""

from __future__ import annotations

import pytest

from smb_levels.area import Environment
from smb_levels.rom.data import RomLayout


DATA_START = 0x4000

# identity -> (environment, geography bytes, population bytes)
AREAS = {
    "Area_00": (Environment.UNDERWATER, bytes.fromhex("41 01 FD"), bytes.fromhex("FF")),
    # Autowalk intro: timer off, autowalk, start in the middle
    "Area_20": (Environment.OVERWORLD, bytes.fromhex("38 11 0F 20 FD"),
                bytes.fromhex("0E 21 02 FF")),
    "Area_21": (Environment.OVERWORLD, bytes.fromhex("50 21 35 22 0D 02 25 22 FD"),
                bytes.fromhex("0B 06 FF")),
    "Area_60": (Environment.CASTLE, bytes.fromhex("10 51 0D 42 FD"),
                bytes.fromhex("2B 2D FF")),
}

# World 1: intro, 1-1 style area, underwater; world 2: castle, then Area_21
# again with the unused high bit of the selector set
LEVEL_SELECTORS = [[0x20, 0x21, 0x00], [0x60, 0xA1]]
CHECKPOINT_BYTES = bytes((0x56, 0x78))
HIDDEN_1UP_COSTS = bytes((21, 22))


def _layout() -> RomLayout:
    return RomLayout(
        area_counts={
            Environment.UNDERWATER: 1,
            Environment.OVERWORLD: 2,
            Environment.UNDERGROUND: 0,
            Environment.CASTLE: 1,
        },
        levels_per_world=(3, 2),
    )


def _build_image(layout: RomLayout) -> bytes:
    rom = bytearray(0x8000)

    # Table slot of each area: environments are laid out in order
    env_starts = [0, 1, 3, 3]
    rom[layout.geography_env_offsets:layout.geography_env_offsets + 4] = bytes(env_starts)
    rom[layout.population_env_offsets:layout.population_env_offsets + 4] = bytes(env_starts)

    cursor = DATA_START
    for slot, (env, geography, population) in enumerate(AREAS.values()):
        for data, lsb_table, msb_table in (
            (geography, layout.geography_lsb_table, layout.geography_msb_table),
            (population, layout.population_lsb_table, layout.population_msb_table),
        ):
            address = layout.cpu_base + cursor
            rom[lsb_table + slot] = address & 0xFF
            rom[msb_table + slot] = address >> 8
            rom[cursor:cursor + len(data)] = data
            cursor += len(data)

    offset = 0
    for w, selectors in enumerate(LEVEL_SELECTORS):
        rom[layout.world_offset_table + w] = offset
        start = layout.level_area_table + offset
        rom[start:start + len(selectors)] = bytes(selectors)
        offset += len(selectors)

    rom[layout.checkpoint_table:layout.checkpoint_table + len(CHECKPOINT_BYTES)] = CHECKPOINT_BYTES
    rom[layout.hidden_1up_cost_table:layout.hidden_1up_cost_table + 2] = HIDDEN_1UP_COSTS
    return bytes(rom)


@pytest.fixture
def rom_layout() -> RomLayout:
    return _layout()


@pytest.fixture
def rom_image(rom_layout) -> bytes:
    return _build_image(rom_layout)


@pytest.fixture
def rom_file(tmp_path, rom_image):
    path = tmp_path / "synthetic.nes"
    path.write_bytes(b"NES\x1a" + bytes(12) + rom_image)
    return path
