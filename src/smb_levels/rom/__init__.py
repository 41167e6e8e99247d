"""SMB ROM image package."""

from smb_levels.rom.data import RawArea, RomData, RomLayout
from smb_levels.rom.parser import (
    cpu_to_rom,
    extract_area_data,
    load_rom,
    parse_atlas,
    parse_checkpoints,
    parse_hidden_1up_costs,
    parse_rom,
    parse_scenario,
    read_addresses,
    read_stream,
)

__all__ = [
    "RawArea",
    "RomData",
    "RomLayout",
    "cpu_to_rom",
    "extract_area_data",
    "load_rom",
    "parse_atlas",
    "parse_checkpoints",
    "parse_hidden_1up_costs",
    "parse_rom",
    "parse_scenario",
    "read_addresses",
    "read_stream",
]
