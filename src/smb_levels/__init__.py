"""Codec for the level data of the original Super Mario Bros. cartridge."""

from smb_levels.area import (
    Area,
    Atlas,
    Environment,
    Level,
    Scenario,
    World,
    area_name,
    derive_index,
)
from smb_levels.bytecode import (
    decode_geography,
    decode_population,
    encode_geography,
    encode_population,
)
from smb_levels.errors import (
    DuplicateIdentityError,
    InvalidFieldValueError,
    RomLayoutError,
    SmbLevelsError,
    StreamError,
    TruncatedStreamError,
    UnknownIdentityError,
    UnrecognizedSelectorError,
    UnsupportedActorError,
)
from smb_levels.header import AreaHeader
from smb_levels.rom import RomData, RomLayout, load_rom, parse_rom

__all__ = [
    "Area",
    "AreaHeader",
    "Atlas",
    "DuplicateIdentityError",
    "Environment",
    "InvalidFieldValueError",
    "Level",
    "RomData",
    "RomLayout",
    "RomLayoutError",
    "Scenario",
    "SmbLevelsError",
    "StreamError",
    "TruncatedStreamError",
    "UnknownIdentityError",
    "UnrecognizedSelectorError",
    "UnsupportedActorError",
    "World",
    "area_name",
    "decode_geography",
    "decode_population",
    "derive_index",
    "encode_geography",
    "encode_population",
    "load_rom",
    "parse_rom",
]
