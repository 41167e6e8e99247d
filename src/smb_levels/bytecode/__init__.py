"""Geography and population bytecode codecs."""

from smb_levels.bytecode.common import area_name
from smb_levels.bytecode.geography import (
    GEOGRAPHY,
    GEOGRAPHY_END,
    GeographyFormat,
    decode_geography,
    encode_geography,
)
from smb_levels.bytecode.population import (
    POPULATION,
    POPULATION_END,
    AreaIndexResolver,
    PopulationFormat,
    decode_population,
    encode_population,
)
from smb_levels.bytecode.stream import (
    DecodeResult,
    StreamFormat,
    decode_stream,
    encode_stream,
    stream_length,
)

__all__ = [
    "AreaIndexResolver",
    "DecodeResult",
    "GEOGRAPHY",
    "GEOGRAPHY_END",
    "GeographyFormat",
    "POPULATION",
    "POPULATION_END",
    "PopulationFormat",
    "StreamFormat",
    "area_name",
    "decode_geography",
    "decode_population",
    "decode_stream",
    "encode_geography",
    "encode_population",
    "encode_stream",
    "stream_length",
]
