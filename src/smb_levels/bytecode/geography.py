"""Geography commands: terrain, scenery and the area header.

Every geography command is two bytes. The low nibble of the first byte is
either a Y position (0-11, a "normal" command) or one of the selectors
0xC-0xF, each with its own high-byte layout:

    normal  high bits 6-4 type, 3-0 extent or object id
    0xC     fixed-height extensible, bits 6-4 type, 3-0 extent
    0xD     bit 6 clear: page skip to bits 5-0
            bit 6 set:   fixed static object, id in bits 5-0
    0xE     bit 6 set:   background change, bits 2-0
            bit 6 clear: scenery in bits 5-4, fill in bits 3-0
    0xF     bits 6-4 object id, 3-0 parameter

Bit 7 of the high byte is the new-page flag throughout.
"""

from __future__ import annotations

from typing import Callable, Iterable

from smb_levels.actors import (
    Actor,
    AnglePipe,
    BackgroundModifier,
    Castle,
    CastleSize,
    Column,
    ColumnType,
    ExtensiblePlatform,
    FillSceneryModifier,
    FixedExtensible,
    FixedExtensibleType,
    FixedStatic,
    FixedStaticType,
    FlagpoleBalls,
    FullHeightRope,
    GeographyActor,
    PageSkip,
    Row,
    RowType,
    ScaleRopeVertical,
    SingletonObject,
    SingletonType,
    Staircase,
    UprightPipe,
)
from smb_levels.bytecode.common import (
    DecodeContext,
    absolute_x,
    lookup,
    low_byte,
    page_flag,
    y_of,
)
from smb_levels.bytecode.stream import StreamFormat, decode_stream, encode_stream
from smb_levels.errors import (
    InvalidFieldValueError,
    TruncatedStreamError,
    UnrecognizedSelectorError,
    UnsupportedActorError,
)
from smb_levels.header import AreaHeader, Background, Fill, Scenery


GEOGRAPHY_END = 0xFD

SELECT_C = 0xC
SELECT_D = 0xD
SELECT_E = 0xE
SELECT_F = 0xF

# Type field of a normal command
_SINGLETON = 0
_PLATFORM = 1
_PIPE = 7

# Object ids of F-type commands
_F_ROPE = 0
_F_SCALE_ROPE = 1
_F_CASTLE = 2
_F_STAIRCASE = 3
_F_ANGLE_PIPE = 4
_F_FLAGPOLE_BALLS = 5

_BIT6 = 0x40

_ROW_TYPES = frozenset(t.value for t in RowType)
_COLUMN_TYPES = frozenset(t.value for t in ColumnType)


# ─── Decoders ────────────────────────────────────────────────────────────────

def decode_normal(low: int, high: int, ctx: DecodeContext) -> GeographyActor:
    x = absolute_x(low, ctx)
    y = y_of(low)
    kind = (high >> 4) & 0x7
    arg = high & 0xF

    if kind == _SINGLETON:
        return SingletonObject(x=x, y=y, type=lookup(
            SingletonType, arg, ctx, bytes((low, high)), "singleton object"))
    if kind == _PLATFORM:
        return ExtensiblePlatform(x=x, y=y, extent=arg)
    if kind in _ROW_TYPES:
        return Row(x=x, y=y, extent=arg, type=kind)
    if kind in _COLUMN_TYPES:
        return Column(x=x, y=y, extent=arg, type=kind)
    return UprightPipe(x=x, y=y, extent=high & 0x7, enterable=bool(high & 0x8))


def decode_c_type(low: int, high: int, ctx: DecodeContext) -> GeographyActor:
    return FixedExtensible(x=absolute_x(low, ctx), extent=high & 0xF,
                           type=FixedExtensibleType((high >> 4) & 0x7))


def decode_d_type(low: int, high: int, ctx: DecodeContext) -> GeographyActor:
    # Page skips (bit 6 clear) are consumed by the stream engine
    return FixedStatic(x=absolute_x(low, ctx), type=lookup(
        FixedStaticType, high & 0x3F, ctx, bytes((low, high)), "fixed static object"))


def decode_e_type(low: int, high: int, ctx: DecodeContext) -> GeographyActor:
    x = absolute_x(low, ctx)
    if high & _BIT6:
        return BackgroundModifier(x=x, background=Background(high & 0x7))
    return FillSceneryModifier(x=x, fill=Fill(high & 0xF),
                               scenery=Scenery((high >> 4) & 0x3))


def decode_f_type(low: int, high: int, ctx: DecodeContext) -> GeographyActor:
    x = absolute_x(low, ctx)
    kind = (high >> 4) & 0x7
    param = high & 0xF

    if kind == _F_ROPE:
        return FullHeightRope(x=x)
    if kind == _F_SCALE_ROPE:
        return ScaleRopeVertical(x=x, extent=param)
    if kind == _F_CASTLE:
        return Castle(x=x, size=CastleSize.LARGE if param == 0 else CastleSize.SMALL)
    if kind == _F_STAIRCASE:
        return Staircase(x=x, extent=param)
    if kind == _F_ANGLE_PIPE:
        return AnglePipe(x=x, y=param)
    if kind == _F_FLAGPOLE_BALLS:
        if not ctx.allow_internal:
            raise UnsupportedActorError(
                "Flagpole balls are a beta leftover", ctx.offset, bytes((low, high)))
        return FlagpoleBalls(x=x)
    raise UnrecognizedSelectorError(
        f"Unknown F-type object id {kind}", ctx.offset, bytes((low, high)))


_DECODERS: dict[int, Callable[[int, int, DecodeContext], GeographyActor]] = {
    SELECT_C: decode_c_type,
    SELECT_D: decode_d_type,
    SELECT_E: decode_e_type,
    SELECT_F: decode_f_type,
}


def decode_command(low: int, high: int, ctx: DecodeContext) -> GeographyActor:
    """Dispatch a non-page-skip command on its selector nibble."""
    return _DECODERS.get(y_of(low), decode_normal)(low, high, ctx)


# ─── Encoders ────────────────────────────────────────────────────────────────

def _command(actor: Actor, nibble: int, high: int, new_page: bool) -> bytes:
    return bytes((low_byte(actor.x, nibble), page_flag(new_page) | high))


def encode_singleton(actor: SingletonObject, new_page: bool) -> bytes:
    return _command(actor, actor.y, (_SINGLETON << 4) | actor.type, new_page)


def encode_platform(actor: ExtensiblePlatform, new_page: bool) -> bytes:
    return _command(actor, actor.y, (_PLATFORM << 4) | actor.extent, new_page)


def encode_row_or_column(actor, new_page: bool) -> bytes:
    return _command(actor, actor.y, (actor.type << 4) | actor.extent, new_page)


def encode_upright_pipe(actor: UprightPipe, new_page: bool) -> bytes:
    enterable = 0x8 if actor.enterable else 0
    return _command(actor, actor.y, (_PIPE << 4) | enterable | actor.extent, new_page)


def encode_fixed_extensible(actor: FixedExtensible, new_page: bool) -> bytes:
    return _command(actor, SELECT_C, (actor.type << 4) | actor.extent, new_page)


def encode_fixed_static(actor: FixedStatic, new_page: bool) -> bytes:
    return _command(actor, SELECT_D, _BIT6 | actor.type, new_page)


def encode_background(actor: BackgroundModifier, new_page: bool) -> bytes:
    return _command(actor, SELECT_E, _BIT6 | actor.background, new_page)


def encode_fill_scenery(actor: FillSceneryModifier, new_page: bool) -> bytes:
    return _command(actor, SELECT_E, (actor.scenery << 4) | actor.fill, new_page)


def encode_full_height_rope(actor: FullHeightRope, new_page: bool) -> bytes:
    return _command(actor, SELECT_F, _F_ROPE << 4, new_page)


def encode_scale_rope(actor: ScaleRopeVertical, new_page: bool) -> bytes:
    return _command(actor, SELECT_F, (_F_SCALE_ROPE << 4) | actor.extent, new_page)


def encode_castle(actor: Castle, new_page: bool) -> bytes:
    return _command(actor, SELECT_F, (_F_CASTLE << 4) | actor.size, new_page)


def encode_staircase(actor: Staircase, new_page: bool) -> bytes:
    return _command(actor, SELECT_F, (_F_STAIRCASE << 4) | actor.extent, new_page)


def encode_angle_pipe(actor: AnglePipe, new_page: bool) -> bytes:
    return _command(actor, SELECT_F, (_F_ANGLE_PIPE << 4) | actor.y, new_page)


def encode_flagpole_balls(actor: FlagpoleBalls, new_page: bool) -> bytes:
    return _command(actor, SELECT_F, _F_FLAGPOLE_BALLS << 4, new_page)


_ENCODERS: dict[type, Callable[..., bytes]] = {
    SingletonObject: encode_singleton,
    ExtensiblePlatform: encode_platform,
    Row: encode_row_or_column,
    Column: encode_row_or_column,
    UprightPipe: encode_upright_pipe,
    FixedExtensible: encode_fixed_extensible,
    FixedStatic: encode_fixed_static,
    BackgroundModifier: encode_background,
    FillSceneryModifier: encode_fill_scenery,
    FullHeightRope: encode_full_height_rope,
    ScaleRopeVertical: encode_scale_rope,
    Castle: encode_castle,
    Staircase: encode_staircase,
    AnglePipe: encode_angle_pipe,
    FlagpoleBalls: encode_flagpole_balls,
}


# ─── Stream format ───────────────────────────────────────────────────────────

class GeographyFormat(StreamFormat):
    name = "geography"
    end_marker = GEOGRAPHY_END
    header_length = 2

    def is_page_skip(self, low: int, high: int) -> bool:
        return y_of(low) == SELECT_D and not high & _BIT6

    def decode_two_byte(self, low: int, high: int, ctx: DecodeContext) -> Actor:
        return decode_command(low, high, ctx)

    def encode_actor(self, actor: Actor, new_page: bool) -> bytes:
        encoder = _ENCODERS.get(type(actor))
        if encoder is None:
            raise InvalidFieldValueError(
                f"{type(actor).__name__} cannot be placed in geography data")
        return encoder(actor, new_page)

    def encode_page_skip(self, skip: PageSkip) -> bytes:
        return bytes((low_byte(skip.x, SELECT_D), skip.target & 0x3F))


GEOGRAPHY = GeographyFormat()


def decode_geography(data: bytes, allow_internal: bool = False
                     ) -> tuple[AreaHeader, list[GeographyActor]]:
    """Decode a header word and geography commands up to the 0xFD marker."""
    if len(data) < GEOGRAPHY.header_length:
        raise TruncatedStreamError("Geography data too short for its header", 0)
    header = AreaHeader.from_bytes(data[0], data[1])
    result = decode_stream(data, GEOGRAPHY, start=GEOGRAPHY.header_length,
                           allow_internal=allow_internal)
    return header, result.actors


def encode_geography(header: AreaHeader, actors: Iterable[GeographyActor]) -> bytes:
    return encode_stream(actors, GEOGRAPHY, header=header.to_bytes())
