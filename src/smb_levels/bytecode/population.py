"""Population commands: enemies, lifts, generators and exit pointers.

The low nibble of the first byte selects the command:

    0x0-0xD  character at that Y; high bit 6 hard mode only, bits 5-0 id
    0xE      exit pointer, three bytes:
             mid  bit 7 new page, bits 6-0 destination area index
             high bits 7-5 first world it is active in, bits 4-0 start page
    0xF      page skip to high bits 5-0
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from smb_levels.actors import (
    Actor,
    Character,
    CharacterType,
    ExitPointer,
    PageSkip,
    PopulationActor,
)
from smb_levels.bytecode.common import (
    DecodeContext,
    absolute_x,
    area_name,
    lookup,
    low_byte,
    page_flag,
    y_of,
)
from smb_levels.bytecode.stream import StreamFormat, decode_stream, encode_stream
from smb_levels.errors import InvalidFieldValueError


POPULATION_END = 0xFF

SELECT_EXIT = 0xE
SELECT_PAGE_SKIP = 0xF

_HARD_MODE = 0x40
_AREA_INDEX_MASK = 0x7F

# Identity -> Atlas index, used to place exit pointer destinations
AreaIndexResolver = Callable[[str], int]


# ─── Commands ────────────────────────────────────────────────────────────────

def decode_character(low: int, high: int, ctx: DecodeContext) -> Character:
    return Character(
        x=absolute_x(low, ctx),
        y=y_of(low),
        type=lookup(CharacterType, high & 0x3F, ctx, bytes((low, high)), "character"),
        hard_mode_only=bool(high & _HARD_MODE),
    )


def decode_exit_pointer(low: int, mid: int, high: int,
                        ctx: DecodeContext) -> ExitPointer:
    return ExitPointer(
        x=absolute_x(low, ctx),
        destination=area_name(mid & _AREA_INDEX_MASK),
        active_from_world=(high >> 5) & 0x7,
        start_page=high & 0x1F,
    )


def encode_character(actor: Character, new_page: bool) -> bytes:
    hard = _HARD_MODE if actor.hard_mode_only else 0
    return bytes((low_byte(actor.x, actor.y), page_flag(new_page) | hard | actor.type))


def encode_exit_pointer(actor: ExitPointer, new_page: bool,
                        resolver: AreaIndexResolver) -> bytes:
    index = resolver(actor.destination)
    if not 0 <= index <= _AREA_INDEX_MASK:
        raise InvalidFieldValueError(
            f"Area index {index:#x} of {actor.destination!r} does not fit in seven bits",
            "destination")
    mid = page_flag(new_page) | index
    high = (actor.active_from_world << 5) | actor.start_page
    # The decoder reads an end marker in either operand byte as a cut-off command
    if mid == POPULATION_END:
        raise InvalidFieldValueError(
            f"Exit pointer to {actor.destination!r} (index {index:#04x}) at x={actor.x} "
            f"would encode an end marker as its second byte", "destination")
    if high == POPULATION_END:
        raise InvalidFieldValueError(
            f"Exit pointer with start page {actor.start_page} in world "
            f"{actor.active_from_world} would encode an end marker as its third byte",
            "start_page")
    return bytes((low_byte(actor.x, SELECT_EXIT), mid, high))


def _no_resolver(identity: str) -> int:
    raise InvalidFieldValueError(
        f"Exit pointer to {identity!r} needs an area index resolver", "destination")


# ─── Stream format ───────────────────────────────────────────────────────────

class PopulationFormat(StreamFormat):
    name = "population"
    end_marker = POPULATION_END

    def __init__(self, resolver: Optional[AreaIndexResolver] = None):
        self.resolver = resolver or _no_resolver

    def is_three_byte(self, low: int) -> bool:
        return y_of(low) == SELECT_EXIT

    def is_page_skip(self, low: int, high: int) -> bool:
        return y_of(low) == SELECT_PAGE_SKIP

    def decode_two_byte(self, low: int, high: int, ctx: DecodeContext) -> Actor:
        return decode_character(low, high, ctx)

    def decode_three_byte(self, low: int, mid: int, high: int,
                          ctx: DecodeContext) -> Actor:
        return decode_exit_pointer(low, mid, high, ctx)

    def encode_actor(self, actor: Actor, new_page: bool) -> bytes:
        if isinstance(actor, Character):
            return encode_character(actor, new_page)
        if isinstance(actor, ExitPointer):
            return encode_exit_pointer(actor, new_page, self.resolver)
        raise InvalidFieldValueError(
            f"{type(actor).__name__} cannot be placed in population data")

    def encode_page_skip(self, skip: PageSkip) -> bytes:
        return bytes((low_byte(skip.x, SELECT_PAGE_SKIP), skip.target & 0x3F))


POPULATION = PopulationFormat()


def decode_population(data: bytes, allow_internal: bool = False
                      ) -> list[PopulationActor]:
    """Decode population commands up to the 0xFF marker.

    Exit pointer destinations come back as ``Area_XX`` identities named by
    the raw area index.
    """
    return decode_stream(data, POPULATION, allow_internal=allow_internal).actors


def encode_population(actors: Iterable[PopulationActor],
                      resolver: Optional[AreaIndexResolver] = None) -> bytes:
    return encode_stream(actors, PopulationFormat(resolver))
