"""Generic command-stream engine shared by geography and population data.

A stream is a run of two- or three-byte commands closed by a one-byte end
marker. Positions inside a command are page-relative; the page counter is
advanced by a flag bit in the second byte of each command and set outright
by page-skip commands. A ``StreamFormat`` supplies everything that differs
between the two kinds of stream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from operator import attrgetter
from typing import Iterable

from smb_levels.actors import MAX_PAGE, PAGE_WIDTH, Actor, PageSkip
from smb_levels.bytecode.common import (
    PAGE_SKIP_MASK,
    DecodeContext,
    has_new_page,
)
from smb_levels.errors import InvalidFieldValueError, TruncatedStreamError


class StreamFormat:
    """Per-format hooks used by ``decode_stream`` and ``encode_stream``."""
    name = "stream"
    end_marker = 0xFF
    header_length = 0

    def is_three_byte(self, low: int) -> bool:
        return False

    def is_page_skip(self, low: int, high: int) -> bool:
        raise NotImplementedError

    def decode_two_byte(self, low: int, high: int, ctx: DecodeContext) -> Actor:
        raise NotImplementedError

    def decode_three_byte(self, low: int, mid: int, high: int,
                          ctx: DecodeContext) -> Actor:
        raise NotImplementedError

    def encode_actor(self, actor: Actor, new_page: bool) -> bytes:
        raise NotImplementedError

    def encode_page_skip(self, skip: PageSkip) -> bytes:
        raise NotImplementedError


@dataclass
class DecodeResult:
    actors: list[Actor] = field(default_factory=list)
    # Bytes consumed from the start offset, end marker included
    length: int = 0


def decode_stream(data: bytes, fmt: StreamFormat, start: int = 0,
                  allow_internal: bool = False) -> DecodeResult:
    """Decode commands from ``data[start:]`` up to and including the end marker."""
    ctx = DecodeContext(allow_internal=allow_internal)
    actors: list[Actor] = []
    end = len(data)
    pos = start

    while True:
        ctx.offset = pos
        if pos >= end:
            raise TruncatedStreamError(
                f"{fmt.name} data ended before end marker {fmt.end_marker:#04x}", pos)
        low = data[pos]
        if low == fmt.end_marker:
            return DecodeResult(actors, pos + 1 - start)

        if fmt.is_three_byte(low):
            if pos + 2 >= end:
                raise TruncatedStreamError(f"{fmt.name} three-byte command cut short", pos)
            mid, high = data[pos + 1], data[pos + 2]
            if fmt.end_marker in (mid, high):
                raise TruncatedStreamError(
                    f"{fmt.name} three-byte command interrupted by end marker", pos)
            if has_new_page(mid):
                ctx.page += 1
            actors.append(fmt.decode_three_byte(low, mid, high, ctx))
            pos += 3
            continue

        if pos + 1 >= end:
            raise TruncatedStreamError(f"{fmt.name} two-byte command cut short", pos)
        # Unlike three-byte commands, an end-marker value here is a real operand
        # (a pipe's high byte may be 0xFD), so only running out of data truncates
        high = data[pos + 1]
        if has_new_page(high):
            ctx.page += 1
        if fmt.is_page_skip(low, high):
            ctx.page = high & PAGE_SKIP_MASK
        else:
            actors.append(fmt.decode_two_byte(low, high, ctx))
        pos += 2


def stream_length(data: bytes, fmt: StreamFormat, start: int = 0) -> int:
    """Length of the stream at ``start``, header and end marker included.

    Walks command boundaries only, so it works on data the decoder would
    reject for unknown ids.
    """
    end = len(data)
    pos = start + fmt.header_length
    if pos > end:
        raise TruncatedStreamError(f"{fmt.name} data too short for its header", start)
    while True:
        if pos >= end:
            raise TruncatedStreamError(
                f"{fmt.name} data ended before end marker {fmt.end_marker:#04x}", pos)
        low = data[pos]
        if low == fmt.end_marker:
            return pos + 1 - start
        pos += 3 if fmt.is_three_byte(low) else 2


def encode_stream(actors: Iterable[Actor], fmt: StreamFormat,
                  header: bytes = b"") -> bytes:
    """Encode actors in X order, adding new-page flags and page skips as needed."""
    out = bytearray(header)
    previous = 0

    # sorted() is stable, so actors sharing an X keep their given order
    for actor in sorted(actors, key=attrgetter("x")):
        if isinstance(actor, PageSkip):
            raise InvalidFieldValueError(
                "Page skips are generated during encoding and cannot be supplied", "x")
        page = actor.page
        if page > MAX_PAGE:
            raise InvalidFieldValueError(
                f"{type(actor).__name__} at x={actor.x} is on page {page}, "
                f"beyond the last page {MAX_PAGE}", "x")

        new_page = False
        if page == previous + 1:
            new_page = True
        elif page > previous + 1:
            out += fmt.encode_page_skip(PageSkip(x=page * PAGE_WIDTH, target=page))
        previous = page

        command = fmt.encode_actor(actor, new_page)
        if command[0] == fmt.end_marker:
            raise InvalidFieldValueError(
                f"{type(actor).__name__} at x={actor.x} would encode as the "
                f"{fmt.name} end marker", "x")
        out += command

    out.append(fmt.end_marker)
    return bytes(out)
