"""Bit helpers and decode state shared by the geography and population codecs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TypeVar

from smb_levels.errors import UnrecognizedSelectorError, UnsupportedActorError


NEW_PAGE_BIT = 0x80
PAGE_SKIP_MASK = 0x3F

E = TypeVar("E", bound=IntEnum)


@dataclass
class DecodeContext:
    """Mutable state of a single decode call.

    Each call to ``decode_stream`` makes its own, so format objects stay
    stateless and can be shared between threads.
    """
    page: int = 0
    offset: int = 0
    allow_internal: bool = False


def x_of(low: int) -> int:
    """Page-relative X, the high nibble of a command's first byte."""
    return (low >> 4) & 0xF


def y_of(low: int) -> int:
    """Y position or selector, the low nibble of a command's first byte."""
    return low & 0xF


def has_new_page(byte: int) -> bool:
    return bool(byte & NEW_PAGE_BIT)


def page_flag(new_page: bool) -> int:
    return NEW_PAGE_BIT if new_page else 0


def low_byte(x: int, nibble: int) -> int:
    """First command byte from an absolute X and a Y/selector nibble."""
    return ((x % 16) << 4) | (nibble & 0xF)


def absolute_x(low: int, ctx: DecodeContext) -> int:
    return ctx.page * 16 + x_of(low)


def lookup(enum_type: type[E], value: int, ctx: DecodeContext,
           command: bytes, what: str) -> E:
    """Map a decoded id to its enum member, enforcing the internal-value policy."""
    try:
        member = enum_type(value)
    except ValueError:
        raise UnrecognizedSelectorError(
            f"Unknown {what} id {value:#04x}", ctx.offset, command) from None
    if getattr(member, "is_internal", False) and not ctx.allow_internal:
        raise UnsupportedActorError(
            f"{what} {member.name} is engine-internal", ctx.offset, command)
    return member


def area_name(index: int) -> str:
    """Identity given to an area known only by its Atlas index."""
    return f"Area_{index:02X}"
