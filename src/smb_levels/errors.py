"""Exception types raised by the level codec, the Atlas and the ROM reader."""

from __future__ import annotations

from typing import Optional


class SmbLevelsError(Exception):
    """Base class for every error raised by this package."""


# ─── Stream decode errors ────────────────────────────────────────────────────

class StreamError(SmbLevelsError):
    """A bytecode stream could not be decoded.

    ``offset`` is the position of the first byte of the offending command,
    counted from the start of the buffer handed to the decoder.
    """

    def __init__(self, message: str, offset: int):
        super().__init__(f"{message} (at byte offset {offset:#06x})")
        self.offset = offset


class TruncatedStreamError(StreamError):
    """The input ended, or hit the end marker, in the middle of a command."""


class UnrecognizedSelectorError(StreamError):
    """A command's selector or type bits have no defined meaning."""

    def __init__(self, message: str, offset: int, command: bytes = b""):
        if command:
            message = f"{message} [{command.hex(' ').upper()}]"
        super().__init__(message, offset)
        self.command = bytes(command)


class UnsupportedActorError(StreamError):
    """A well-formed command names an engine-internal or beta value.

    Decoders only produce such values when asked to with
    ``allow_internal=True``.
    """

    def __init__(self, message: str, offset: int, command: bytes = b""):
        if command:
            message = f"{message} [{command.hex(' ').upper()}]"
        super().__init__(message, offset)
        self.command = bytes(command)


# ─── Value errors ────────────────────────────────────────────────────────────

class InvalidFieldValueError(SmbLevelsError, ValueError):
    """A field was given a value outside its allowed range."""

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(message)
        self.field_name = field_name


class UnknownIdentityError(InvalidFieldValueError, KeyError):
    """An Atlas lookup named an area identity that is not present."""

    def __init__(self, identity: str):
        super().__init__(f"No area with identity {identity!r}", "identity")
        self.identity = identity

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class DuplicateIdentityError(SmbLevelsError):
    """An area with the same identity is already in the Atlas."""

    def __init__(self, identity: str):
        super().__init__(f"Duplicate area identity {identity!r}")
        self.identity = identity


# ─── ROM errors ──────────────────────────────────────────────────────────────

class RomLayoutError(SmbLevelsError):
    """The ROM image does not fit the expected layout."""
