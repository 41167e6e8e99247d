"""Area header word: the 16-bit default settings at the head of geography data.

Bit layout, most significant first::

    15-14  timer index        {0: none, 1: 400, 2: 300, 3: 200}
    13     autowalk
    12-11  start position
    10-8   background
    7-6    platform style
    5-4    scenery
    3-0    fill pattern
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar

from smb_levels.errors import InvalidFieldValueError


# ─── Field enums ─────────────────────────────────────────────────────────────

class StartPosition(IntEnum):
    """Where the player appears on entering an area.

    The engine reads three bits, the top one of which is the header's
    autowalk bit, so members 4-7 only appear in the combined view given by
    ``AreaHeader.engine_start_position``.
    """
    FALL_INTERNAL = 0
    FALL = 1
    BOTTOM = 2
    MIDDLE = 3
    FALL_4 = 4
    FALL_5 = 5
    BOTTOM_AUTOWALK = 6
    BOTTOM_AUTOWALK_7 = 7


class Background(IntEnum):
    NONE = 0
    UNDERWATER = 1
    CASTLE_WALL = 2
    OVER_WATER = 3
    NIGHT = 4
    DAY_SNOW = 5
    NIGHT_SNOW = 6
    MONOCHROME = 7


class Platform(IntEnum):
    TREE = 0
    MUSHROOM = 1
    CANNON = 2
    CLOUD = 3


class Scenery(IntEnum):
    NONE = 0
    CLOUDS = 1
    HILLS = 2
    FENCES = 3


class Fill(IntEnum):
    """Terrain fill patterns, named by blocks from floor (BF) and ceiling (BC).

    BG and BL in the two split patterns count gap rows and block rows.
    """
    FILL_NONE = 0
    FILL_2BF_0BC = 1
    FILL_2BF_1BC = 2
    FILL_2BF_3BC = 3
    FILL_2BF_4BC = 4
    FILL_2BF_8BC = 5
    FILL_5BF_1BC = 6
    FILL_5BF_3BC = 7
    FILL_5BF_4BC = 8
    FILL_6BF_1BC = 9
    FILL_0BF_1BC = 10
    FILL_6BF_4BC = 11
    FILL_9BF_1BC = 12
    FILL_2BF_3BG_5BL_2BG_1BC = 13
    FILL_2BF_3BG_4BL_3BG_1BC = 14
    FILL_ALL = 15


# Timer field index -> starting ticks
TIMER_TICKS: dict[int, int] = {0: 0, 1: 400, 2: 300, 3: 200}
TICKS_TIMER: dict[int, int] = {ticks: index for index, ticks in TIMER_TICKS.items()}

_TIMER_SHIFT = 14
_AUTOWALK_SHIFT = 13
_START_SHIFT = 11
_BACKGROUND_SHIFT = 8
_PLATFORM_SHIFT = 6
_SCENERY_SHIFT = 4


# ─── Header ──────────────────────────────────────────────────────────────────

@dataclass
class AreaHeader:
    ticks: int = 400
    autowalk: bool = False
    start_position: StartPosition = StartPosition.BOTTOM
    background: Background = Background.NONE
    platform: Platform = Platform.TREE
    scenery: Scenery = Scenery.HILLS
    fill: Fill = Fill.FILL_2BF_0BC

    _ENUMS: ClassVar[dict[str, type]] = {
        "start_position": StartPosition,
        "background": Background,
        "platform": Platform,
        "scenery": Scenery,
        "fill": Fill,
    }

    def __setattr__(self, name, value):
        if name == "ticks":
            if value not in TICKS_TIMER:
                raise InvalidFieldValueError(
                    f"Timer must be one of {sorted(TICKS_TIMER)}, got {value!r}", name)
        elif name == "autowalk":
            value = bool(value)
        elif name in self._ENUMS:
            try:
                value = self._ENUMS[name](value)
            except ValueError:
                raise InvalidFieldValueError(
                    f"{value!r} is not a valid {name}", name) from None
            if name == "start_position" and value > StartPosition.MIDDLE:
                raise InvalidFieldValueError(
                    f"Header start position is two bits wide, got {value.name}", name)
        object.__setattr__(self, name, value)

    @property
    def engine_start_position(self) -> StartPosition:
        """Start position as the engine sees it, with autowalk as bit 2."""
        return StartPosition((int(self.autowalk) << 2) | self.start_position)

    @classmethod
    def decode(cls, word: int) -> AreaHeader:
        if not 0 <= word <= 0xFFFF:
            raise InvalidFieldValueError(f"Header word out of range: {word!r}", "word")
        return cls(
            ticks=TIMER_TICKS[(word >> _TIMER_SHIFT) & 0x3],
            autowalk=bool((word >> _AUTOWALK_SHIFT) & 0x1),
            start_position=(word >> _START_SHIFT) & 0x3,
            background=(word >> _BACKGROUND_SHIFT) & 0x7,
            platform=(word >> _PLATFORM_SHIFT) & 0x3,
            scenery=(word >> _SCENERY_SHIFT) & 0x3,
            fill=word & 0xF,
        )

    @classmethod
    def from_bytes(cls, first: int, second: int) -> AreaHeader:
        return cls.decode((first << 8) | second)

    def encode(self) -> int:
        return (
            (TICKS_TIMER[self.ticks] << _TIMER_SHIFT)
            | (int(self.autowalk) << _AUTOWALK_SHIFT)
            | (self.start_position << _START_SHIFT)
            | (self.background << _BACKGROUND_SHIFT)
            | (self.platform << _PLATFORM_SHIFT)
            | (self.scenery << _SCENERY_SHIFT)
            | self.fill
        )

    def to_bytes(self) -> bytes:
        word = self.encode()
        return bytes((word >> 8, word & 0xFF))

    def describe(self) -> dict:
        return {
            "ticks": self.ticks,
            "autowalk": self.autowalk,
            "start_position": self.start_position.name,
            "background": self.background.name,
            "platform": self.platform.name,
            "scenery": self.scenery.name,
            "fill": self.fill.name,
        }
