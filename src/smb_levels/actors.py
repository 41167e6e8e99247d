"""Actor value objects: everything placed in an area's geography or population.

Actors carry an absolute ``x`` in blocks from the area origin. Ordering is
by ``x`` alone, so two unequal actors in the same column compare neither
less nor greater.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum, IntEnum
from typing import ClassVar

from smb_levels.errors import InvalidFieldValueError
from smb_levels.header import Background, Fill, Scenery


PAGE_WIDTH = 16
MAX_PAGE = 0x3F


# ─── Opcode enums ────────────────────────────────────────────────────────────

class SingletonType(IntEnum):
    """Normal-command type 0 objects, keyed by their 4-bit id."""
    QUESTION_BLOCK_POWERUP = 0x0
    QUESTION_BLOCK_COIN = 0x1
    HIDDEN_BLOCK_COIN = 0x2
    HIDDEN_BLOCK_1UP = 0x3
    BRICK_POWERUP = 0x4
    BRICK_VINE = 0x5
    BRICK_STARMAN = 0x6
    BRICK_MULTI_COIN = 0x7
    BRICK_1UP = 0x8
    SIDEWAYS_PIPE = 0x9
    QUESTION_BLOCK_USED = 0xA
    JUMPING_BOARD = 0xB
    # Only reachable from engine code, never from stock level data
    TEE_PIPE = 0xC
    FLAGPOLE = 0xD
    BOWSER_BRIDGE = 0xE

    @property
    def is_internal(self) -> bool:
        return self in _INTERNAL_SINGLETONS


class RowType(IntEnum):
    BRICK = 2
    BLOCK = 3
    COIN = 4


class ColumnType(IntEnum):
    BRICK = 5
    BLOCK = 6


class FixedExtensibleType(IntEnum):
    """C-type commands: extensible actors drawn at a fixed height."""
    PIT = 0
    SCALE_ROPE_HORIZONTAL = 1
    BRIDGE_Y7 = 2
    BRIDGE_Y8 = 3
    BRIDGE_Y10 = 4
    WATER_PIT = 5
    QUESTION_BLOCKS_Y3 = 6
    QUESTION_BLOCKS_Y7 = 7


class FixedStaticType(IntEnum):
    """D-type commands with bit 6 of the high byte set."""
    TEE_PIPE = 0x0
    FLAGPOLE = 0x1
    AXE = 0x2
    CHAIN = 0x3
    BOWSER_BRIDGE = 0x4
    WARP_SCROLL_LOCK = 0x5
    SCROLL_LOCK = 0x6
    SCROLL_LOCK_ALT = 0x7
    INFINITE_FLYING_CHEEP_GENERATOR = 0x8
    INFINITE_BULLET_BILL_GENERATOR = 0x9
    STOP_INFINITE_GENERATOR = 0xA
    LOOP = 0xB

    @property
    def is_internal(self) -> bool:
        return self is FixedStaticType.SCROLL_LOCK_ALT


class CastleSize(IntEnum):
    LARGE = 0
    SMALL = 6


class CharacterType(IntEnum):
    """Population character ids (the low six bits of the high byte)."""
    GREEN_TROOPA = 0x00
    RED_TROOPA_WALKOFF = 0x01
    BUZZY_BEETLE = 0x02
    RED_TROOPA = 0x03
    GREEN_TROOPA_STICKY = 0x04
    HAMMER_BRO = 0x05
    GOOMBA = 0x06
    BLOOBER = 0x07
    BULLET_BILL = 0x08
    GREEN_PARATROOPA_FIXED = 0x09
    GREEN_CHEEP = 0x0A
    RED_CHEEP = 0x0B
    PODOBOO = 0x0C
    PIRANHA_PLANT = 0x0D
    GREEN_PARATROOPA_HOP = 0x0E
    RED_PARATROOPA = 0x0F
    GREEN_PARATROOPA_HOVER = 0x10
    LAKITU = 0x11
    SPINY = 0x12
    FLYING_CHEEP_GENERATOR = 0x14
    BOWSER_BREATH_GENERATOR = 0x15
    FIREWORKS = 0x16
    BILL_GENERATOR = 0x17
    SLOW_FIRE_BAR_CLOCKWISE = 0x1B
    FAST_FIRE_BAR_CLOCKWISE = 0x1C
    SLOW_FIRE_BAR_ANTICLOCKWISE = 0x1D
    FAST_FIRE_BAR_ANTICLOCKWISE = 0x1E
    LONG_FIRE_BAR_CLOCKWISE = 0x1F
    SCALE_LIFT = 0x24
    LIFT_UP_AND_DOWN = 0x25
    LIFT_UP = 0x26
    LIFT_DOWN = 0x27
    LIFT_SIDE_TO_SIDE = 0x28
    LIFT_FALL = 0x29
    LIFT_RIGHT = 0x2A
    SHORT_LIFT_UP = 0x2B
    SHORT_LIFT_DOWN = 0x2C
    BOWSER = 0x2D
    WARP_ZONE = 0x34
    TOAD_PEACH = 0x35
    GOOMBA_SQUAD_2_Y10 = 0x37
    GOOMBA_SQUAD_3_Y10 = 0x38
    GOOMBA_SQUAD_2_Y6 = 0x39
    GOOMBA_SQUAD_3_Y6 = 0x3A
    TROOPA_SQUAD_2_Y10 = 0x3B
    TROOPA_SQUAD_3_Y10 = 0x3C
    TROOPA_SQUAD_2_Y6 = 0x3D
    TROOPA_SQUAD_3_Y6 = 0x3E

    @property
    def is_internal(self) -> bool:
        return self in _INTERNAL_CHARACTERS


_INTERNAL_SINGLETONS = frozenset({
    SingletonType.TEE_PIPE,
    SingletonType.FLAGPOLE,
    SingletonType.BOWSER_BRIDGE,
})

# Ids the engine spawns itself or that only survive from the beta
_INTERNAL_CHARACTERS = frozenset({
    CharacterType.RED_TROOPA_WALKOFF,
    CharacterType.GREEN_TROOPA_STICKY,
    CharacterType.BULLET_BILL,
    CharacterType.GREEN_PARATROOPA_FIXED,
    CharacterType.PIRANHA_PLANT,
    CharacterType.FLYING_CHEEP_GENERATOR,
    CharacterType.FIREWORKS,
    CharacterType.BILL_GENERATOR,
})


# ─── Base classes ────────────────────────────────────────────────────────────

@dataclass
class Actor:
    """Anything with an absolute horizontal position in an area."""
    x: int = 0

    # field name -> inclusive (low, high) range
    _LIMITS: ClassVar[dict[str, tuple[int, int]]] = {}
    # field name -> enum type the value is coerced to
    _ENUMS: ClassVar[dict[str, type]] = {}
    _FLAGS: ClassVar[frozenset[str]] = frozenset()

    def __setattr__(self, name, value):
        if name == "x":
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidFieldValueError(f"x must be a non-negative integer, got {value!r}", name)
        elif name in self._LIMITS:
            low, high = self._LIMITS[name]
            if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
                raise InvalidFieldValueError(
                    f"{type(self).__name__}.{name} must be in {low}..{high}, got {value!r}", name)
        elif name in self._ENUMS:
            try:
                value = self._ENUMS[name](value)
            except ValueError:
                raise InvalidFieldValueError(
                    f"{value!r} is not a valid {type(self).__name__}.{name}", name) from None
        elif name in self._FLAGS:
            value = bool(value)
        object.__setattr__(self, name, value)

    def __lt__(self, other):
        if not isinstance(other, Actor):
            return NotImplemented
        return self.x < other.x

    @property
    def page(self) -> int:
        return self.x // PAGE_WIDTH

    @property
    def relative_x(self) -> int:
        return self.x % PAGE_WIDTH

    @property
    def is_internal(self) -> bool:
        return False

    def describe(self) -> dict:
        """Plain-data view of the actor, for JSON dumps."""
        out: dict = {"kind": type(self).__name__}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = value.name if isinstance(value, Enum) else value
        return out


@dataclass
class PageSkip(Actor):
    """Moves the page counter to ``target``. Produced only when encoding."""
    target: int = 0

    _LIMITS: ClassVar[dict[str, tuple[int, int]]] = {"target": (0, MAX_PAGE)}


@dataclass
class GeographyActor(Actor):
    pass


@dataclass
class PopulationActor(Actor):
    pass


# ─── Geography actors ────────────────────────────────────────────────────────

_Y = (0, 11)
_EXTENT = (0, 15)


@dataclass
class SingletonObject(GeographyActor):
    y: int = 0
    type: SingletonType = SingletonType.QUESTION_BLOCK_POWERUP

    _LIMITS: ClassVar[dict[str, tuple[int, int]]] = {"y": _Y}
    _ENUMS: ClassVar[dict[str, type]] = {"type": SingletonType}

    @property
    def is_internal(self) -> bool:
        return self.type.is_internal


@dataclass
class ExtensiblePlatform(GeographyActor):
    y: int = 0
    extent: int = 0

    _LIMITS: ClassVar[dict[str, tuple[int, int]]] = {"y": _Y, "extent": _EXTENT}


@dataclass
class Row(GeographyActor):
    y: int = 0
    extent: int = 0
    type: RowType = RowType.BRICK

    _LIMITS: ClassVar[dict[str, tuple[int, int]]] = {"y": _Y, "extent": _EXTENT}
    _ENUMS: ClassVar[dict[str, type]] = {"type": RowType}


@dataclass
class Column(GeographyActor):
    y: int = 0
    extent: int = 0
    type: ColumnType = ColumnType.BRICK

    _LIMITS: ClassVar[dict[str, tuple[int, int]]] = {"y": _Y, "extent": _EXTENT}
    _ENUMS: ClassVar[dict[str, type]] = {"type": ColumnType}


@dataclass
class UprightPipe(GeographyActor):
    """Vertical pipe; ``extent`` shares its byte with the enterable bit."""
    y: int = 0
    extent: int = 0
    enterable: bool = False

    _LIMITS: ClassVar[dict[str, tuple[int, int]]] = {"y": _Y, "extent": (0, 7)}
    _FLAGS: ClassVar[frozenset[str]] = frozenset({"enterable"})


@dataclass
class FixedExtensible(GeographyActor):
    extent: int = 0
    type: FixedExtensibleType = FixedExtensibleType.PIT

    _LIMITS: ClassVar[dict[str, tuple[int, int]]] = {"extent": _EXTENT}
    _ENUMS: ClassVar[dict[str, type]] = {"type": FixedExtensibleType}


@dataclass
class FixedStatic(GeographyActor):
    type: FixedStaticType = FixedStaticType.FLAGPOLE

    _ENUMS: ClassVar[dict[str, type]] = {"type": FixedStaticType}

    @property
    def is_internal(self) -> bool:
        return self.type.is_internal


@dataclass
class BackgroundModifier(GeographyActor):
    background: Background = Background.NONE

    _ENUMS: ClassVar[dict[str, type]] = {"background": Background}


@dataclass
class FillSceneryModifier(GeographyActor):
    fill: Fill = Fill.FILL_NONE
    scenery: Scenery = Scenery.NONE

    _ENUMS: ClassVar[dict[str, type]] = {"fill": Fill, "scenery": Scenery}


@dataclass
class FullHeightRope(GeographyActor):
    pass


@dataclass
class ScaleRopeVertical(GeographyActor):
    extent: int = 0

    _LIMITS: ClassVar[dict[str, tuple[int, int]]] = {"extent": _EXTENT}


@dataclass
class Castle(GeographyActor):
    size: CastleSize = CastleSize.LARGE

    _ENUMS: ClassVar[dict[str, type]] = {"size": CastleSize}


@dataclass
class Staircase(GeographyActor):
    extent: int = 0

    _LIMITS: ClassVar[dict[str, tuple[int, int]]] = {"extent": _EXTENT}


@dataclass
class AnglePipe(GeographyActor):
    y: int = 0

    _LIMITS: ClassVar[dict[str, tuple[int, int]]] = {"y": (0, 15)}


@dataclass
class FlagpoleBalls(GeographyActor):
    """Leftover from the beta; the engine still draws it."""

    @property
    def is_internal(self) -> bool:
        return True


# ─── Population actors ───────────────────────────────────────────────────────

@dataclass
class Character(PopulationActor):
    # 0xE and 0xF in the y nibble select other commands
    y: int = 0
    type: CharacterType = CharacterType.GOOMBA
    hard_mode_only: bool = False

    _LIMITS: ClassVar[dict[str, tuple[int, int]]] = {"y": (0, 13)}
    _ENUMS: ClassVar[dict[str, type]] = {"type": CharacterType}
    _FLAGS: ClassVar[frozenset[str]] = frozenset({"hard_mode_only"})

    @property
    def is_internal(self) -> bool:
        return self.type.is_internal


@dataclass
class ExitPointer(PopulationActor):
    """Sends the player through a pipe or vine to another area.

    ``destination`` names the target area's identity; it is turned into an
    Atlas index only when the population stream is encoded.
    """
    destination: str = ""
    start_page: int = 0
    active_from_world: int = 0

    _LIMITS: ClassVar[dict[str, tuple[int, int]]] = {
        "start_page": (0, 31),
        "active_from_world": (0, 7),
    }
