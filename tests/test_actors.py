import pytest

from smb_levels.actors import (
    Castle,
    CastleSize,
    Character,
    CharacterType,
    ExitPointer,
    FixedStatic,
    FixedStaticType,
    FlagpoleBalls,
    PageSkip,
    Row,
    RowType,
    SingletonObject,
    SingletonType,
    UprightPipe,
)
from smb_levels.errors import InvalidFieldValueError


def test_ordering_is_by_x_only():
    a = Row(x=3, y=2, extent=1)
    b = Castle(x=10)
    c = Row(x=3, y=9, extent=4)
    assert a < b
    assert not b < a
    assert not a < c and not c < a
    assert a != c
    assert sorted([b, c, a]) == [c, a, b]


def test_page_and_relative_x():
    row = Row(x=37)
    assert row.page == 2
    assert row.relative_x == 5


@pytest.mark.parametrize("factory", [
    lambda: Row(x=-1),
    lambda: Row(y=12),
    lambda: Row(extent=16),
    lambda: UprightPipe(extent=8),
    lambda: Character(y=14),
    lambda: ExitPointer(start_page=32),
    lambda: ExitPointer(active_from_world=8),
    lambda: PageSkip(target=64),
    lambda: SingletonObject(type=0xF),
    lambda: Row(type=5),
    lambda: Castle(size=3),
    lambda: Character(type=0x13),
    lambda: Row(x="3"),
    lambda: Row(y=True),
])
def test_field_ranges(factory):
    with pytest.raises(InvalidFieldValueError):
        factory()


def test_assignment_is_validated():
    row = Row(x=0, y=0, extent=0)
    with pytest.raises(InvalidFieldValueError):
        row.extent = 99
    assert row.extent == 0
    row.type = 4
    assert row.type is RowType.COIN


def test_flags_are_bools():
    assert UprightPipe(enterable=1).enterable is True
    assert Character(hard_mode_only=0).hard_mode_only is False


def test_internal_values():
    assert SingletonObject(type=SingletonType.TEE_PIPE).is_internal
    assert not SingletonObject(type=SingletonType.BRICK_VINE).is_internal
    assert FixedStatic(type=FixedStaticType.SCROLL_LOCK_ALT).is_internal
    assert not FixedStatic(type=FixedStaticType.AXE).is_internal
    assert Character(type=CharacterType.PIRANHA_PLANT).is_internal
    assert not Character(type=CharacterType.GOOMBA).is_internal
    assert FlagpoleBalls().is_internal
    assert not Castle().is_internal


def test_describe():
    assert Castle(x=4, size=CastleSize.SMALL).describe() == {
        "kind": "Castle", "x": 4, "size": "SMALL",
    }
    assert ExitPointer(x=1, destination="Area_21", start_page=3).describe() == {
        "kind": "ExitPointer", "x": 1, "destination": "Area_21",
        "start_page": 3, "active_from_world": 0,
    }
