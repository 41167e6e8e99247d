"""Population streams: characters, exit pointers and page skips."""

import pytest

from smb_levels.actors import Character, CharacterType, ExitPointer, Row
from smb_levels.area import Area, Atlas, Environment
from smb_levels.bytecode import decode_population, encode_population
from smb_levels.errors import (
    InvalidFieldValueError,
    UnknownIdentityError,
    UnrecognizedSelectorError,
    UnsupportedActorError,
)


@pytest.fixture
def atlas():
    return Atlas([
        Area("Underwater_1", Environment.UNDERWATER),
        Area("Underwater_2", Environment.UNDERWATER),
        Area("Overworld_1", Environment.OVERWORLD),
    ])


def test_exit_pointer_golden_bytes(atlas):
    pointer = ExitPointer(x=0, destination="Underwater_2", start_page=4, active_from_world=4)
    assert encode_population([pointer], atlas.resolve) == bytes.fromhex("0E 01 84 FF")


def test_exit_pointer_decode():
    assert decode_population(bytes.fromhex("0E 01 84 FF")) == [
        ExitPointer(x=0, destination="Area_01", start_page=4, active_from_world=4),
    ]


def test_exit_pointer_all_fields():
    actors = decode_population(bytes.fromhex("3E A2 7F FF"))
    assert actors == [
        ExitPointer(x=19, destination="Area_22", start_page=31, active_from_world=3),
    ]


def test_exit_pointer_new_page(atlas):
    pointer = ExitPointer(x=20, destination="Overworld_1", start_page=1)
    assert encode_population([pointer], atlas.resolve) == bytes.fromhex("4E A0 01 FF")


@pytest.mark.parametrize("actor, command", [
    (Character(x=5, y=11, type=CharacterType.GOOMBA, hard_mode_only=True), "5B 46"),
    (Character(x=0, y=0, type=CharacterType.GREEN_TROOPA), "00 00"),
    (Character(x=15, y=13, type=CharacterType.TROOPA_SQUAD_3_Y6), "FD 3E"),
    (Character(x=2, y=11, type=CharacterType.BOWSER), "2B 2D"),
    (Character(x=9, y=4, type=CharacterType.LONG_FIRE_BAR_CLOCKWISE, hard_mode_only=True),
     "94 5F"),
])
def test_character_layout(actor, command):
    data = bytes.fromhex(command + " FF")
    assert encode_population([actor]) == data
    assert decode_population(data) == [actor]


def test_mixed_stream_round_trip(atlas):
    actors = [
        Character(x=8, y=11, type=CharacterType.GOOMBA),
        ExitPointer(x=8, destination="Overworld_1", start_page=2, active_from_world=0),
        Character(x=40, y=3, type=CharacterType.RED_PARATROOPA, hard_mode_only=True),
        Character(x=41, y=3, type=CharacterType.LAKITU),
    ]
    data = encode_population(actors, atlas.resolve)
    assert data == bytes.fromhex("8B 06 8E 20 02 0F 02 83 4F 93 11 FF")
    decoded = decode_population(data)
    assert decoded[0] == actors[0]
    assert decoded[1] == ExitPointer(x=8, destination="Area_20", start_page=2)
    assert decoded[2:] == actors[2:]


def test_page_skip_new_page_flag_then_assignment():
    # The skip's high byte sets the page outright
    assert decode_population(bytes.fromhex("0F 85 1B 06 FF")) == [
        Character(x=81, y=11, type=CharacterType.GOOMBA),
    ]


@pytest.mark.parametrize("opcode, member", [
    (0x01, CharacterType.RED_TROOPA_WALKOFF),
    (0x04, CharacterType.GREEN_TROOPA_STICKY),
    (0x08, CharacterType.BULLET_BILL),
    (0x0D, CharacterType.PIRANHA_PLANT),
    (0x17, CharacterType.BILL_GENERATOR),
])
def test_internal_characters(opcode, member):
    data = bytes((0x0B, opcode, 0xFF))
    with pytest.raises(UnsupportedActorError) as excinfo:
        decode_population(data)
    assert excinfo.value.offset == 0
    actors = decode_population(data, allow_internal=True)
    assert actors == [Character(x=0, y=11, type=member)]
    assert encode_population(actors) == data


@pytest.mark.parametrize("opcode", [0x13, 0x18, 0x20, 0x2E, 0x36, 0x3F])
def test_unknown_characters(opcode):
    with pytest.raises(UnrecognizedSelectorError) as excinfo:
        decode_population(bytes((0x0B, 0x06, 0x2B, opcode, 0xFF)))
    assert excinfo.value.offset == 2


def test_exit_pointer_needs_resolver():
    with pytest.raises(InvalidFieldValueError):
        encode_population([ExitPointer(x=0, destination="Area_01")])


def test_exit_pointer_unknown_destination(atlas):
    with pytest.raises(UnknownIdentityError):
        encode_population([ExitPointer(x=0, destination="Nowhere")], atlas.resolve)


def test_exit_pointer_index_must_fit():
    with pytest.raises(InvalidFieldValueError):
        encode_population([ExitPointer(x=0, destination="Far")], lambda identity: 0x80)


def test_geography_actor_rejected():
    with pytest.raises(InvalidFieldValueError):
        encode_population([Row(x=0)])


def test_exit_pointer_third_byte_cannot_be_end_marker(atlas):
    pointer = ExitPointer(x=0, destination="Underwater_1", start_page=31, active_from_world=7)
    with pytest.raises(InvalidFieldValueError):
        encode_population([pointer], atlas.resolve)

    # One field lower on either side still encodes and decodes
    for start_page, world in ((30, 7), (31, 6)):
        pointer = ExitPointer(x=0, destination="Underwater_1", start_page=start_page,
                              active_from_world=world)
        data = encode_population([pointer], atlas.resolve)
        assert decode_population(data) == [
            ExitPointer(x=0, destination="Area_00", start_page=start_page,
                        active_from_world=world),
        ]


def test_exit_pointer_second_byte_cannot_be_end_marker():
    atlas = Atlas(Area(f"C{i}", Environment.CASTLE) for i in range(32))
    assert atlas.resolve("C31") == 0x7F
    with pytest.raises(InvalidFieldValueError):
        encode_population([ExitPointer(x=16, destination="C31")], atlas.resolve)

    # Same destination without the new-page flag is fine
    data = encode_population([ExitPointer(x=0, destination="C31")], atlas.resolve)
    assert data == bytes.fromhex("0E 7F 00 FF")
    assert decode_population(data) == [ExitPointer(x=0, destination="Area_7F")]
