"""Atlas indexing, area identity and the world/level scenario."""

import random

import pytest

from smb_levels.actors import Castle, Character, CharacterType, ExitPointer
from smb_levels.area import (
    Area,
    Atlas,
    Environment,
    Level,
    Scenario,
    World,
    area_name,
    derive_index,
)
from smb_levels.errors import (
    DuplicateIdentityError,
    InvalidFieldValueError,
    UnknownIdentityError,
)
from smb_levels.header import AreaHeader


U = Environment.UNDERWATER
O = Environment.OVERWORLD
G = Environment.UNDERGROUND
C = Environment.CASTLE


def _areas(*envs):
    return [Area(f"{env.name.lower()}_{i}", env) for i, env in enumerate(envs)]


def test_index_stability():
    areas = _areas(U, U, O, O, O, C)
    atlas = Atlas(areas)
    assert [atlas.index_of(a) for a in areas] == [0x00, 0x01, 0x20, 0x21, 0x22, 0x60]

    atlas.remove(areas[3])
    assert atlas.index_of(areas[2]) == 0x20
    assert atlas.index_of(areas[4]) == 0x21
    assert atlas.index_of(areas[5]) == 0x60
    assert atlas.counts[O] == 2
    with pytest.raises(UnknownIdentityError):
        atlas.index_of(areas[3])


def test_insertion_order_within_category():
    o1, u1, c1, u2, o2 = _areas(O, U, C, U, O)
    atlas = Atlas()
    for area in (o1, u1, c1, u2, o2):
        atlas.add(area)
    assert list(atlas) == [u1, u2, o1, o2, c1]
    assert [atlas.index_of(a) for a in atlas] == [0x00, 0x01, 0x20, 0x21, 0x60]
    assert atlas.counts == {U: 2, O: 2, G: 0, C: 1}


def test_lookups():
    areas = _areas(U, O, G)
    atlas = Atlas(areas)
    assert atlas.get("overworld_1") is areas[1]
    assert atlas.resolve("underground_2") == 0x40
    assert atlas.area_at(0x40) is areas[2]
    assert "underwater_0" in atlas
    assert areas[1] in atlas
    assert "missing" not in atlas
    assert len(atlas) == 3

    with pytest.raises(UnknownIdentityError):
        atlas.get("missing")
    with pytest.raises(KeyError):
        atlas.get("missing")
    with pytest.raises(InvalidFieldValueError):
        atlas.area_at(0x21)


def test_duplicate_add_leaves_atlas_unchanged():
    areas = _areas(U, O)
    atlas = Atlas(areas)
    before = atlas.index

    with pytest.raises(DuplicateIdentityError):
        atlas.add(Area("overworld_1", C))
    assert atlas.index == before
    assert atlas.get("overworld_1").environment is O


def test_add_all_is_atomic():
    atlas = Atlas(_areas(U))
    with pytest.raises(DuplicateIdentityError):
        atlas.add_all([Area("new_1", O), Area("new_2", O), Area("new_1", C)])
    assert len(atlas) == 1
    with pytest.raises(DuplicateIdentityError):
        atlas.add_all([Area("new_3", O), Area("underwater_0", O)])
    assert len(atlas) == 1


def test_remove_unknown():
    atlas = Atlas(_areas(U))
    with pytest.raises(UnknownIdentityError):
        atlas.remove("nope")


def test_remove_by_identity():
    atlas = Atlas(_areas(U, U))
    atlas.remove("underwater_0")
    assert atlas.index_of("underwater_1") == 0x00


def test_set_environment_reindexes():
    areas = _areas(U, O, O, C)
    atlas = Atlas(areas)
    atlas.set_environment(areas[1], C)
    assert areas[1].environment is C
    assert atlas.index_of(areas[2]) == 0x20
    assert atlas.index_of(areas[3]) == 0x60
    assert atlas.index_of(areas[1]) == 0x61
    assert atlas.check_consistency()


def test_moved_area_joins_end_of_new_environment():
    areas = _areas(O, O, C, C)
    atlas = Atlas(areas)
    atlas.set_environment(areas[3], O)
    assert [atlas.index_of(a) for a in areas] == [0x20, 0x21, 0x60, 0x22]

    # Moving back does not restore the old slot
    atlas.set_environment(areas[0], O)
    assert [atlas.index_of(a) for a in areas] == [0x22, 0x20, 0x60, 0x21]


def test_failed_move_leaves_atlas_unchanged():
    areas = [Area(f"c{i}", C) for i in range(32)] + [Area("o0", O)]
    atlas = Atlas(areas)
    before = atlas.index
    with pytest.raises(InvalidFieldValueError):
        atlas.set_environment("o0", C)
    assert atlas.get("o0").environment is O
    assert atlas.index == before


def test_environment_is_read_only_on_area():
    area = Area("a", U)
    with pytest.raises(AttributeError):
        area.environment = O
    with pytest.raises(AttributeError):
        area.identity = "b"


def test_too_many_areas_in_one_environment():
    atlas = Atlas(Area(f"o{i}", O) for i in range(32))
    assert atlas.index_of("o31") == 0x3F
    with pytest.raises(InvalidFieldValueError):
        atlas.add(Area("o32", O))
    assert len(atlas) == 32


def test_derived_tables_stay_consistent():
    rng = random.Random(1985)
    atlas = Atlas()
    serial = 0
    for _ in range(300):
        if atlas.areas and rng.random() < 0.4:
            atlas.remove(rng.choice(atlas.areas))
        elif atlas.areas and rng.random() < 0.1:
            atlas.set_environment(rng.choice(atlas.areas), rng.choice(list(Environment)))
        else:
            env = rng.choice(list(Environment))
            if atlas.counts[env] < 32:
                atlas.add(Area(f"area_{serial}", env))
                serial += 1

        fresh = derive_index(atlas.areas)
        assert fresh == atlas.index
        assert atlas.check_consistency()
        envs = [a.environment for a in atlas]
        assert envs == sorted(envs)
        assert sum(atlas.counts.values()) == len(atlas)
        for area in atlas:
            index = atlas.index_of(area)
            assert index >> 5 == area.environment
            assert atlas.area_at(index) is area


def test_derive_index_is_total_function():
    u0, o0, u1 = Area("u0", U), Area("o0", O), Area("u1", U)
    index = derive_index([o0, u0, u1])
    assert index.areas == (u0, u1, o0)
    assert index.index_by_id == {"u0": 0x00, "u1": 0x01, "o0": 0x20}
    assert index.by_index == {0x00: u0, 0x01: u1, 0x20: o0}
    assert index.counts == {U: 2, O: 1, G: 0, C: 0}
    with pytest.raises(DuplicateIdentityError):
        derive_index([u0, Area("u0", C)])


def test_area_identity_and_ordering():
    a = Area("same", U)
    b = Area("same", C)
    assert a == b
    assert hash(a) == hash(b)
    assert Area("x", U) < Area("y", O)
    assert not Area("x", O) < Area("y", O)
    with pytest.raises(InvalidFieldValueError):
        Area("")
    with pytest.raises(InvalidFieldValueError):
        Area("bad", 9)


def test_area_codec_round_trip():
    atlas = Atlas([Area("start", O), Area("bonus", G)])
    area = atlas.get("start")
    area.header = AreaHeader(ticks=300)
    area.geography = [Castle(x=0)]
    area.population = [
        Character(x=20, y=11, type=CharacterType.GOOMBA),
        ExitPointer(x=30, destination="bonus", start_page=0),
    ]

    geography = area.encode_geography()
    population = area.encode_population(atlas.resolve)
    assert geography == bytes.fromhex("90 21 0F 20 FD")
    assert population == bytes.fromhex("4B 86 EE 40 00 FF")

    decoded = Area.decode("copy", O, geography, population)
    assert decoded.header == area.header
    assert decoded.geography == area.geography
    assert decoded.population[0] == area.population[0]
    assert decoded.population[1].destination == area_name(0x40)


def test_area_name():
    assert area_name(0x00) == "Area_00"
    assert area_name(0x6A) == "Area_6A"


def test_scenario_lookup():
    scenario = Scenario([
        World([Level("Area_25"), Level("Area_29", 6)], hidden_1up_cost=21),
        World([Level("Area_60")]),
    ])
    assert scenario.level(1, 2) == Level("Area_29", 6)
    assert scenario.level(2, 1).area_id == "Area_60"
    assert [(w, n) for w, n, _ in scenario.iter_levels()] == [(1, 1), (1, 2), (2, 1)]
    with pytest.raises(InvalidFieldValueError):
        scenario.level(3, 1)
    with pytest.raises(InvalidFieldValueError):
        scenario.level(1, 3)


def test_level_start_area():
    atlas = Atlas([Area("Area_25", O)])
    assert Level("Area_25").start_area(atlas) is atlas.get("Area_25")
    with pytest.raises(UnknownIdentityError):
        Level("Area_26").start_area(atlas)


@pytest.mark.parametrize("checkpoint", [-1, 16])
def test_level_checkpoint_range(checkpoint):
    with pytest.raises(InvalidFieldValueError):
        Level("Area_25", checkpoint)


def test_world_cost_range():
    with pytest.raises(InvalidFieldValueError):
        World(hidden_1up_cost=256)
