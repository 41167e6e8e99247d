"""Areas, the Atlas that indexes them, and the world/level scenario.

Every area gets an index ``(environment << 5) | subindex`` where the
subindex counts earlier areas of the same environment. Level selectors and
exit pointers refer to areas by this index, so it has to follow the order
areas were added in, category by category.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from operator import attrgetter
from typing import Iterable, Iterator, Optional, Union

from smb_levels.actors import GeographyActor, PopulationActor
from smb_levels.bytecode import (
    AreaIndexResolver,
    area_name,
    decode_geography,
    decode_population,
    encode_geography,
    encode_population,
)
from smb_levels.errors import (
    DuplicateIdentityError,
    InvalidFieldValueError,
    UnknownIdentityError,
)
from smb_levels.header import AreaHeader

__all__ = [
    "Area",
    "Atlas",
    "AtlasIndex",
    "Environment",
    "Level",
    "Scenario",
    "World",
    "area_name",
    "derive_index",
]


MAX_AREAS_PER_ENVIRONMENT = 32


class Environment(IntEnum):
    UNDERWATER = 0
    OVERWORLD = 1
    UNDERGROUND = 2
    CASTLE = 3


# ─── Area ────────────────────────────────────────────────────────────────────

class Area:
    """One playable area: header, geography and population.

    ``identity`` never changes once set. Two areas are equal when their
    identities are; they sort by environment only. Move an area that is in
    an Atlas to another environment with ``Atlas.set_environment``.
    """

    def __init__(self, identity: str, environment: Environment = Environment.OVERWORLD,
                 header: Optional[AreaHeader] = None,
                 geography: Optional[list[GeographyActor]] = None,
                 population: Optional[list[PopulationActor]] = None,
                 familiar_name: Optional[str] = None):
        if not identity:
            raise InvalidFieldValueError("Area identity must be a non-empty string", "identity")
        self._identity = identity
        try:
            self._environment = Environment(environment)
        except ValueError:
            raise InvalidFieldValueError(
                f"{environment!r} is not an environment", "environment") from None
        self.header = header if header is not None else AreaHeader()
        self.geography: list[GeographyActor] = list(geography or [])
        self.population: list[PopulationActor] = list(population or [])
        self.familiar_name = familiar_name

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def environment(self) -> Environment:
        return self._environment

    def __eq__(self, other):
        if not isinstance(other, Area):
            return NotImplemented
        return self._identity == other._identity

    def __hash__(self):
        return hash(self._identity)

    def __lt__(self, other):
        if not isinstance(other, Area):
            return NotImplemented
        return self._environment < other._environment

    def __repr__(self):
        return f"Area({self._identity!r}, {self._environment.name})"

    @classmethod
    def decode(cls, identity: str, environment: Environment, geography: bytes,
               population: bytes, allow_internal: bool = False,
               familiar_name: Optional[str] = None) -> Area:
        header, geography_actors = decode_geography(geography, allow_internal)
        population_actors = decode_population(population, allow_internal)
        return cls(identity, environment, header, geography_actors,
                   population_actors, familiar_name)

    def encode_geography(self) -> bytes:
        return encode_geography(self.header, self.geography)

    def encode_population(self, resolver: Optional[AreaIndexResolver] = None) -> bytes:
        return encode_population(self.population, resolver)


# ─── Atlas ───────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AtlasIndex:
    """Everything derivable from an Atlas's list of areas."""
    areas: tuple[Area, ...] = ()
    by_id: dict[str, Area] = field(default_factory=dict)
    index_by_id: dict[str, int] = field(default_factory=dict)
    by_index: dict[int, Area] = field(default_factory=dict)
    counts: dict[Environment, int] = field(default_factory=dict)


def derive_index(areas: Iterable[Area]) -> AtlasIndex:
    """Sort ``areas`` by environment and compute every lookup table from scratch.

    The sort is stable, so areas of one environment keep their relative
    order and take ascending subindexes in that order.
    """
    ordered = tuple(sorted(areas, key=attrgetter("environment")))

    by_id: dict[str, Area] = {}
    for area in ordered:
        if area.identity in by_id:
            raise DuplicateIdentityError(area.identity)
        by_id[area.identity] = area

    counts = {env: 0 for env in Environment}
    index_by_id: dict[str, int] = {}
    by_index: dict[int, Area] = {}
    for area in ordered:
        subindex = counts[area.environment]
        if subindex >= MAX_AREAS_PER_ENVIRONMENT:
            raise InvalidFieldValueError(
                f"More than {MAX_AREAS_PER_ENVIRONMENT} {area.environment.name} areas",
                "environment")
        index = (area.environment << 5) | subindex
        index_by_id[area.identity] = index
        by_index[index] = area
        counts[area.environment] = subindex + 1

    return AtlasIndex(ordered, by_id, index_by_id, by_index, counts)


class Atlas:
    """All areas of a game, kept sorted by environment and indexed."""

    def __init__(self, areas: Iterable[Area] = ()):
        self._index = derive_index(())
        self.add_all(areas)

    def _rebuild(self, areas: Iterable[Area]):
        # derive_index raises before anything is replaced
        self._index = derive_index(areas)

    # ── Mutation ──

    def add(self, area: Area):
        if area.identity in self._index.by_id:
            raise DuplicateIdentityError(area.identity)
        self._rebuild(self._index.areas + (area,))

    def add_all(self, areas: Iterable[Area]):
        """Add several areas at once; any duplicate rejects the whole batch."""
        batch = list(areas)
        seen = set(self._index.by_id)
        for area in batch:
            if area.identity in seen:
                raise DuplicateIdentityError(area.identity)
            seen.add(area.identity)
        self._rebuild(self._index.areas + tuple(batch))

    def remove(self, area: Union[Area, str]):
        identity = area if isinstance(area, str) else area.identity
        if identity not in self._index.by_id:
            raise UnknownIdentityError(identity)
        self._rebuild(a for a in self._index.areas if a.identity != identity)

    def set_environment(self, area: Union[Area, str], environment: Environment):
        """Move an area to another environment and re-derive every index.

        The moved area takes the next subindex of its new environment, as if
        it had been removed and added again. Areas it leaves behind close up.
        """
        target = self.get(area if isinstance(area, str) else area.identity)
        try:
            environment = Environment(environment)
        except ValueError:
            raise InvalidFieldValueError(
                f"{environment!r} is not an environment", "environment") from None
        previous = target._environment
        target._environment = environment
        try:
            self._rebuild(tuple(a for a in self._index.areas if a is not target) + (target,))
        except InvalidFieldValueError:
            target._environment = previous
            raise

    # ── Queries ──

    def get(self, identity: str) -> Area:
        try:
            return self._index.by_id[identity]
        except KeyError:
            raise UnknownIdentityError(identity) from None

    def index_of(self, area: Union[Area, str]) -> int:
        identity = area if isinstance(area, str) else area.identity
        try:
            return self._index.index_by_id[identity]
        except KeyError:
            raise UnknownIdentityError(identity) from None

    def resolve(self, identity: str) -> int:
        """Area index for an identity; the resolver used by population encoding."""
        return self.index_of(identity)

    def area_at(self, index: int) -> Area:
        try:
            return self._index.by_index[index]
        except KeyError:
            raise InvalidFieldValueError(f"No area at index {index:#04x}", "index") from None

    @property
    def areas(self) -> tuple[Area, ...]:
        return self._index.areas

    @property
    def counts(self) -> dict[Environment, int]:
        return dict(self._index.counts)

    @property
    def index(self) -> AtlasIndex:
        return self._index

    def check_consistency(self) -> bool:
        """True when the stored tables match a fresh derivation."""
        return derive_index(self._index.areas) == self._index

    def __len__(self):
        return len(self._index.areas)

    def __iter__(self) -> Iterator[Area]:
        return iter(self._index.areas)

    def __contains__(self, item):
        identity = item if isinstance(item, str) else getattr(item, "identity", None)
        return identity in self._index.by_id


# ─── Scenario ────────────────────────────────────────────────────────────────

@dataclass
class Level:
    """A level starts in ``area_id`` and resumes at page ``checkpoint``."""
    area_id: str
    checkpoint: int = 0

    def __post_init__(self):
        if not 0 <= self.checkpoint <= 0xF:
            raise InvalidFieldValueError(
                f"Checkpoint page must be in 0..15, got {self.checkpoint!r}", "checkpoint")

    def start_area(self, atlas: Atlas) -> Area:
        return atlas.get(self.area_id)


@dataclass
class World:
    levels: list[Level] = field(default_factory=list)
    hidden_1up_cost: int = 0

    def __post_init__(self):
        if not 0 <= self.hidden_1up_cost <= 0xFF:
            raise InvalidFieldValueError(
                f"Hidden 1-up cost must fit in a byte, got {self.hidden_1up_cost!r}",
                "hidden_1up_cost")


@dataclass
class Scenario:
    worlds: list[World] = field(default_factory=list)

    def level(self, world: int, number: int) -> Level:
        """Look up a level by 1-based world and level numbers, as in "1-1"."""
        if not 1 <= world <= len(self.worlds):
            raise InvalidFieldValueError(f"No world {world}", "world")
        levels = self.worlds[world - 1].levels
        if not 1 <= number <= len(levels):
            raise InvalidFieldValueError(f"No level {world}-{number}", "level")
        return levels[number - 1]

    def iter_levels(self) -> Iterator[tuple[int, int, Level]]:
        for w, world in enumerate(self.worlds, start=1):
            for n, level in enumerate(world.levels, start=1):
                yield w, n, level
