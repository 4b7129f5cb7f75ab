from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple

import numpy as np


Coord = Tuple[int, int]


class WorldGenerationError(RuntimeError):
    """Raised when a world cannot be partitioned into valid countries."""


@dataclass(frozen=True)
class Country:
    id: int
    neighbors: FrozenSet[int]
    owner: Optional[int] = None
    armies: int = 0
    capacity: int = 1
    area: int = 0
    centroid: Tuple[float, float] = (0.0, 0.0)
    cell: Tuple[Coord, ...] = field(default=(), repr=False)

    def is_neighbor(self, other: "Country | int") -> bool:
        other_id = other.id if isinstance(other, Country) else int(other)
        return other_id in self.neighbors


@dataclass(frozen=True)
class World:
    """Static map plus the current ownership/army snapshot of each country."""

    width: int
    height: int
    countries: Tuple[Country, ...]
    labels: Optional[np.ndarray] = field(default=None, compare=False, repr=False)

    def __len__(self) -> int:
        return len(self.countries)

    def __iter__(self):
        return iter(self.countries)

    def country(self, country: "Country | int") -> Country:
        country_id = country.id if isinstance(country, Country) else country
        if not isinstance(country_id, (int, np.integer)) or not (
            0 <= int(country_id) < len(self.countries)
        ):
            raise ValueError(f"Country {country_id!r} is not part of this world")
        return self.countries[int(country_id)]

    def neighbors(self, country: "Country | int") -> List[Country]:
        return [self.countries[n] for n in sorted(self.country(country).neighbors)]

    def owned_by(self, player_id: int) -> List[Country]:
        return [c for c in self.countries if c.owner == player_id]

    def owners(self) -> Set[int]:
        return {c.owner for c in self.countries if c.owner is not None}

    def total_armies(self) -> int:
        return sum(c.armies for c in self.countries)

    def graph(self) -> Dict[int, Set[int]]:
        return {c.id: set(c.neighbors) for c in self.countries}

    def is_connected(self) -> bool:
        from .territory_graph import is_connected

        return is_connected(self.graph())

    def with_countries(self, updates: Iterable[Country]) -> "World":
        """Return a copy with the given countries swapped in by id."""
        countries = list(self.countries)
        for country in updates:
            self.country(country.id)
            countries[country.id] = country
        return replace(self, countries=tuple(countries))

    def with_ownership(
        self,
        owners: Mapping[int, Optional[int]],
        armies: Mapping[int, int],
    ) -> "World":
        return self.with_countries(
            replace(
                c,
                owner=owners.get(c.id, c.owner),
                armies=int(armies.get(c.id, c.armies)),
            )
            for c in self.countries
        )


def world_from_graph(
    graph: Mapping[int, Iterable[int]],
    *,
    owners: Mapping[int, Optional[int]] | None = None,
    armies: Mapping[int, int] | None = None,
    capacities: Mapping[int, int] | None = None,
) -> World:
    """Build a geometry-free world from an adjacency mapping keyed 0..n-1."""
    ids = sorted(graph.keys())
    if ids != list(range(len(ids))):
        raise ValueError("Country ids must be contiguous integers starting at 0")
    symmetric: Dict[int, Set[int]] = {cid: set() for cid in ids}
    for cid, neighbors in graph.items():
        for neighbor in neighbors:
            if neighbor == cid:
                continue
            if neighbor not in symmetric:
                raise ValueError(f"Country {cid} lists unknown neighbor {neighbor}")
            symmetric[cid].add(neighbor)
            symmetric[neighbor].add(cid)
    owners = owners or {}
    armies = armies or {}
    capacities = capacities or {}
    countries = tuple(
        Country(
            id=cid,
            neighbors=frozenset(symmetric[cid]),
            owner=owners.get(cid),
            armies=int(armies.get(cid, 0)),
            capacity=int(capacities.get(cid, 1)),
        )
        for cid in ids
    )
    return World(width=0, height=0, countries=countries)
