from __future__ import annotations

import random
from typing import Dict, List, Mapping, Set, Tuple


Point = Tuple[float, float]


def is_connected(graph: Mapping[int, Set[int]]) -> bool:
    if not graph:
        return True
    start = next(iter(graph))
    seen = {start}
    stack = [start]
    while stack:
        node = stack.pop()
        for neighbor in graph[node]:
            if neighbor not in seen:
                seen.add(neighbor)
                stack.append(neighbor)
    return len(seen) == len(graph)


def _distance_sq(a: Point, b: Point) -> float:
    return (a[0] - b[0]) ** 2 + (a[1] - b[1]) ** 2


def _graph_distances(graph: Mapping[int, Set[int]], start: int) -> Dict[int, int]:
    dist = {start: 0}
    frontier = [start]
    while frontier:
        nxt: List[int] = []
        for node in frontier:
            for neighbor in graph[node]:
                if neighbor not in dist:
                    dist[neighbor] = dist[node] + 1
                    nxt.append(neighbor)
        frontier = nxt
    return dist


def assign_countries_round_robin(
    player_ids: List[int],
    graph: Mapping[int, Set[int]],
    positions: Mapping[int, Point] | None = None,
    *,
    seed: int | None = None,
) -> Dict[int, Set[int]]:
    """Assign countries by farthest-first seeds, then round-robin adjacency growth.

    Seeds are spread by hop distance in the graph, with the centroid distance
    as a tie-break when positions are known. Growth prefers countries that
    open more future options. Anything the growth phase cannot reach (only
    possible on a disconnected graph) is dealt round-robin afterwards.
    """
    rng = random.Random(seed)
    countries = sorted(graph.keys())
    if not countries or not player_ids:
        return {player: set() for player in player_ids}

    unassigned = set(countries)
    assigned: Dict[int, Set[int]] = {player: set() for player in player_ids}
    hops = {cid: _graph_distances(graph, cid) for cid in countries}

    def _spread(candidate: int, seeds: List[int]) -> Tuple[int, float]:
        hop = min(hops[s].get(candidate, len(countries)) for s in seeds)
        if positions is None:
            return hop, 0.0
        return hop, min(_distance_sq(positions[candidate], positions[s]) for s in seeds)

    seeds: List[int] = [rng.choice(countries)]
    unassigned.remove(seeds[0])
    for _ in range(1, min(len(player_ids), len(countries))):
        best = max(sorted(unassigned), key=lambda c: _spread(c, seeds))
        seeds.append(best)
        unassigned.remove(best)

    for player, country in zip(player_ids, seeds):
        assigned[player].add(country)

    stalled = 0
    idx = 0
    while unassigned and stalled < len(player_ids):
        player = player_ids[idx % len(player_ids)]
        idx += 1

        frontier: Set[int] = set()
        for country in assigned[player]:
            frontier |= graph.get(country, set())
        frontier &= unassigned

        if not frontier:
            stalled += 1
            continue

        stalled = 0
        best = None
        best_score = -1
        for country in sorted(frontier):
            score = len(graph.get(country, set()) & unassigned)
            if score > best_score:
                best_score = score
                best = country
        assigned[player].add(best)
        unassigned.remove(best)

    for offset, country in enumerate(sorted(unassigned)):
        assigned[player_ids[offset % len(player_ids)]].add(country)

    return assigned
