from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .distributor import distribute
from .player import Player
from .territory_graph import assign_countries_round_robin
from .world import Country, World


INITIAL_ARMIES_PER_COUNTRY = 3


class MoveOutcome(str, Enum):
    NONE = "none"
    SELECT = "select"
    DESELECT = "deselect"
    MOVE = "move"
    ATTACK_WIN = "attack-win"
    ATTACK_LOSE = "attack-lose"


def _log(log_fn, msg: str) -> None:
    if log_fn is not None:
        log_fn(msg)


def resolve_attack(
    source_armies: int,
    target_armies: int,
    *,
    target_owned: bool = True,
) -> Tuple[int, int, MoveOutcome]:
    """Resolve a move from a selected country into a neighbour.

    All but one army leave the source. Both sides lose min(attackers,
    defenders) units; the target changes hands only if attackers remain.
    Returns (source_after, target_after, outcome).
    """
    if source_armies < 0 or target_armies < 0:
        raise ValueError("Army counts must be non-negative")
    attackers = max(source_armies - 1, 0)
    source_after = source_armies - attackers
    if attackers > target_armies:
        outcome = MoveOutcome.ATTACK_WIN if target_owned else MoveOutcome.MOVE
        return source_after, attackers - target_armies, outcome
    return source_after, target_armies - attackers, MoveOutcome.ATTACK_LOSE


@dataclass(frozen=True)
class Game:
    world: World
    players: Tuple[Player, ...]
    current_index: int = 0
    selected_id: Optional[int] = None
    paused: bool = False
    reinforcements: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "players", tuple(self.players))
        if not self.players:
            raise ValueError("A game needs at least one player")
        if len({p.id for p in self.players}) != len(self.players):
            raise ValueError("Player ids must be unique")
        if not 0 <= self.current_index < len(self.players):
            raise ValueError(f"current_index {self.current_index} is out of range")
        if self.selected_id is not None:
            selected = self.world.country(self.selected_id)
            if selected.owner != self.current_player.id:
                raise ValueError(
                    f"Country {selected.id} is not owned by {self.current_player.name}"
                )

    # ----------------------------
    # Queries
    # ----------------------------
    @property
    def current_player(self) -> Player:
        return self.players[self.current_index]

    @property
    def selected_country(self) -> Optional[Country]:
        if self.selected_id is None:
            return None
        return self.world.country(self.selected_id)

    def country(self, country: "Country | int") -> Country:
        return self.world.country(country)

    @property
    def active_players(self) -> List[Player]:
        owners = self.world.owners()
        return [p for p in self.players if p.id in owners]

    def is_eliminated(self, player: Player) -> bool:
        return not self.world.owned_by(player.id)

    @property
    def over(self) -> bool:
        active = self.active_players
        if len(active) <= 1:
            return True
        has_humans = any(p.human for p in self.players)
        return has_humans and not any(p.human for p in active)

    @property
    def win(self) -> bool:
        active = self.active_players
        return len(active) == 1 and active[0].human

    @property
    def lose(self) -> bool:
        has_humans = any(p.human for p in self.players)
        return has_humans and not any(p.human for p in self.active_players)

    @property
    def winner(self) -> Optional[Player]:
        active = self.active_players
        return active[0] if len(active) == 1 else None

    def can_select_country(self, country: "Country | int") -> bool:
        country = self.world.country(country)
        if self.over or self.paused:
            return False
        return country.owner == self.current_player.id

    def can_move_to_country(self, country: "Country | int") -> bool:
        country = self.world.country(country)
        if self.over or self.paused or self.selected_id is None:
            return False
        selected = self.world.country(self.selected_id)
        return country.id in selected.neighbors and country.owner != self.current_player.id

    def targets_from(self, country: "Country | int") -> List[Country]:
        """Neighbours of `country` not owned by its owner."""
        country = self.world.country(country)
        return [n for n in self.world.neighbors(country) if n.owner != country.owner]

    # ----------------------------
    # Transitions
    # ----------------------------
    def select_country(self, country: "Country | int") -> Tuple["Game", MoveOutcome]:
        country = self.world.country(country)
        if self.over or self.paused:
            return self, MoveOutcome.NONE

        if self.selected_id is None:
            if self.can_select_country(country):
                return replace(self, selected_id=country.id), MoveOutcome.SELECT
            return self, MoveOutcome.NONE

        if country.id == self.selected_id:
            return replace(self, selected_id=None), MoveOutcome.DESELECT
        if self.can_move_to_country(country):
            return self._move_to(country)
        if self.can_select_country(country):
            return replace(self, selected_id=country.id), MoveOutcome.SELECT
        return self, MoveOutcome.NONE

    def _move_to(self, target: Country) -> Tuple["Game", MoveOutcome]:
        source = self.world.country(self.selected_id)
        source_after, target_after, outcome = resolve_attack(
            source.armies,
            target.armies,
            target_owned=target.owner is not None,
        )
        owner = target.owner
        if outcome in (MoveOutcome.MOVE, MoveOutcome.ATTACK_WIN):
            owner = self.current_player.id
        world = self.world.with_countries(
            [
                replace(source, armies=source_after),
                replace(target, owner=owner, armies=target_after),
            ]
        )
        return replace(self, world=world, selected_id=None), outcome

    def end_turn(self) -> "Game":
        if self.over:
            return self
        owners = self.world.owners()
        count = len(self.players)
        for step in range(1, count + 1):
            idx = (self.current_index + step) % count
            if self.players[idx].id in owners:
                game = replace(self, current_index=idx, selected_id=None)
                return game._reinforce() if self.reinforcements else game
        return replace(self, selected_id=None)

    def _reinforce(self) -> "Game":
        """Grant the current player one army per owned country, up to capacity."""
        owned = [c for c in self.world.owned_by(self.current_player.id) if c.armies < c.capacity]
        if not owned:
            return self
        allocation = distribute(
            len(self.world.owned_by(self.current_player.id)),
            [c.capacity - c.armies for c in owned],
        )
        world = self.world.with_countries(
            replace(c, armies=c.armies + extra) for c, extra in zip(owned, allocation) if extra
        )
        return replace(self, world=world)

    def toggle_pause(self) -> "Game":
        return replace(self, paused=not self.paused)


def create_game(
    players: Sequence[Player],
    world: World,
    *,
    seed: int | None = None,
    initial_armies: int | None = None,
    reinforcements: bool = False,
    log_fn=None,
) -> Game:
    """Deal every country to a player and seed armies proportional to capacity."""
    players = tuple(players)
    if not players:
        raise ValueError("A game needs at least one player")
    if len(players) > len(world):
        raise ValueError(f"{len(players)} players cannot share {len(world)} countries")
    if initial_armies is None:
        initial_armies = INITIAL_ARMIES_PER_COUNTRY * len(world) // len(players)
    if initial_armies < 0:
        raise ValueError(f"initial_armies must be non-negative, got {initial_armies}")

    positions = {c.id: c.centroid for c in world.countries}
    assigned = assign_countries_round_robin(
        [p.id for p in players],
        world.graph(),
        positions,
        seed=seed,
    )

    owners: Dict[int, Optional[int]] = {}
    armies: Dict[int, int] = {}
    for player in players:
        country_ids = sorted(assigned[player.id])
        weights = [world.country(cid).capacity for cid in country_ids]
        allocation = distribute(initial_armies, weights)
        for cid, count in zip(country_ids, allocation):
            owners[cid] = player.id
            armies[cid] = count
        _log(
            log_fn,
            f"{player.name}: {len(country_ids)} countries, {sum(allocation)} armies",
        )

    return Game(
        world=world.with_ownership(owners, armies),
        players=players,
        reinforcements=reinforcements,
    )
