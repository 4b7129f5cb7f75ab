from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple

from .game import Game, MoveOutcome
from .player import Player
from .world import Country


class MoveKind(str, Enum):
    SELECT = "select"
    MOVE_TO = "move-to"
    END_TURN = "end-turn"


@dataclass(frozen=True)
class Move:
    kind: MoveKind
    country_id: Optional[int] = None

    @classmethod
    def select(cls, country: "Country | int") -> "Move":
        return cls(MoveKind.SELECT, country.id if isinstance(country, Country) else int(country))

    @classmethod
    def move_to(cls, country: "Country | int") -> "Move":
        return cls(MoveKind.MOVE_TO, country.id if isinstance(country, Country) else int(country))

    @classmethod
    def end_turn(cls) -> "Move":
        return cls(MoveKind.END_TURN)


def _attackers(country: Country) -> int:
    return max(country.armies - 1, 0)


def winnable_targets(game: Game, country: Country) -> List[Country]:
    """Neighbours the country would take if it attacked now."""
    return [t for t in game.targets_from(country) if _attackers(country) > t.armies]


def _pick(candidates: List[Country], key, rng) -> Country:
    best_value = max(key(c) for c in candidates)
    tied = [c for c in candidates if key(c) == best_value]
    return tied[0] if len(tied) == 1 else rng.choice(tied)


def choose_move(player: Player, game: Game, *, rng=None) -> Move:
    """
    Greedy heuristic: from the strongest owned country that can win a fight,
    attack its weakest beatable neighbour. End the turn when no attack wins.
    Only winning attacks are made, so every attack adds a country and a turn
    ends after at most one attack per country in the world.
    """
    rng = rng or random
    if game.over or game.paused:
        return Move.end_turn()

    selected = game.selected_country
    if selected is not None:
        targets = winnable_targets(game, selected)
        if targets:
            return Move.move_to(_pick(targets, lambda c: -c.armies, rng))
        return Move.select(selected)

    sources = [c for c in game.world.owned_by(player.id) if winnable_targets(game, c)]
    if not sources:
        return Move.end_turn()
    return Move.select(_pick(sources, lambda c: c.armies, rng))


def next_move(player: Player, game: Game, *, rng=None) -> Iterator[Move]:
    """Lazily compute the next move for `player`; yields exactly one Move."""
    if player != game.current_player:
        raise ValueError(f"{player.name} is not the current player")

    def _moves() -> Iterator[Move]:
        yield choose_move(player, game, rng=rng)

    return _moves()


def apply_move(game: Game, move: Move) -> Tuple[Game, MoveOutcome]:
    """Feed a Move back into the game state machine."""
    if move.kind is MoveKind.END_TURN:
        return game.end_turn(), MoveOutcome.NONE
    return game.select_country(move.country_id)
