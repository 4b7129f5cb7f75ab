from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Player:
    id: int
    human: bool = False

    @property
    def name(self) -> str:
        return f"Player{self.id}" if not self.human else f"Player{self.id} (human)"


def build_players(count: int, *, humans: int = 1) -> Tuple[Player, ...]:
    """Players 0..count-1; the first `humans` of them are human."""
    if count <= 0:
        raise ValueError(f"Need at least one player, got {count}")
    if not 0 <= humans <= count:
        raise ValueError(f"humans must be between 0 and {count}, got {humans}")
    return tuple(Player(idx, idx < humans) for idx in range(count))
