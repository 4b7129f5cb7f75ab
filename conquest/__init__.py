"""Conquest: territory-conquest game core (world generation, turns, AI)."""

from .ai import Move, MoveKind, apply_move, choose_move, next_move
from .config import GameConfig, load_config
from .distributor import distribute
from .game import Game, MoveOutcome, create_game, resolve_attack
from .player import Player, build_players
from .world import Country, World, WorldGenerationError, world_from_graph
from .world_builder import build_world

__all__ = [
    "Country",
    "Game",
    "GameConfig",
    "GameEngine",
    "Move",
    "MoveKind",
    "MoveOutcome",
    "Player",
    "World",
    "WorldGenerationError",
    "apply_move",
    "build_players",
    "build_world",
    "choose_move",
    "create_game",
    "distribute",
    "load_config",
    "next_move",
    "resolve_attack",
    "world_from_graph",
]


def __getattr__(name: str):
    if name == "GameEngine":
        from .engine import GameEngine

        return GameEngine
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
