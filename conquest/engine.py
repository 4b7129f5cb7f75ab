from __future__ import annotations

import datetime as dt
import os
import random
from typing import Any, Dict, List, Optional

from .ai import Move, MoveKind, apply_move, next_move
from .config import GameConfig
from .game import Game, MoveOutcome, create_game
from .player import Player, build_players
from .world_builder import build_world


RESTART_SEED_STRIDE = 1009
STALEMATE_ROUNDS = 3


class GameEngine:
    """Headless host that folds input events and clock ticks into a Game value.

    The engine owns the only mutable reference to the current game and the
    run log. Every change goes through `dispatch` (input events) or `tick`
    (one AI move), so the game itself stays an immutable value.
    """

    def __init__(
        self,
        config: GameConfig | None = None,
        *,
        run_label: str | None = None,
        log_dir: str = "logs",
        rng: random.Random | None = None,
    ) -> None:
        self.config = config or GameConfig()
        self.run_label = run_label or self.config.name
        self.log_dir = log_dir
        self._ensure_dirs()
        run_id = dt.datetime.now(dt.timezone.utc).strftime("%Y%m%d_%H%M%S")
        self.log_path = os.path.join(log_dir, f"{self.run_label}_{run_id}.log")
        self._log_fp = open(self.log_path, "w", encoding="utf-8")
        self.rng = rng or random.Random(self.config.seed)
        self.players = build_players(self.config.players, humans=self.config.humans)
        self.restarts = 0
        self.turn = 0
        self.metrics: Dict[str, Any] = {}
        self._reported_over = False
        self.idle_turns = 0
        self.game = self.build_game()

    def close(self) -> None:
        self._log_fp.close()

    def log(self, msg: str) -> None:
        self._log_fp.write(msg + "\n")
        self._log_fp.flush()

    def __enter__(self) -> "GameEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ----------------------------
    # Game lifecycle
    # ----------------------------
    def _game_seed(self) -> Optional[int]:
        if self.config.seed is None:
            return None
        return self.config.seed + self.restarts * RESTART_SEED_STRIDE

    def build_game(self) -> Game:
        seed = self._game_seed()
        self.log(f"Game {self.restarts} start (seed {seed})")
        world = build_world(
            self.config.width,
            self.config.height,
            seed=seed,
            country_count=self.config.country_count,
            log_fn=self.log,
        )
        game = create_game(
            self.players,
            world,
            seed=seed,
            initial_armies=self.config.initial_armies,
            reinforcements=self.config.reinforcements,
            log_fn=self.log,
        )
        self.turn = 0
        self._reported_over = False
        self.idle_turns = 0
        self.metrics = {
            "turns": [],
            "territories": {p.id: [] for p in self.players},
            "armies": {p.id: [] for p in self.players},
        }
        self._record_metrics(game)
        return game

    def _record_metrics(self, game: Game) -> None:
        self.metrics["turns"].append(self.turn)
        for player in self.players:
            owned = game.world.owned_by(player.id)
            self.metrics["territories"][player.id].append(len(owned))
            self.metrics["armies"][player.id].append(sum(c.armies for c in owned))

    def _report_game_over(self) -> None:
        if self.game.over and not self._reported_over:
            self._reported_over = True
            self._record_metrics(self.game)
            winner = self.game.winner
            if self.game.win:
                self.log(f"Game over: {winner.name} wins")
            elif self.game.lose:
                self.log("Game over: every human player has been eliminated")
            elif winner is not None:
                self.log(f"Game over: {winner.name} wins")
            else:
                self.log("Game over")

    # ----------------------------
    # Event reducer
    # ----------------------------
    def dispatch(self, event: Any) -> MoveOutcome:
        """Apply one input event: pause, restart, end-turn or select-country."""
        outcome = MoveOutcome.NONE

        if event == "pause":
            self.game = self.game.toggle_pause()
            self.log(f"{'Paused' if self.game.paused else 'Resumed'}")
        elif event == "restart":
            self.restarts += 1
            self.game = self.build_game()
        elif event == "end-turn":
            self._end_turn()
        else:
            country_id = self._select_country_id(event)
            player = self.game.current_player
            self.game, outcome = self.game.select_country(country_id)
            self._note_outcome(outcome)
            if outcome is not MoveOutcome.NONE:
                self.log(f"Turn {self.turn}: {player.name} {outcome.value} country {country_id}")

        self._report_game_over()
        return outcome

    def _select_country_id(self, event: Any) -> int:
        if isinstance(event, dict) and event.get("type") == "select-country":
            return event["country"]
        if isinstance(event, (tuple, list)) and len(event) == 2 and event[0] == "select-country":
            return event[1]
        raise ValueError(f"Unknown event {event!r}")

    def _end_turn(self) -> None:
        game = self.game.end_turn()
        if game is self.game:
            return
        player = self.game.current_player
        self.game = game
        self.turn += 1
        self.idle_turns += 1
        self._record_metrics(game)
        self.log(f"Turn {self.turn}: {player.name} ended turn, {game.current_player.name} to move")

    def _note_outcome(self, outcome: MoveOutcome) -> None:
        if outcome in (MoveOutcome.MOVE, MoveOutcome.ATTACK_WIN, MoveOutcome.ATTACK_LOSE):
            self.idle_turns = 0

    @property
    def stalemate(self) -> bool:
        """True once every active player has passed STALEMATE_ROUNDS times without moving."""
        if self.game.over:
            return False
        return self.idle_turns >= STALEMATE_ROUNDS * len(self.game.active_players)

    # ----------------------------
    # Clock
    # ----------------------------
    def tick(self) -> Optional[Move]:
        """Play one AI move if it is an AI's turn and the game is running."""
        game = self.game
        if game.over or game.paused or game.current_player.human:
            return None

        player = game.current_player
        move = next(next_move(player, game, rng=self.rng))
        if move.kind is MoveKind.END_TURN:
            self._end_turn()
        else:
            self.game, outcome = apply_move(game, move)
            self._note_outcome(outcome)
            self.log(f"Turn {self.turn}: {player.name} {outcome.value} country {move.country_id}")
        self._report_game_over()
        return move

    def run(self, *, max_ticks: int = 10000) -> Optional[Player]:
        """Tick until the game is over; stops early on a human turn or a stalemate."""
        for _ in range(max_ticks):
            if self.game.over:
                break
            if self.stalemate:
                self.log(f"Stalemate at turn {self.turn}: no player can win an attack")
                break
            if self.tick() is None:
                self.log(f"Run halted at turn {self.turn}: waiting for {self.game.current_player.name}")
                break
        else:
            self.log(f"Run stopped after {max_ticks} ticks")
        return self.game.winner if self.game.over else None

    def standings(self) -> List[tuple[str, int, int]]:
        rows = []
        for player in self.players:
            owned = self.game.world.owned_by(player.id)
            rows.append((player.name, len(owned), sum(c.armies for c in owned)))
        return sorted(rows, key=lambda r: (-r[1], -r[2], r[0]))

    def _ensure_dirs(self) -> None:
        os.makedirs(self.log_dir, exist_ok=True)
