from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

from .world_builder import COUNTRY_COUNT


WIDTH = 600
HEIGHT = 600
PLAYERS = 5
HUMANS = 1
CLOCK_INTERVAL_MS = 250
SEED_ENV = "CONQUEST_SEED"


@dataclass(frozen=True)
class GameConfig:
    width: int = WIDTH
    height: int = HEIGHT
    players: int = PLAYERS
    humans: int = HUMANS
    country_count: int = COUNTRY_COUNT
    initial_armies: Optional[int] = None
    reinforcements: bool = False
    seed: Optional[int] = None
    clock_interval_ms: int = CLOCK_INTERVAL_MS
    name: str = "conquest"


def _log(log_fn, msg: str) -> None:
    if log_fn is not None:
        log_fn(msg)


def _seed_from_env() -> Optional[int]:
    raw = os.environ.get(SEED_ENV, "")
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{SEED_ENV} must be an integer, got {raw!r}")


def _load_json(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"Failed to read config from {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"Expected top-level object in {path}")
    return data


def load_config(path: str | Path | None = None, *, log_fn=None, **overrides: Any) -> GameConfig:
    """Defaults, then the JSON file, then the environment seed, then explicit overrides."""
    config = GameConfig()
    known = {f.name for f in fields(GameConfig)}

    if path is not None:
        data = _load_json(Path(path))
        values = {}
        for key, value in data.items():
            if key not in known:
                _log(log_fn, f"Config field {key} ignored (unknown)")
                continue
            values[key] = value
        config = replace(config, **values)

    if config.seed is None:
        config = replace(config, seed=_seed_from_env())

    config = replace(config, **{k: v for k, v in overrides.items() if v is not None})
    if config.players <= 0:
        raise ValueError(f"players must be positive, got {config.players}")
    if not 0 <= config.humans <= config.players:
        raise ValueError(f"humans must be between 0 and {config.players}, got {config.humans}")
    return config
