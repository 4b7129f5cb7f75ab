from __future__ import annotations

import argparse
import sys
from pathlib import Path

from conquest.config import load_config
from conquest.engine import GameEngine
from conquest.world import WorldGenerationError


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play a headless all-AI conquest game")
    parser.add_argument("config", nargs="?", default=None, help="Path to game config JSON")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--players", type=int, default=None)
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--countries", type=int, default=None, help="Number of countries to generate")
    parser.add_argument("--reinforce", action="store_true", help="Grant reinforcements at turn start")
    parser.add_argument("--max-ticks", type=int, default=20000)
    parser.add_argument("--show", action="store_true", help="Render final map and metrics PNGs")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    try:
        config = load_config(
            args.config,
            seed=args.seed,
            players=args.players,
            width=args.width,
            height=args.height,
            country_count=args.countries,
            reinforcements=True if args.reinforce else None,
            humans=0,
        )
    except ValueError as exc:
        print(f"Invalid configuration: {exc}")
        return 2

    try:
        engine = GameEngine(config, run_label=config.name)
    except WorldGenerationError as exc:
        print(f"World generation failed: {exc}")
        return 1

    with engine:
        winner = engine.run(max_ticks=args.max_ticks)
        if winner is not None:
            print(f"{winner.name} wins after {engine.turn} turns")
        elif engine.stalemate:
            print(f"Stalemate after {engine.turn} turns")
        else:
            print(f"No winner after {engine.turn} turns")
        for name, countries, armies in engine.standings():
            print(f"  {name}: {countries} countries, {armies} armies")

        if args.show:
            from conquest.map_renderer import save_game_png
            from conquest.visualizations import render_game_metrics

            out_dir = Path("visualizations")
            map_path = save_game_png(engine.game, out_dir / f"{engine.run_label}_map.png")
            chart_path = out_dir / f"{engine.run_label}_metrics.png"
            render_game_metrics(
                output_path=chart_path,
                turns=engine.metrics["turns"],
                player_names={p.id: p.name for p in engine.players},
                series=engine.metrics,
            )
            print(f"Saved {map_path} and {chart_path}")
        print(f"Log: {engine.log_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
