from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Mapping

# Ensure matplotlib uses a writable config dir
os.environ.setdefault("MPLCONFIGDIR", "/tmp/mpl")

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt


def render_game_metrics(
    *,
    output_path: Path,
    turns: List[int],
    player_names: Mapping[int, str],
    series: Dict[str, Dict[int, List[int]]],
) -> None:
    """Render territories and armies per player over the turns of one game."""
    metric_titles = [
        ("territories", "Countries Owned"),
        ("armies", "Armies (End of Turn)"),
    ]

    fig, axes = plt.subplots(len(metric_titles), 1, figsize=(10, 8), sharex=True)

    for idx, (key, title) in enumerate(metric_titles):
        ax = axes[idx]
        for player_id, name in player_names.items():
            ax.plot(turns, series[key][player_id], marker="o", markersize=3, label=name)
        ax.set_title(title)
        ax.grid(True, alpha=0.3)
        if idx == 0:
            ax.legend(loc="upper left", ncol=2, fontsize=8)

    axes[-1].set_xlabel("Turn")
    fig.tight_layout()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
