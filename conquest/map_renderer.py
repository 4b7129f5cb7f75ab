from __future__ import annotations

import colorsys
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont
from scipy import ndimage as ndi

from .game import Game


NEUTRAL_COLOR = (200, 200, 200)
SELECTED_COLOR = (255, 255, 255)
BORDER_COLOR = (40, 36, 34)


def build_palette(count: int) -> List[Tuple[int, int, int]]:
    colors = []
    for i in range(count):
        hue = (i / max(count, 1)) % 1.0
        r, g, b = colorsys.hsv_to_rgb(hue, 0.5, 0.95)
        colors.append((int(r * 255), int(g * 255), int(b * 255)))
    return colors


def compute_borders(labels: np.ndarray) -> np.ndarray:
    border = np.zeros(labels.shape, dtype=bool)

    # horizontal diffs
    m = labels[:, :-1] != labels[:, 1:]
    border[:, :-1] |= m
    border[:, 1:] |= m

    # vertical diffs
    m = labels[:-1, :] != labels[1:, :]
    border[:-1, :] |= m
    border[1:, :] |= m

    return ndi.binary_closing(border, structure=ndi.generate_binary_structure(2, 2))


def render_game(
    game: Game,
    *,
    palette: Optional[List[Tuple[int, int, int]]] = None,
    show_armies: bool = True,
) -> Image.Image:
    """Colour each country by owner, draw borders and army counts."""
    labels = game.world.labels
    if labels is None:
        raise ValueError("World has no cell raster to render")
    if palette is None:
        palette = build_palette(len(game.players))
    color_by_player = {p.id: palette[idx % len(palette)] for idx, p in enumerate(game.players)}

    lut = np.zeros((len(game.world), 3), dtype=np.uint8)
    for country in game.world.countries:
        if country.id == game.selected_id:
            lut[country.id] = SELECTED_COLOR
        elif country.owner is None:
            lut[country.id] = NEUTRAL_COLOR
        else:
            lut[country.id] = color_by_player[country.owner]
    rgb = lut[labels]
    rgb[compute_borders(labels)] = BORDER_COLOR

    image = Image.fromarray(rgb)
    if show_armies:
        draw = ImageDraw.Draw(image)
        try:
            font = ImageFont.truetype("DejaVuSans.ttf", 12)
        except OSError:
            font = ImageFont.load_default()
        for country in game.world.countries:
            x, y = country.centroid
            draw.text((x - 4, y - 6), str(country.armies), fill=(0, 0, 0), font=font)
    return image


def save_game_png(game: Game, out_path: Path) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    render_game(game).save(out_path, optimize=True)
    return out_path
