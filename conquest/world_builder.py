from __future__ import annotations

import math
import random
from typing import Dict, List, Optional, Set, Tuple

import numpy as np
from scipy import ndimage as ndi

from .territory_graph import is_connected
from .world import Country, World, WorldGenerationError


COUNTRY_COUNT = 30
SEED_TRIES = 5
RELAX_ITERS = 4
REPAIR_PASSES = 4
WARP_STRENGTH = 0.18  # fraction of the mean cell spacing
MIN_CELL_AREA = 16
MIN_AREA_RATIO = 0.2  # smallest acceptable cell vs. the mean cell
BASE_CAPACITY = 4
MAX_CAPACITY = 10

STRUCT4 = ndi.generate_binary_structure(2, 1)


def _log(log_fn, msg: str) -> None:
    if log_fn is not None:
        log_fn(msg)


def _validate_dimensions(width, height, country_count: int) -> None:
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise WorldGenerationError(f"{name} must be an integer, got {value!r}")
        if value <= 0:
            raise WorldGenerationError(f"{name} must be positive, got {value}")
    if country_count < 2:
        raise WorldGenerationError(f"Need at least 2 countries, got {country_count}")
    if width * height < country_count * MIN_CELL_AREA:
        raise WorldGenerationError(
            f"A {width}x{height} area is too small for {country_count} countries"
        )


# ----------------------------
# Noise + seeds
# ----------------------------
def smooth_noise_field(shape: Tuple[int, int], rng: np.random.Generator, sigma: float) -> np.ndarray:
    """Smooth noise in [-1, 1], used to warp borders into more natural shapes."""
    noise = rng.normal(0.0, 1.0, size=shape).astype(np.float32)
    noise = ndi.gaussian_filter(noise, sigma=sigma)
    noise -= noise.min()
    noise /= (noise.max() + 1e-9)
    return noise * 2.0 - 1.0


def place_seeds(
    width: int,
    height: int,
    count: int,
    rng: random.Random,
    *,
    min_dist: float,
    tries: int = 20000,
) -> List[Tuple[float, float]]:
    """Rejection-sample distinct seed pixels, relaxing spacing when it gets too tight."""
    centers: List[Tuple[float, float]] = []
    taken: Set[Tuple[int, int]] = set()
    attempts = 0
    while len(centers) < count:
        x = rng.randrange(width)
        y = rng.randrange(height)
        if (x, y) in taken:
            continue
        if any((x - cx) ** 2 + (y - cy) ** 2 < min_dist ** 2 for cx, cy in centers):
            attempts += 1
            if attempts >= tries:
                # spacing too strict for what is left: halve it
                min_dist /= 2.0
                attempts = 0
            continue
        centers.append((float(x), float(y)))
        taken.add((x, y))
    return centers


# ----------------------------
# Labelling
# ----------------------------
def assign_labels(
    width: int,
    height: int,
    centers: List[Tuple[float, float]],
    *,
    warp: Optional[Tuple[np.ndarray, np.ndarray]] = None,
) -> np.ndarray:
    """
    label[p] = argmin_i dist(p + warp(p), seed_i)

    Without a warp this is a plain pixel Voronoi diagram. The warp displaces
    each pixel by a smooth offset before measuring, which bends the borders.
    """
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float32)
    if warp is not None:
        xs = xs + warp[0]
        ys = ys + warp[1]
    best_cost = np.full((height, width), np.inf, dtype=np.float32)
    best_idx = np.full((height, width), -1, dtype=np.int32)
    for i, (sx, sy) in enumerate(centers):
        cost = (xs - sx) ** 2 + (ys - sy) ** 2
        win = cost < best_cost
        best_cost[win] = cost[win]
        best_idx[win] = i
    return best_idx


def cell_centroids(labels: np.ndarray, count: int) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    ys, xs = np.indices(labels.shape)
    flat = labels.ravel()
    cnt = np.bincount(flat, minlength=count).astype(np.float64)
    sx = np.bincount(flat, weights=xs.ravel().astype(np.float64), minlength=count)
    sy = np.bincount(flat, weights=ys.ravel().astype(np.float64), minlength=count)
    safe = np.maximum(cnt, 1.0)
    return cnt, sx / safe, sy / safe


def lloyd_relax(
    width: int,
    height: int,
    centers: List[Tuple[float, float]],
    *,
    iters: int = RELAX_ITERS,
) -> List[Tuple[float, float]]:
    """Pixel-grid Lloyd relaxation: move each seed to the centroid of its cell."""
    centers = list(centers)
    for _ in range(iters):
        labels = assign_labels(width, height, centers)
        cnt, cx, cy = cell_centroids(labels, len(centers))
        for i in range(len(centers)):
            if cnt[i] < 1:
                continue
            centers[i] = (float(cx[i]), float(cy[i]))
    return centers


def repair_fragments(labels: np.ndarray, count: int, *, passes: int = REPAIR_PASSES) -> Optional[np.ndarray]:
    """
    Keep only the largest 4-connected piece of every cell and hand the stray
    pieces to the nearest surviving cell. Returns None if cells are still
    fragmented after `passes` rounds.
    """
    for _ in range(passes):
        orphan = np.zeros(labels.shape, dtype=bool)
        for i in range(count):
            mask = labels == i
            comp, n = ndi.label(mask, structure=STRUCT4)
            if n <= 1:
                continue
            sizes = np.bincount(comp.ravel())
            sizes[0] = 0
            orphan |= mask & (comp != int(np.argmax(sizes)))
        if not orphan.any():
            return labels
        labels = labels.copy()
        labels[orphan] = -1
        _, (iy, ix) = ndi.distance_transform_edt(labels < 0, return_indices=True)
        labels = labels[iy, ix]
    return None


# ----------------------------
# Borders + adjacency
# ----------------------------
def adjacency_from_labels(labels: np.ndarray, count: int) -> Dict[int, Set[int]]:
    adj: Dict[int, Set[int]] = {i: set() for i in range(count)}
    # right neighbours, then down neighbours
    for a, b in ((labels[:, :-1], labels[:, 1:]), (labels[:-1, :], labels[1:, :])):
        m = a != b
        if not m.any():
            continue
        pairs = np.unique(np.stack([a[m], b[m]], axis=1), axis=0)
        for i, j in pairs:
            adj[int(i)].add(int(j))
            adj[int(j)].add(int(i))
    return adj


def cell_boundary(labels: np.ndarray, idx: int) -> Tuple[Tuple[int, int], ...]:
    mask = labels == idx
    edge = mask & ~ndi.binary_erosion(mask, structure=STRUCT4, border_value=0)
    ys, xs = np.nonzero(edge)
    return tuple(zip(xs.tolist(), ys.tolist()))


def _score_labels(areas: np.ndarray) -> float:
    if areas.min() == 0:
        return float("inf")
    return float(areas.max() / areas.min())


def build_layout(
    width: int,
    height: int,
    count: int,
    *,
    seed_base: int,
    tries: int = SEED_TRIES,
    log_fn=None,
) -> np.ndarray:
    """Try several seedings and keep the most even valid partition."""
    spacing = math.sqrt(width * height / count)
    min_area = max(1, int(MIN_AREA_RATIO * width * height / count))
    best_score = float("inf")
    best_labels = None

    for idx in range(tries):
        seed = seed_base + idx * 97
        centers = place_seeds(width, height, count, random.Random(seed), min_dist=spacing * 0.6)
        centers = lloyd_relax(width, height, centers)

        np_rng = np.random.default_rng(seed + 13)
        sigma = max(1.0, spacing / 4.0)
        strength = WARP_STRENGTH * spacing
        warp = (
            strength * smooth_noise_field((height, width), np_rng, sigma),
            strength * smooth_noise_field((height, width), np_rng, sigma),
        )
        labels = assign_labels(width, height, centers, warp=warp)
        labels = repair_fragments(labels, count)
        if labels is None:
            _log(log_fn, f"Layout attempt {idx}: cells still fragmented, skipped")
            continue

        areas = np.bincount(labels.ravel(), minlength=count)
        if areas.min() < min_area:
            _log(log_fn, f"Layout attempt {idx}: smallest cell {int(areas.min())}px < {min_area}px, skipped")
            continue
        score = _score_labels(areas)
        _log(log_fn, f"Layout attempt {idx}: area ratio {score:.2f}")
        if score < best_score:
            best_score = score
            best_labels = labels

    if best_labels is None:
        raise WorldGenerationError(
            f"Failed to partition {width}x{height} into {count} countries after {tries} tries"
        )
    return best_labels


def build_world(
    width: int,
    height: int,
    *,
    seed: int | None = None,
    country_count: int = COUNTRY_COUNT,
    log_fn=None,
) -> World:
    """Partition a width x height rectangle into `country_count` adjacent countries."""
    _validate_dimensions(width, height, country_count)
    width = int(width)
    height = int(height)
    seed_base = seed if seed is not None else random.SystemRandom().randint(0, 2**31 - 1)

    labels = build_layout(width, height, country_count, seed_base=seed_base, log_fn=log_fn)
    adj = adjacency_from_labels(labels, country_count)

    isolated = sorted(i for i, neighbors in adj.items() if not neighbors)
    if isolated:
        raise WorldGenerationError(f"Countries without neighbours: {isolated}")
    if not is_connected(adj):
        raise WorldGenerationError("Country adjacency graph is not connected")

    areas, cx, cy = cell_centroids(labels, country_count)
    mean_area = float(width * height) / country_count
    countries = []
    for i in range(country_count):
        capacity = int(round(BASE_CAPACITY * areas[i] / mean_area))
        countries.append(
            Country(
                id=i,
                neighbors=frozenset(adj[i]),
                capacity=min(max(capacity, 1), MAX_CAPACITY),
                area=int(areas[i]),
                centroid=(float(cx[i]), float(cy[i])),
                cell=cell_boundary(labels, i),
            )
        )

    labels.setflags(write=False)
    _log(log_fn, f"Built {width}x{height} world with {country_count} countries (seed {seed_base})")
    return World(width=width, height=height, countries=tuple(countries), labels=labels)
