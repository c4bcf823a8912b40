"""Centrally symmetric terrain generation with density balancing."""

from __future__ import annotations

import logging
import random
from collections import Counter
from typing import Dict, List, Optional

import constants
from core.board import Board

logger = logging.getLogger(__name__)

TerrainGrid = List[List[str]]


def sample_terrain(rng: random.Random, weights: Optional[Dict[str, float]] = None) -> str:
    """Draw one terrain from ``weights`` (defaults to ``TERRAIN_WEIGHTS``)."""
    weights = weights or constants.TERRAIN_WEIGHTS
    entries = list(weights.items())
    total = sum(w for _, w in entries)
    r = rng.random() * total
    for terrain, weight in entries:
        if r < weight:
            return terrain
        r -= weight
    return entries[0][0]


def impose_symmetry(grid: TerrainGrid) -> None:
    """Copy the top half onto the bottom half through the board centre.

    Cell ``(x, y)`` is mirrored to ``(N-1-x, N-1-y)``.  On odd boards the
    centre row is mirrored left onto right, which keeps it centrally
    symmetric as well.
    """

    size = len(grid)
    half = size // 2
    for y in range(half):
        my = size - 1 - y
        for x in range(size):
            grid[my][size - 1 - x] = grid[y][x]
    if size % 2 == 1:
        y = half
        for x in range(half):
            grid[y][size - 1 - x] = grid[y][x]


def _seed_grid(size: int, rng: random.Random) -> TerrainGrid:
    grid = [[constants.PLAIN] * size for _ in range(size)]
    half = size // 2
    for y in range(half):
        for x in range(size):
            if rng.random() < constants.TERRAIN_FILL_CHANCE:
                grid[y][x] = sample_terrain(rng)
    if size % 2 == 1:
        y = half
        for x in range(half + 1):
            if rng.random() < constants.CENTER_ROW_FILL_CHANCE:
                grid[y][x] = sample_terrain(rng)
    impose_symmetry(grid)
    return grid


def smooth(grid: TerrainGrid, rng: random.Random) -> TerrainGrid:
    """Return one smoothing pass of ``grid``.

    Each cell takes the majority terrain of its 3x3 neighbourhood read from
    the unmodified input, except for a small chance of resampling.  Ties go
    to the terrain seen first in row-major order.
    """

    size = len(grid)
    out = [row[:] for row in grid]
    for y in range(size):
        for x in range(size):
            counts: Counter[str] = Counter()
            for yy in range(max(0, y - 1), min(size - 1, y + 1) + 1):
                for xx in range(max(0, x - 1), min(size - 1, x + 1) + 1):
                    counts[grid[yy][xx]] += 1
            if rng.random() < constants.SMOOTHING_RESAMPLE_CHANCE:
                out[y][x] = sample_terrain(rng)
            else:
                out[y][x] = counts.most_common(1)[0][0]
    impose_symmetry(out)
    return out


def terrain_ratios(grid: TerrainGrid) -> Dict[str, float]:
    """Return the non-plain, water, forest and mountain fractions."""
    size = len(grid)
    total = size * size
    counts = Counter(t for row in grid for t in row)
    return {
        "non_plain": (total - counts[constants.PLAIN]) / total,
        constants.WATER: counts[constants.WATER] / total,
        constants.FOREST: counts[constants.FOREST] / total,
        constants.MOUNTAIN: counts[constants.MOUNTAIN] / total,
    }


def within_bands(ratios: Dict[str, float]) -> bool:
    for key, (low, high) in constants.DENSITY_BANDS.items():
        if not low <= ratios.get(key, 0.0) <= high:
            return False
    return True


def generate_terrain(size: int, rng: Optional[random.Random] = None) -> TerrainGrid:
    """Generate a centrally symmetric terrain grid.

    Generation is retried up to ``MAP_ATTEMPTS`` times until the terrain
    ratios fall inside ``DENSITY_BANDS``; the last attempt is kept when none
    qualifies.
    """

    rng = rng or random.Random()
    grid: TerrainGrid = []
    for attempt in range(1, constants.MAP_ATTEMPTS + 1):
        grid = _seed_grid(size, rng)
        for _ in range(constants.SMOOTHING_PASSES):
            grid = smooth(grid, rng)
        ratios = terrain_ratios(grid)
        if within_bands(ratios):
            logger.debug("Terrain accepted on attempt %d: %s", attempt, ratios)
            return grid
        logger.debug("Terrain attempt %d rejected: %s", attempt, ratios)
    logger.warning("No terrain attempt met the density bands; keeping the last one")
    return grid


def apply_terrain(board: Board, grid: TerrainGrid) -> None:
    for cell in board.cells():
        cell.terrain = grid[cell.y][cell.x]
