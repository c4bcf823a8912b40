"""Map generation utilities for Nexus."""

from __future__ import annotations

import random
from typing import Optional

from state.game_state import GameState
from .symmetric import apply_terrain, generate_terrain, terrain_ratios
from .markers import place_markers, place_nexuses, is_marker_placable


def generate_map(state: GameState, rng: Optional[random.Random] = None) -> None:
    """Fill ``state.board`` with symmetric terrain and place all markers."""
    rng = rng or random.Random()
    grid = generate_terrain(state.board.size, rng)
    apply_terrain(state.board, grid)
    place_markers(state, rng)


__all__ = [
    "generate_map",
    "generate_terrain",
    "terrain_ratios",
    "place_markers",
    "place_nexuses",
    "is_marker_placable",
]
