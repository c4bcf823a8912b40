"""
Shared configuration for the Nexus tactics game.

This module defines the rule constants used throughout the project, such as
the board size, the per-turn action allowance and the energy economy, along
with the few values the board renderer needs.  Keeping these values in one
place makes it easy to tweak the balance of the game.  Engine code reads them
as ``constants.NAME`` at call time so tests can monkeypatch a single value.
"""

from typing import Dict, Tuple

# ---------------------------------------------------------------------------
# Board
# ---------------------------------------------------------------------------
BOARD_SIZE = 11

# Terrain identifiers.  ``bridge`` never comes out of the generator; it is
# produced by the builder's ability on water tiles.
PLAIN = "plain"
WATER = "water"
FOREST = "forest"
MOUNTAIN = "mountain"
BRIDGE = "bridge"
TERRAINS = (PLAIN, WATER, FOREST, MOUNTAIN, BRIDGE)

# Terrains on which no marker (spawner, heart, nexus) may be placed
ROUGH_TERRAINS = {MOUNTAIN, WATER, FOREST}

# Occupancy planes sharing the board geometry
OVERWORLD = "overworld"
SHADOW = "shadow"
REALMS = (OVERWORLD, SHADOW)

PLAYERS = (1, 2)

# ---------------------------------------------------------------------------
# Players and turns
# ---------------------------------------------------------------------------
STARTING_HP = 20
# Starting energy depends on the variant; ``settings.STARTING_ENERGY``
# overrides this default when a game is created.
STARTING_ENERGY = 10
ACTIONS_PER_TURN = 2
# Stipend granted at the start of a player's turn, ``ENERGY_TURNS`` times
ENERGY_PER_TURN = 5
ENERGY_TURNS = 10
ENERGY_CAP = 50

# ---------------------------------------------------------------------------
# Abilities
# ---------------------------------------------------------------------------
HEAL_AMOUNT = 3
DASH_BONUS = 2
BOMBARD_RANGE = 2
VOLLEY_RADIUS = 1
# Archetypes whose attacks use the diagonal-inclusive distance even when the
# catalog entry does not set ``can_attack_diagonal``.
DIAGONAL_ATTACK_ARCHETYPES = {"archer", "naval"}

# ---------------------------------------------------------------------------
# Map generation
# ---------------------------------------------------------------------------
TERRAIN_WEIGHTS: Dict[str, float] = {
    PLAIN: 0.30,
    WATER: 0.25,
    FOREST: 0.25,
    MOUNTAIN: 0.20,
}
"""Distribution used when sampling a cell's terrain."""

# Probability that a top-half cell is sampled instead of left as plain
TERRAIN_FILL_CHANCE = 0.65
# Same for the left half of the centre row on odd boards
CENTER_ROW_FILL_CHANCE = 0.22
SMOOTHING_PASSES = 3
# Chance that smoothing resamples a cell instead of taking the majority
SMOOTHING_RESAMPLE_CHANCE = 0.08
MAP_ATTEMPTS = 12

# Accepted (min, max) ratios of the whole board
DENSITY_BANDS: Dict[str, Tuple[float, float]] = {
    "non_plain": (0.55, 0.65),
    WATER: (0.14, 0.26),
    FOREST: (0.14, 0.26),
    MOUNTAIN: (0.12, 0.18),
}

NEXUS_PAIRS = 2
# Minimum Chebyshev distance between a nexus and any other marker
NEXUS_MARKER_RADIUS = 3
NEXUS_FALLBACK_RADIUS = 2
SPAWNER_ATTEMPTS = 200
# Spawner home band for player 1 starts at this fraction of the board height
SPAWNER_BAND_START = 0.60
HEART_RADIUS = 2

# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
TILE_SIZE = 56
HUD_HEIGHT = 72
# Side panel listing the shop and the selected unit
PANEL_WIDTH = 240
FPS = 30

TERRAIN_COLOURS: Dict[str, Tuple[int, int, int]] = {
    PLAIN: (120, 168, 88),
    WATER: (54, 104, 170),
    FOREST: (38, 98, 52),
    MOUNTAIN: (128, 118, 108),
    BRIDGE: (150, 112, 70),
}
SHADOW_TINT = (40, 20, 60)
PLAYER_COLOURS: Dict[int, Tuple[int, int, int]] = {
    1: (220, 60, 60),
    2: (60, 110, 230),
}
NEUTRAL_COLOUR = (200, 200, 200)
HIGHLIGHT_MOVE = (255, 255, 255)
HIGHLIGHT_ATTACK = (255, 80, 40)
HIGHLIGHT_SPAWN = (255, 215, 0)
