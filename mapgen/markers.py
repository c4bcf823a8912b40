"""Placement of spawners, hearts and nexuses on a generated board.

All markers are placed in symmetric pairs: player 2's structures are the
point reflection of player 1's, and every nexus has a partner at
``(N-1-x, N-1-y)``.
"""

from __future__ import annotations

import logging
import random
from typing import List, Optional, Tuple

import constants
from core.board import Board, Cell, Marker
from state.game_state import GameState, NexusEntry

logger = logging.getLogger(__name__)

Pos = Tuple[int, int]


def is_marker_placable(cell: Optional[Cell]) -> bool:
    """Markers only go on free plain or bridge ground."""
    if cell is None:
        return False
    if cell.unit is not None or cell.shadow_unit is not None or cell.has_marker():
        return False
    return cell.terrain not in constants.ROUGH_TERRAINS


def is_near_other_marker(board: Board, cell: Cell, radius: int) -> bool:
    for yy in range(max(0, cell.y - radius), min(board.size - 1, cell.y + radius) + 1):
        for xx in range(max(0, cell.x - radius), min(board.size - 1, cell.x + radius) + 1):
            if board.grid[yy][xx].has_marker():
                return True
    return False


def clear_markers(state: GameState) -> None:
    for cell in state.board.cells():
        cell.nexus = cell.spawner = cell.heart = None
        cell.blocked_for_movement = False
    state.nexuses = []
    for player in state.players.values():
        player.spawner = player.heart = None


# ---------------------------------------------------------------------------
# Spawners and hearts
# ---------------------------------------------------------------------------
def _spawner_band(size: int) -> Tuple[int, int, int, int]:
    """Return ``(x_min, x_max, y_min, y_max)`` of player 1's home band."""
    y_min = int(size * constants.SPAWNER_BAND_START)
    return 2, size - 3, y_min, size - 2


def place_spawners(state: GameState, rng: random.Random) -> Tuple[Pos, Pos]:
    """Place one spawner per player and return their positions.

    Player 1's spawner is searched at random in the bottom band and player 2
    receives the reflected tile; both tiles must be placable.  When the
    search gives up the fixed central fallback is used.
    """

    board = state.board
    x_min, x_max, y_min, y_max = _spawner_band(board.size)
    chosen: Optional[Pos] = None
    for _ in range(constants.SPAWNER_ATTEMPTS):
        x = rng.randint(x_min, x_max)
        y = rng.randint(y_min, y_max)
        mx, my = board.mirror(x, y)
        if is_marker_placable(board.cell(x, y)) and is_marker_placable(board.cell(mx, my)):
            chosen = (x, y)
            break
    if chosen is None:
        chosen = (board.size // 2, board.size - 2)
        logger.warning("Spawner search failed; using fallback tile %s", chosen)

    p1 = chosen
    p2 = board.mirror(*p1)
    for player, (x, y) in ((1, p1), (2, p2)):
        cell = board.grid[y][x]
        cell.spawner = Marker(owner=player)
        cell.blocked_for_movement = True
        state.players[player].spawner = (x, y)
    return p1, p2


def _heart_offsets(radius: int, rng: Optional[random.Random]) -> List[Pos]:
    offsets = [
        (dx, dy)
        for dy in range(-radius, radius + 1)
        for dx in range(-radius, radius + 1)
        if (dx, dy) != (0, 0)
    ]
    if rng is not None:
        rng.shuffle(offsets)
    return offsets


def place_hearts(state: GameState, rng: random.Random) -> Tuple[Pos, Pos]:
    """Place hearts next to the spawners using mirrored offsets.

    Offsets of radius ``HEART_RADIUS`` are tried in random order, then every
    radius 1 offset in order; the final fallback stacks each heart on its
    own spawner tile.
    """

    board = state.board
    s1 = state.players[1].spawner
    s2 = state.players[2].spawner
    choice: Optional[Tuple[Pos, Pos]] = None
    for offsets in (_heart_offsets(constants.HEART_RADIUS, rng), _heart_offsets(1, None)):
        for dx, dy in offsets:
            h1 = (s1[0] + dx, s1[1] + dy)
            h2 = (s2[0] - dx, s2[1] - dy)
            if is_marker_placable(board.cell(*h1)) and is_marker_placable(board.cell(*h2)):
                choice = (h1, h2)
                break
        if choice:
            break
    if choice is None:
        logger.warning("No free tile around the spawners; hearts share the spawner tiles")
        choice = (s1, s2)

    for player, (x, y) in zip((1, 2), choice):
        cell = board.grid[y][x]
        cell.heart = Marker(owner=player)
        cell.blocked_for_movement = True
        state.players[player].heart = (x, y)
    return choice


# ---------------------------------------------------------------------------
# Nexuses
# ---------------------------------------------------------------------------
def _put_nexus_pair(state: GameState, a: Pos, b: Pos) -> None:
    for x, y in (a, b):
        state.board.grid[y][x].nexus = Marker(owner=None)
        state.nexuses.append(NexusEntry(x, y, None))


def _try_pair(state: GameState, x: int, y: int, radius: Optional[int]) -> bool:
    board = state.board
    mx, my = board.mirror(x, y)
    if (mx, my) == (x, y):
        return False
    c1, c2 = board.cell(x, y), board.cell(mx, my)
    if not is_marker_placable(c1) or not is_marker_placable(c2):
        return False
    if radius is not None and (
        is_near_other_marker(board, c1, radius) or is_near_other_marker(board, c2, radius)
    ):
        return False
    _put_nexus_pair(state, (x, y), (mx, my))
    return True


def place_nexuses(state: GameState, rng: random.Random, pairs: Optional[int] = None) -> int:
    """Place ``pairs`` symmetric nexus pairs and return how many were placed.

    Candidates are drawn from the upper central region and accepted only away
    from other markers.  If the random pass falls short a deterministic scan
    of the rows around the vertical centre runs with a smaller radius, then
    a scan of the whole board without the radius rule.  As a last resort a
    central pair of tiles is cleared to plain so the count is always met.
    """

    board = state.board
    size = board.size
    pairs = constants.NEXUS_PAIRS if pairs is None else pairs
    for cell in board.cells():
        cell.nexus = None
    state.nexuses = []

    candidates = [(x, y) for y in range(1, size // 2) for x in range(2, size - 2)]
    rng.shuffle(candidates)
    placed = 0
    for x, y in candidates:
        if placed >= pairs:
            break
        if _try_pair(state, x, y, constants.NEXUS_MARKER_RADIUS):
            placed += 1

    if placed < pairs:
        centre = size // 2
        for y in range(centre - 1, centre + 2):
            for x in range(2, size - 2):
                if placed >= pairs:
                    break
                if _try_pair(state, x, y, constants.NEXUS_FALLBACK_RADIUS):
                    placed += 1

    if placed < pairs:
        logger.warning("Nexus placement relaxed to any free symmetric tile")
        for y in range(size // 2 + 1):
            for x in range(size):
                if placed >= pairs:
                    break
                if _try_pair(state, x, y, None):
                    placed += 1

    if placed < pairs:
        # Flatten the terrain of free symmetric tiles nearest the centre
        centre = size // 2
        spots = sorted(
            ((x, y) for y in range(size // 2 + 1) for x in range(size)),
            key=lambda p: (abs(p[0] - centre) + abs(p[1] - centre), p[1], p[0]),
        )
        for x, y in spots:
            if placed >= pairs:
                break
            mx, my = board.mirror(x, y)
            c1, c2 = board.cell(x, y), board.cell(mx, my)
            if (mx, my) == (x, y) or c1.has_marker() or c2.has_marker():
                continue
            if c1.unit or c2.unit or c1.shadow_unit or c2.shadow_unit:
                continue
            c1.terrain = c2.terrain = constants.PLAIN
            _put_nexus_pair(state, (x, y), (mx, my))
            placed += 1
        logger.warning("Cleared terrain to fit nexus pairs")
    return placed


def place_markers(state: GameState, rng: random.Random) -> None:
    """Clear any previous markers and place spawners, hearts and nexuses."""
    clear_markers(state)
    place_spawners(state, rng)
    place_hearts(state, rng)
    place_nexuses(state, rng)
