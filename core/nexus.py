"""Nexus capture and damage ticks."""

from __future__ import annotations

import logging
from typing import List, Tuple

from core import actions
from core.entities import other_player
from state.game_state import GameState

logger = logging.getLogger(__name__)


def capture_nexuses(state: GameState) -> List[Tuple[int, int]]:
    """Flip every nexus occupied by a unit of another owner.

    Only the overworld occupant counts.  Returns the captured positions.
    """

    captured: List[Tuple[int, int]] = []
    for cell in state.board.cells():
        if cell.nexus is None or cell.unit is None:
            continue
        if cell.nexus.owner == cell.unit.owner:
            continue
        cell.nexus.owner = cell.unit.owner
        entry = state.nexus_entry(cell.x, cell.y)
        if entry is not None:
            entry.owner = cell.unit.owner
        captured.append((cell.x, cell.y))
        logger.info("Player %d captured the nexus at %s", cell.unit.owner, (cell.x, cell.y))
    return captured


def apply_nexus_damage(state: GameState) -> int:
    """Tick 1 damage per owned nexus, once per turn per nexus.

    Returns the number of ticks applied by this call.
    """

    ticks = 0
    for cell in state.board.cells():
        if cell.nexus is None or cell.nexus.owner is None:
            continue
        key = (cell.x, cell.y)
        last = state.last_nexus_damage_turn.get(key)
        if last is not None and last >= state.turn:
            continue
        owner = cell.nexus.owner
        actions.damage_player(state, other_player(owner), 1, owner)
        state.last_nexus_damage_turn[key] = state.turn
        ticks += 1
    return ticks


def apply_capture_and_damage(state: GameState) -> List[Tuple[int, int]]:
    captured = capture_nexuses(state)
    apply_nexus_damage(state)
    return captured
