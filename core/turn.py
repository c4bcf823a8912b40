"""Turn transitions: economy, upkeep and the stalemate rule."""

from __future__ import annotations

import logging
from typing import List, Tuple

import constants
from core import actions
from core.catalog import purchasable_archetypes
from core.entities import other_player
from core.nexus import apply_capture_and_damage
from state.game_state import GameState

logger = logging.getLogger(__name__)


def grant_stipend(state: GameState, player: int) -> bool:
    """Add the per-turn energy grant while the player still has grants left."""
    p = state.players[player]
    if p.energy_turns_used >= constants.ENERGY_TURNS:
        return False
    p.energy = min(constants.ENERGY_CAP, p.energy + constants.ENERGY_PER_TURN)
    p.energy_turns_used += 1
    return True


def can_player_place_any_affordable_unit(state: GameState, player: int) -> bool:
    """Whether ``player`` can buy some archetype and legally place it.

    The purchased set is ignored here; it only filters the shop offer.
    """

    energy = state.players[player].energy
    for archetype in purchasable_archetypes():
        if archetype.cost > energy:
            continue
        if actions.spawnable_tiles(state, archetype, player):
            return True
    return False


def is_stalemated(state: GameState, player: int) -> bool:
    if state.players[player].energy_turns_used < constants.ENERGY_TURNS:
        return False
    if actions.units_of(state, player):
        return False
    return not can_player_place_any_affordable_unit(state, player)


def return_from_shadow(state: GameState, player: int) -> List[int]:
    """Bring ``player``'s due shadow units back to the overworld."""
    returned: List[int] = []
    for unit in list(state.board.units(constants.SHADOW)):
        if unit.owner != player or unit.shadow_return_on_turn is None:
            continue
        if state.turn < unit.shadow_return_on_turn:
            continue
        if state.board.unit_at(unit.x, unit.y, constants.OVERWORLD) is not None:
            continue
        state.board.remove_unit(unit)
        unit.realm = constants.OVERWORLD
        unit.shadow_return_on_turn = None
        state.board.place_unit(unit)
        returned.append(unit.id)
    return returned


def upkeep(state: GameState, player: int) -> None:
    """Refresh ``player``'s units in both realms; the opponent's are left alone."""
    for unit in actions.units_of(state, player):
        unit.temp_move_bonus = 0
        if unit.hidden_until_turn is not None and state.turn >= unit.hidden_until_turn:
            unit.hidden_until_turn = None
        for slot, remaining in unit.cooldowns.items():
            unit.cooldowns[slot] = max(0, remaining - 1)
        unit.actions_left = constants.ACTIONS_PER_TURN


def end_turn(state: GameState) -> Tuple[List[Tuple[int, int]], bool]:
    """Hand the turn to the other player.

    Returns the nexus positions captured while closing the turn and whether
    the transition happened at all (it does not once a winner is set).
    """

    if state.is_over:
        return [], False

    captured = apply_capture_and_damage(state)
    if state.is_over:
        logger.info("Player %d wins on nexus damage", state.winner)
        state.clear_scratch()
        return captured, True

    state.turn += 1
    state.current_player = other_player(state.current_player)
    player = state.current_player
    grant_stipend(state, player)

    if is_stalemated(state, player):
        state.winner = other_player(player)
        logger.info("Player %d has no units and no way to buy one; player %d wins", player, state.winner)
        return captured, True

    return_from_shadow(state, player)
    upkeep(state, player)
    state.clear_scratch()
    logger.debug("Turn %d: player %d to act", state.turn, player)
    return captured, True
