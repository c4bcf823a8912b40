"""Spawning, movement and attacks.

Every public function is total: malformed coordinates, foreign units,
insufficient energy or illegal geometry make it return ``False`` without
touching the state.  Once a winner is recorded all actions are refused.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, List, Optional, Set, Tuple

import constants
from core.board import Cell
from core.catalog import get_archetype
from core.entities import Archetype, Unit, chebyshev, manhattan, other_player
from state.game_state import GameState

logger = logging.getLogger(__name__)

Pos = Tuple[int, int]


# ---------------------------------------------------------------------------
# Helpers shared with abilities and the turn controller
# ---------------------------------------------------------------------------
def archetype_of(unit: Unit) -> Optional[Archetype]:
    return get_archetype(unit.archetype_id)


def can_act(state: GameState, unit: Optional[Unit]) -> bool:
    """Whether ``unit`` may spend an action right now."""
    if unit is None or state.is_over:
        return False
    if unit.owner != state.current_player:
        return False
    if unit.actions_left <= 0:
        return False
    # A stale handle to a unit no longer on the board cannot act
    return state.board.unit_at(unit.x, unit.y, unit.realm) is unit


def spend_action(unit: Unit) -> None:
    unit.actions_left = max(0, unit.actions_left - 1)


def terrain_allows(archetype: Optional[Archetype], terrain: str) -> bool:
    """Overworld terrain affinity used for movement."""
    flags = archetype or _NO_FLAGS
    if terrain == constants.MOUNTAIN and not flags.can_climb_mountain:
        return False
    if terrain == constants.WATER and not (flags.can_cross_water or flags.water_only):
        return False
    return True


class _NoFlags:
    can_climb_mountain = False
    can_cross_water = False
    water_only = False
    can_attack_diagonal = False


_NO_FLAGS = _NoFlags()


def can_enter(state: GameState, unit: Unit, x: int, y: int, realm: Optional[str] = None) -> bool:
    """Whether ``unit`` could stand on ``(x, y)`` in ``realm``.

    The shadow realm shares only geometry with the overworld: structures and
    terrain do not restrict it.
    """

    realm = realm or unit.realm
    cell = state.board.cell(x, y)
    if cell is None or cell.units[realm] is not None:
        return False
    if realm == constants.SHADOW:
        return True
    if cell.blocked_for_movement:
        return False
    return terrain_allows(archetype_of(unit), cell.terrain)


def compute_reachable(state: GameState, unit: Unit) -> Dict[Pos, int]:
    """Return the minimum step count of every cell ``unit`` can reach.

    Breadth-first search over orthogonal steps bounded by the unit's move
    plus any temporary bonus.  The starting cell is included with 0 steps.
    """

    max_steps = unit.move + unit.temp_move_bonus
    start = (unit.x, unit.y)
    dist: Dict[Pos, int] = {start: 0}
    queue: Deque[Pos] = deque([start])
    while queue:
        cx, cy = queue.popleft()
        d = dist[(cx, cy)]
        if d >= max_steps:
            continue
        for nx, ny in state.board.neighbours4(cx, cy):
            if (nx, ny) in dist:
                continue
            if not can_enter(state, unit, nx, ny):
                continue
            dist[(nx, ny)] = d + 1
            queue.append((nx, ny))
    return dist


def reachable_tiles(state: GameState, unit: Unit) -> Set[Pos]:
    """Destinations a move could target (the origin excluded)."""
    reach = compute_reachable(state, unit)
    reach.pop((unit.x, unit.y), None)
    return set(reach)


def attacks_diagonally(unit: Unit) -> bool:
    archetype = archetype_of(unit)
    if archetype is not None and archetype.can_attack_diagonal:
        return True
    return unit.archetype_id in constants.DIAGONAL_ATTACK_ARCHETYPES


def in_attack_range(unit: Unit, x: int, y: int) -> bool:
    """Range check: Chebyshev distance for diagonal attackers, Manhattan otherwise."""
    if attacks_diagonally(unit):
        return chebyshev(unit.pos, (x, y)) <= unit.range
    return manhattan(unit.pos, (x, y)) <= unit.range


def damage_unit(state: GameState, target: Unit, amount: int) -> bool:
    """Apply ``amount`` damage and remove ``target`` when it dies.

    Returns ``True`` if the unit was destroyed.
    """

    target.hp -= amount
    if target.hp <= 0:
        state.board.remove_unit(target)
        logger.debug("Unit %s (%s) destroyed", target.id, target.archetype_id)
        return True
    return False


def damage_player(state: GameState, player: int, amount: int, source_player: int) -> None:
    """Reduce ``player``'s hp (floor 0); at 0 ``source_player`` wins."""
    p = state.players[player]
    p.hp = max(0, p.hp - amount)
    if p.hp <= 0 and state.winner is None:
        state.winner = source_player
        logger.info("Player %d wins: player %d's hp reached 0", source_player, player)


def enemy_heart_at(state: GameState, cell: Cell, player: int) -> Optional[int]:
    """Return the owner of an enemy heart on ``cell``, if any."""
    if cell.heart is not None and cell.heart.owner is not None and cell.heart.owner != player:
        return cell.heart.owner
    return None


def strike(state: GameState, attacker: Unit, x: int, y: int) -> Optional[str]:
    """Resolve a standard attack against ``(x, y)`` without action accounting.

    Returns ``"unit"`` or ``"heart"`` naming what was hit, or ``None`` when
    there is no valid target in range.  Callers check ownership and actions.
    """

    cell = state.board.cell(x, y)
    if cell is None:
        return None
    target = cell.units[attacker.realm]
    if target is not None:
        if target.owner == attacker.owner or not in_attack_range(attacker, x, y):
            return None
        damage_unit(state, target, attacker.attack)
        return "unit"
    if attacker.realm != constants.OVERWORLD:
        return None
    owner = enemy_heart_at(state, cell, attacker.owner)
    if owner is None or not in_attack_range(attacker, x, y):
        return None
    damage_player(state, owner, attacker.attack, attacker.owner)
    return "heart"


# ---------------------------------------------------------------------------
# Spawn
# ---------------------------------------------------------------------------
def is_spawnable_for_player(state: GameState, archetype: Archetype, x: int, y: int, player: int) -> bool:
    """Whether ``archetype`` could be placed on ``(x, y)`` for ``player``."""
    cell = state.board.cell(x, y)
    if cell is None or cell.unit is not None:
        return False
    if cell.has_marker() or cell.blocked_for_movement:
        return False
    if archetype.water_only:
        if cell.terrain not in (constants.WATER, constants.BRIDGE):
            return False
    else:
        if cell.terrain == constants.WATER and not archetype.can_cross_water:
            return False
        if cell.terrain == constants.MOUNTAIN and not archetype.can_climb_mountain:
            return False
    spawner = state.players[player].spawner
    if spawner is None:
        return False
    return chebyshev(spawner, (x, y)) <= 1


def spawnable_tiles(state: GameState, archetype: Archetype, player: int) -> List[Pos]:
    spawner = state.players[player].spawner
    if spawner is None:
        return []
    tiles = [spawner, *state.board.neighbours8(*spawner)]
    return [p for p in tiles if is_spawnable_for_player(state, archetype, p[0], p[1], player)]


def spawn(state: GameState, archetype_id: str, x: int, y: int, player: int) -> Optional[Unit]:
    """Buy a unit of ``archetype_id`` and place it on ``(x, y)``.

    Returns the new unit or ``None`` when the purchase is refused.
    """

    if state.is_over or player != state.current_player:
        return None
    if not state.board.in_bounds(x, y):
        return None
    if state.board.unit_at(x, y) is not None:
        return None
    archetype = get_archetype(archetype_id)
    if archetype is None:
        logger.error("Unit definition not found for %r", archetype_id)
        return None
    if not is_spawnable_for_player(state, archetype, x, y, player):
        return None
    p = state.players[player]
    if p.energy < archetype.cost:
        return None

    p.energy -= archetype.cost
    unit = Unit.from_archetype(state.next_unit_id(), archetype, player, x, y)
    state.board.place_unit(unit)
    p.purchased.add(archetype.id)
    logger.debug("Player %d spawned %s #%d at %s", player, archetype.id, unit.id, (x, y))
    return unit


# ---------------------------------------------------------------------------
# Move
# ---------------------------------------------------------------------------
def move(state: GameState, unit: Optional[Unit], x: int, y: int) -> bool:
    """Move ``unit`` to ``(x, y)`` inside its realm, spending one action."""
    if not can_act(state, unit):
        return False
    if not state.board.in_bounds(x, y):
        return False
    dst = state.board.cell(x, y)
    if dst.units[unit.realm] is not None:
        return False
    if unit.realm == constants.OVERWORLD and dst.blocked_for_movement:
        return False
    if (x, y) not in compute_reachable(state, unit):
        return False

    origin = unit.pos
    state.board.relocate(unit, x, y)
    spend_action(unit)
    logger.debug("Unit %d moved %s -> %s (%s)", unit.id, origin, (x, y), unit.realm)
    return True


# ---------------------------------------------------------------------------
# Attack
# ---------------------------------------------------------------------------
def attack(state: GameState, unit: Optional[Unit], x: int, y: int) -> bool:
    """Attack the enemy unit or heart on ``(x, y)``, spending one action."""
    if not can_act(state, unit):
        return False
    if not state.board.in_bounds(x, y):
        return False
    hit = strike(state, unit, x, y)
    if hit is None:
        return False
    spend_action(unit)
    logger.debug("Unit %d attacked %s at %s", unit.id, hit, (x, y))
    return True


def attackable_tiles(state: GameState, unit: Unit) -> List[Pos]:
    """Tiles holding something ``unit`` could attack right now."""
    tiles: List[Pos] = []
    for cell in state.board.cells():
        if not in_attack_range(unit, cell.x, cell.y):
            continue
        target = cell.units[unit.realm]
        if target is not None and target.owner != unit.owner:
            tiles.append((cell.x, cell.y))
        elif (
            target is None
            and unit.realm == constants.OVERWORLD
            and enemy_heart_at(state, cell, unit.owner) is not None
        ):
            tiles.append((cell.x, cell.y))
    return tiles


def units_of(state: GameState, player: int) -> List[Unit]:
    """Units owned by ``player`` in both realms, ordered by id."""
    return sorted((u for u in state.board.units() if u.owner == player), key=lambda u: u.id)


def enemies_of(state: GameState, player: int) -> List[Unit]:
    return units_of(state, other_player(player))
