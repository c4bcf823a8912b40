"""Active ability resolution.

Effects are registered in :data:`ABILITY_EFFECTS`, keyed by archetype id.
Each effect receives the state, the acting unit and optional target
coordinates and returns an :class:`AbilityResult`.  Effects only mutate the
state when they succeed; :func:`use_ability` then charges the action and
arms the cooldown.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import constants
from core import actions
from core.entities import Unit, chebyshev, manhattan
from state.game_state import GameState

logger = logging.getLogger(__name__)

Pos = Tuple[int, int]


@dataclass
class AbilityResult:
    """Outcome of an ability call.

    ``affected`` lists the tiles touched by the effect so a renderer can
    flash them; it carries no rule meaning.
    """

    ok: bool
    affected: List[Pos] = field(default_factory=list)
    message: str = ""

    def __bool__(self) -> bool:
        return self.ok


def _fail(message: str) -> AbilityResult:
    return AbilityResult(False, [], message)


Effect = Callable[[GameState, Unit, Optional[int], Optional[int]], AbilityResult]


def _has_target(tx: Optional[int], ty: Optional[int]) -> bool:
    return tx is not None and ty is not None


def _enemy_at(state: GameState, unit: Unit, x: int, y: int) -> Optional[Unit]:
    other = state.board.unit_at(x, y, unit.realm)
    if other is not None and other.owner != unit.owner:
        return other
    return None


def _first_orthogonal(state: GameState, unit: Unit, accept: Callable[[Unit], bool]) -> Optional[Unit]:
    for x, y in state.board.neighbours4(unit.x, unit.y):
        other = state.board.unit_at(x, y, unit.realm)
        if other is not None and accept(other):
            return other
    return None


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------
def charge(state: GameState, unit: Unit, tx: Optional[int], ty: Optional[int]) -> AbilityResult:
    """Strike an enemy unit in range and advance onto its tile if it dies."""
    if not _has_target(tx, ty) or not state.board.in_bounds(tx, ty):
        return _fail("Charge needs a target")
    target = _enemy_at(state, unit, tx, ty)
    if target is None or not actions.in_attack_range(unit, tx, ty):
        return _fail("No enemy in range")
    killed = actions.damage_unit(state, target, unit.attack)
    affected = [(tx, ty)]
    if killed and actions.can_enter(state, unit, tx, ty):
        affected.append(unit.pos)
        state.board.relocate(unit, tx, ty)
    return AbilityResult(True, affected, "Charge!")


def volley(state: GameState, unit: Unit, tx: Optional[int], ty: Optional[int]) -> AbilityResult:
    """Damage every enemy unit and heart in the 3x3 block around the target."""
    if not _has_target(tx, ty) or not state.board.in_bounds(tx, ty):
        return _fail("Volley needs a target")
    if chebyshev(unit.pos, (tx, ty)) > unit.range:
        return _fail("Target out of range")

    radius = constants.VOLLEY_RADIUS
    hits: List[Pos] = []
    for y in range(ty - radius, ty + radius + 1):
        for x in range(tx - radius, tx + radius + 1):
            cell = state.board.cell(x, y)
            if cell is None:
                continue
            target = cell.units[unit.realm]
            if target is not None and target.owner != unit.owner:
                actions.damage_unit(state, target, unit.attack)
                hits.append((x, y))
            if unit.realm == constants.OVERWORLD:
                owner = actions.enemy_heart_at(state, cell, unit.owner)
                if owner is not None:
                    actions.damage_player(state, owner, unit.attack, unit.owner)
                    hits.append((x, y))
    if not hits:
        return _fail("No targets in range!")
    return AbilityResult(True, hits, "Volley hit %d targets!" % len(hits))


def build_bridge(state: GameState, unit: Unit, tx: Optional[int], ty: Optional[int]) -> AbilityResult:
    """Turn an adjacent water tile into a bridge."""
    if _has_target(tx, ty):
        candidates = [(tx, ty)] if chebyshev(unit.pos, (tx, ty)) == 1 else []
    else:
        candidates = list(state.board.neighbours8(unit.x, unit.y))
    for x, y in candidates:
        cell = state.board.cell(x, y)
        if cell is not None and cell.terrain == constants.WATER:
            cell.terrain = constants.BRIDGE
            return AbilityResult(True, [(x, y)], "Bridge built")
    return _fail("No water to bridge")


def heal(state: GameState, unit: Unit, tx: Optional[int], ty: Optional[int]) -> AbilityResult:
    """Restore hp to an adjacent wounded ally, never above its maximum."""
    friend: Optional[Unit] = None
    if _has_target(tx, ty) and manhattan(unit.pos, (tx, ty)) == 1:
        other = state.board.unit_at(tx, ty, unit.realm)
        if other is not None and other.owner == unit.owner and other.is_wounded:
            friend = other
    if friend is None:
        friend = _first_orthogonal(state, unit, lambda u: u.owner == unit.owner and u.is_wounded)
    if friend is None:
        return _fail("No wounded ally adjacent")
    friend.hp = min(friend.max_hp, friend.hp + constants.HEAL_AMOUNT)
    return AbilityResult(True, [friend.pos], "Healed")


def dash(state: GameState, unit: Unit, tx: Optional[int], ty: Optional[int]) -> AbilityResult:
    unit.temp_move_bonus += constants.DASH_BONUS
    return AbilityResult(True, [unit.pos], "Dash")


def bombard(state: GameState, unit: Unit, tx: Optional[int], ty: Optional[int]) -> AbilityResult:
    """Hit an enemy within bombard range, the given one or else the nearest."""
    reach = constants.BOMBARD_RANGE
    target: Optional[Unit] = None
    if _has_target(tx, ty) and manhattan(unit.pos, (tx, ty)) <= reach:
        target = _enemy_at(state, unit, tx, ty)
    if target is None:
        in_reach = [
            u
            for u in state.board.units(unit.realm)
            if u.owner != unit.owner and manhattan(unit.pos, u.pos) <= reach
        ]
        if in_reach:
            target = min(in_reach, key=lambda u: (manhattan(unit.pos, u.pos), u.y, u.x))
    if target is None:
        return _fail("No enemy within range")
    pos = target.pos
    actions.damage_unit(state, target, unit.attack)
    return AbilityResult(True, [pos], "Bombard")


def overrun(state: GameState, unit: Unit, tx: Optional[int], ty: Optional[int]) -> AbilityResult:
    """Hit an adjacent enemy; advance if it dies, otherwise push it back."""
    target: Optional[Unit] = None
    if _has_target(tx, ty) and manhattan(unit.pos, (tx, ty)) == 1:
        target = _enemy_at(state, unit, tx, ty)
    if target is None:
        target = _first_orthogonal(state, unit, lambda u: u.owner != unit.owner)
    if target is None:
        return _fail("No adjacent enemy")

    ex, ey = target.pos
    dx, dy = ex - unit.x, ey - unit.y
    affected = [(ex, ey)]
    if actions.damage_unit(state, target, unit.attack):
        if actions.can_enter(state, unit, ex, ey):
            affected.append(unit.pos)
            state.board.relocate(unit, ex, ey)
        return AbilityResult(True, affected, "Overrun")

    px, py = ex + dx, ey + dy
    dst = state.board.cell(px, py)
    if dst is not None and dst.units[target.realm] is None:
        if target.realm == constants.SHADOW or not dst.blocked_for_movement:
            state.board.relocate(target, px, py)
            affected.append((px, py))
    return AbilityResult(True, affected, "Overrun")


def vanish(state: GameState, unit: Unit, tx: Optional[int], ty: Optional[int]) -> AbilityResult:
    """Step between the overworld and the shadow realm in place."""
    destination = constants.OVERWORLD if unit.realm == constants.SHADOW else constants.SHADOW
    if state.board.unit_at(unit.x, unit.y, destination) is not None:
        return _fail("The other realm is occupied here")
    state.board.remove_unit(unit)
    unit.realm = destination
    state.board.place_unit(unit)
    if destination == constants.SHADOW:
        unit.shadow_return_on_turn = state.turn + 1
        unit.hidden_until_turn = state.turn + 1
    else:
        unit.shadow_return_on_turn = None
        unit.hidden_until_turn = None
    return AbilityResult(True, [unit.pos], "Vanished" if destination == constants.SHADOW else "Returned")


def _no_effect(state: GameState, unit: Unit, tx: Optional[int], ty: Optional[int]) -> AbilityResult:
    return AbilityResult(True, [unit.pos], "")


ABILITY_EFFECTS: Dict[str, Effect] = {
    "soldier": charge,
    "archer": volley,
    "builder": build_bridge,
    "medic": heal,
    "scout": dash,
    "naval": bombard,
    "tank": overrun,
    "shadow": vanish,
}


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------
def can_use(state: GameState, unit: Optional[Unit], ability_index: int) -> Tuple[bool, str]:
    """Return ``(True, "")`` if the ability slot may be used, else ``(False, reason)``."""
    if not actions.can_act(state, unit):
        return False, "Unit cannot act"
    archetype = actions.archetype_of(unit)
    if archetype is None or not 0 <= ability_index < len(archetype.abilities):
        return False, "Ability not known"
    if not archetype.abilities[ability_index].is_active:
        return False, "Passive ability"
    remaining = unit.cooldown(ability_index)
    if remaining > 0:
        return False, "Recharge %d turn(s)" % remaining
    return True, ""


def use_ability(
    state: GameState,
    unit: Optional[Unit],
    ability_index: int,
    tx: Optional[int] = None,
    ty: Optional[int] = None,
) -> AbilityResult:
    """Resolve the active ability in ``ability_index`` of ``unit``.

    On success one action is spent, the slot cooldown is armed and the turn
    is stamped on the unit.  A failed call leaves the state untouched.
    """

    usable, reason = can_use(state, unit, ability_index)
    if not usable:
        return _fail(reason)
    ability = actions.archetype_of(unit).abilities[ability_index]
    effect = ABILITY_EFFECTS.get(unit.archetype_id, _no_effect)
    result = effect(state, unit, tx, ty)
    if not result:
        logger.debug("Unit %d %s failed: %s", unit.id, ability.name, result.message)
        return result

    actions.spend_action(unit)
    unit.cooldowns[ability_index] = ability.cooldown
    unit.ability_used_turn = state.turn
    logger.debug("Unit %d used %s on %s", unit.id, ability.name, result.affected)
    return result
