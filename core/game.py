"""
Game session facade.

The :class:`Game` owns exactly one :class:`~state.game_state.GameState` and
is the single mutation entry point used by the pygame front end, the
automated opponent and tests.  It forwards commands to the rule modules in
:mod:`core`, publishes presentation events on :data:`state.event_bus.EVENT_BUS`
and runs the two-step ability targeting used by interactive play.  The rules
never depend on anything published here.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional, Set, Tuple, Union

import constants
import settings
from core import abilities, actions, catalog, turn
from core.abilities import AbilityResult
from core.entities import Archetype, Unit
from mapgen import generate_map
from state.event_bus import (
    EVENT_BUS,
    ON_ABILITY_USED,
    ON_GAME_OVER,
    ON_INFO_MESSAGE,
    ON_NEXUS_CAPTURED,
    ON_TURN_END,
    ON_UNIT_SPAWNED,
)
from state.game_state import AbilityTargeting, GameState

logger = logging.getLogger(__name__)

Pos = Tuple[int, int]
UnitRef = Union[Unit, int, None]


class Game:
    """One game session between two players on a generated board."""

    def __init__(
        self,
        seed: Optional[int] = None,
        starting_energy: Optional[int] = None,
        size: Optional[int] = None,
        generate: bool = True,
    ) -> None:
        self.seed = settings.SEED if seed is None else seed
        self.starting_energy = settings.STARTING_ENERGY if starting_energy is None else starting_energy
        self.size = size
        self.rng = random.Random(self.seed)
        self.state = GameState.new(size, self.starting_energy)
        self._announced_winner: Optional[int] = None
        if generate:
            generate_map(self.state, self.rng)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _notify(self, message: str) -> None:
        logger.info(message)
        EVENT_BUS.publish(ON_INFO_MESSAGE, message)

    def _resolve(self, unit: UnitRef) -> Optional[Unit]:
        """Accept a unit handle or a unit id and return the live unit."""
        if unit is None:
            return None
        if isinstance(unit, Unit):
            return unit
        return self.state.board.find_unit(unit)

    def _check_game_over(self) -> None:
        winner = self.state.winner
        if winner is not None and winner != self._announced_winner:
            self._announced_winner = winner
            self.state.clear_scratch()
            self._notify("Player %d wins!" % winner)
            EVENT_BUS.publish(ON_GAME_OVER, winner)

    @property
    def winner(self) -> Optional[int]:
        return self.state.winner

    @property
    def current_player(self) -> int:
        return self.state.current_player

    # ------------------------------------------------------------------
    # Command surface
    # ------------------------------------------------------------------
    def spawn(self, archetype_id: str, x: int, y: int, player: Optional[int] = None) -> bool:
        player = self.state.current_player if player is None else player
        unit = actions.spawn(self.state, archetype_id, x, y, player)
        if unit is None:
            return False
        EVENT_BUS.publish(ON_UNIT_SPAWNED, unit.summary())
        return True

    def move(self, unit: UnitRef, x: int, y: int) -> bool:
        return actions.move(self.state, self._resolve(unit), x, y)

    def attack(self, unit: UnitRef, x: int, y: int) -> bool:
        ok = actions.attack(self.state, self._resolve(unit), x, y)
        if ok:
            self._check_game_over()
        return ok

    def use_ability(
        self,
        unit: UnitRef,
        ability_index: int,
        target_x: Optional[int] = None,
        target_y: Optional[int] = None,
    ) -> AbilityResult:
        live = self._resolve(unit)
        result = abilities.use_ability(self.state, live, ability_index, target_x, target_y)
        if result:
            EVENT_BUS.publish(ON_ABILITY_USED, live.id, list(result.affected))
            if result.message:
                EVENT_BUS.publish(ON_INFO_MESSAGE, result.message)
            self._check_game_over()
        return result

    def end_turn(self) -> None:
        captured, changed = turn.end_turn(self.state)
        if not changed:
            return
        for pos in captured:
            EVENT_BUS.publish(ON_NEXUS_CAPTURED, pos, self.state.board.cell(*pos).nexus.owner)
        EVENT_BUS.publish(ON_TURN_END, self.state.turn, self.state.current_player)
        self._check_game_over()

    def reset_game(self, seed: Optional[int] = None) -> None:
        """Start over on a freshly generated map.

        Without ``seed`` the session generator keeps running, so successive
        resets produce different maps.
        """

        if seed is not None:
            self.seed = seed
            self.rng = random.Random(seed)
        self.state = GameState.new(self.size, self.starting_energy)
        self._announced_winner = None
        generate_map(self.state, self.rng)
        self._notify("New game")

    # ------------------------------------------------------------------
    # Read model and queries
    # ------------------------------------------------------------------
    def snapshot(self) -> Dict[str, Any]:
        return self.state.snapshot()

    def unit_at(self, x: int, y: int, realm: Optional[str] = None) -> Optional[Unit]:
        """Overworld occupant of ``(x, y)`` (or the given realm's)."""
        if realm is not None:
            return self.state.board.unit_at(x, y, realm)
        return self.state.board.unit_at(x, y)

    def unit_by_id(self, unit_id: int) -> Optional[Unit]:
        return self.state.board.find_unit(unit_id)

    def units_for(self, player: int) -> List[Unit]:
        return actions.units_of(self.state, player)

    def reachable_tiles(self, unit: UnitRef) -> Set[Pos]:
        live = self._resolve(unit)
        if live is None:
            return set()
        return actions.reachable_tiles(self.state, live)

    def attackable_tiles(self, unit: UnitRef) -> List[Pos]:
        live = self._resolve(unit)
        if live is None:
            return []
        return actions.attackable_tiles(self.state, live)

    def spawnable_tiles(self, archetype_id: str, player: Optional[int] = None) -> List[Pos]:
        archetype = catalog.get_archetype(archetype_id)
        if archetype is None:
            return []
        player = self.state.current_player if player is None else player
        return actions.spawnable_tiles(self.state, archetype, player)

    def shop_offer(self, player: Optional[int] = None) -> Dict[int, List[Archetype]]:
        player = self.state.current_player if player is None else player
        return catalog.shop_offer(self.state, player)

    # ------------------------------------------------------------------
    # Interactive selection
    # ------------------------------------------------------------------
    def select_unit(self, unit: UnitRef) -> bool:
        """Select one of the current player's units, or clear with ``None``."""
        if unit is None:
            self.state.selected_unit_id = None
            return True
        live = self._resolve(unit)
        if live is None or live.owner != self.state.current_player:
            return False
        self.state.selected_unit_id = live.id
        self.state.pending_shop_selection[self.state.current_player] = None
        return True

    def selected_unit(self) -> Optional[Unit]:
        if self.state.selected_unit_id is None:
            return None
        return self.state.board.find_unit(self.state.selected_unit_id)

    def choose_shop_item(self, archetype_id: Optional[str], player: Optional[int] = None) -> bool:
        """Remember which archetype the next spawner click buys."""
        player = self.state.current_player if player is None else player
        if archetype_id is None:
            self.state.pending_shop_selection[player] = None
            return True
        offered = {a.id for group in self.shop_offer(player).values() for a in group}
        if archetype_id not in offered:
            return False
        self.state.pending_shop_selection[player] = archetype_id
        self.state.selected_unit_id = None
        return True

    def begin_ability(self, unit: UnitRef, ability_index: int) -> Union[AbilityResult, bool]:
        """First step of an ability invocation.

        Self-targeted abilities resolve at once and their result is returned.
        Targeted ones enter targeting mode and return ``True``; nothing is
        spent until :meth:`confirm_ability_target` succeeds.
        """

        live = self._resolve(unit)
        usable, reason = abilities.can_use(self.state, live, ability_index)
        if not usable:
            EVENT_BUS.publish(ON_INFO_MESSAGE, reason)
            return False
        ability = actions.archetype_of(live).abilities[ability_index]
        if not ability.needs_target:
            return self.use_ability(live, ability_index)
        self.state.ability_targeting = AbilityTargeting(live.id, ability_index)
        EVENT_BUS.publish(ON_INFO_MESSAGE, "Choose a target for %s" % ability.name)
        return True

    def confirm_ability_target(self, x: int, y: int) -> AbilityResult:
        """Resolve the pending ability on ``(x, y)``.

        A rejected target keeps targeting mode active so another tile can be
        picked.
        """

        pending = self.state.ability_targeting
        if pending is None:
            return AbilityResult(False, [], "No ability selected")
        result = self.use_ability(pending.unit_id, pending.ability_index, x, y)
        if result:
            self.state.ability_targeting = None
        elif result.message:
            EVENT_BUS.publish(ON_INFO_MESSAGE, result.message)
        return result

    def cancel_ability(self) -> None:
        self.state.ability_targeting = None

    def activate_tile(self, x: int, y: int) -> bool:
        """Interpret a click on ``(x, y)`` for the current player.

        Priority: pending ability target, pending purchase, attack or move of
        the selected unit, then selection of the player's own unit.
        """

        state = self.state
        if state.winner is not None or not state.board.in_bounds(x, y):
            return False
        if state.ability_targeting is not None:
            return bool(self.confirm_ability_target(x, y))

        player = state.current_player
        pending = state.pending_shop_selection.get(player)
        if pending is not None:
            if self.spawn(pending, x, y, player):
                state.pending_shop_selection[player] = None
                return True
            return False

        selected = self.selected_unit()
        if selected is not None:
            if (x, y) in actions.attackable_tiles(state, selected):
                return self.attack(selected, x, y)
            if (x, y) in actions.reachable_tiles(state, selected):
                return self.move(selected, x, y)
        for realm in constants.REALMS:
            occupant = state.board.unit_at(x, y, realm)
            if occupant is not None and occupant.owner == player:
                return self.select_unit(occupant)
        self.select_unit(None)
        return False
