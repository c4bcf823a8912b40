from __future__ import annotations

"""Automated opponent.

:class:`OpponentAI` plays one side using nothing but the read model returned
by :meth:`core.game.Game.snapshot` and the public command surface of
:class:`core.game.Game`.  Every command it issues goes through the same
validation as a human click, so a bad guess simply fails and the policy
moves on.  A turn consists of:

* a spawn phase buying at most a couple of units while keeping an energy
  reserve, placed on the spawn tile closest to an objective;
* a unit phase where each owned unit, in id order, uses its ability, attacks
  or moves towards the nearest nexus it does not own, falling back to the
  nearest enemy, the enemy heart and finally the board centre.
"""

from collections import deque
from dataclasses import dataclass, field
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import constants
from core.catalog import get_archetype, purchasable_archetypes
from core.entities import chebyshev, manhattan, other_player


logger = logging.getLogger(__name__)

Pos = Tuple[int, int]
Snapshot = Dict[str, Any]
UnitView = Dict[str, Any]

# Preferred composition: archetype id and how many to keep on the board
COMPOSITION: Tuple[Tuple[str, int], ...] = (
    ("soldier", 2),
    ("archer", 1),
    ("medic", 1),
    ("tank", 1),
)


# ----------------------------------------------------------------------
# Snapshot helpers
# ----------------------------------------------------------------------
def _cell(snap: Snapshot, x: int, y: int) -> Optional[Dict[str, Any]]:
    size = snap["size"]
    if 0 <= x < size and 0 <= y < size:
        return snap["board"][y][x]
    return None


def _units(snap: Snapshot) -> Iterable[UnitView]:
    for row in snap["board"]:
        for cell in row:
            for key in ("unit", "shadow_unit"):
                if cell[key] is not None:
                    yield cell[key]


def _slot(realm: str) -> str:
    return "shadow_unit" if realm == constants.SHADOW else "unit"


def _passable(snap: Snapshot, unit: UnitView, x: int, y: int) -> bool:
    """Mirror of the engine's movement rule evaluated on the snapshot."""
    cell = _cell(snap, x, y)
    if cell is None or cell[_slot(unit["realm"])] is not None:
        return False
    if unit["realm"] == constants.SHADOW:
        return True
    if cell["blocked_for_movement"]:
        return False
    arch = get_archetype(unit["archetype_id"])
    if cell["terrain"] == constants.MOUNTAIN and not (arch and arch.can_climb_mountain):
        return False
    if cell["terrain"] == constants.WATER and not (arch and (arch.can_cross_water or arch.water_only)):
        return False
    return True


def _in_range(unit: UnitView, x: int, y: int) -> bool:
    arch = get_archetype(unit["archetype_id"])
    diagonal = unit["archetype_id"] in constants.DIAGONAL_ATTACK_ARCHETYPES or (
        arch is not None and arch.can_attack_diagonal
    )
    pos = (unit["x"], unit["y"])
    if diagonal:
        return chebyshev(pos, (x, y)) <= unit["range"]
    return manhattan(pos, (x, y)) <= unit["range"]


def find_path(snap: Snapshot, unit: UnitView, goal: Pos) -> List[Pos]:
    """Breadth-first path from ``unit`` to ``goal`` over passable cells.

    The goal itself may be occupied (an enemy, a heart); the returned list
    excludes the start and is empty when no route exists.
    """

    start = (unit["x"], unit["y"])
    if start == goal:
        return []
    came_from: Dict[Pos, Optional[Pos]] = {start: None}
    queue = deque([start])
    while queue:
        cx, cy = queue.popleft()
        for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
            nxt = (cx + dx, cy + dy)
            if nxt in came_from or _cell(snap, *nxt) is None:
                continue
            if nxt != goal and not _passable(snap, unit, *nxt):
                continue
            came_from[nxt] = (cx, cy)
            if nxt == goal:
                path: List[Pos] = []
                node: Optional[Pos] = nxt
                while node is not None and node != start:
                    path.append(node)
                    node = came_from[node]
                path.reverse()
                return path
            queue.append(nxt)
    return []


@dataclass
class OpponentAI:
    """Policy controlling ``player`` through a :class:`core.game.Game`."""

    player: int = 2
    reserve: int = 2
    max_spawns: int = 2
    log: List[str] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Queries on the read model
    # ------------------------------------------------------------------
    def _own_units(self, snap: Snapshot) -> List[UnitView]:
        return sorted((u for u in _units(snap) if u["owner"] == self.player), key=lambda u: u["id"])

    def _enemy_units(self, snap: Snapshot, realm: Optional[str] = None) -> List[UnitView]:
        return [
            u
            for u in _units(snap)
            if u["owner"] != self.player and (realm is None or u["realm"] == realm)
        ]

    def _enemy_heart(self, snap: Snapshot) -> Optional[Pos]:
        heart = snap["players"][other_player(self.player)]["heart"]
        return tuple(heart) if heart else None

    def _objectives(self, snap: Snapshot) -> List[Pos]:
        """Nexuses not yet owned, or the enemy heart when all are held."""
        targets = [(n["x"], n["y"]) for n in snap["nexuses"] if n["owner"] != self.player]
        if not targets:
            heart = self._enemy_heart(snap)
            if heart:
                targets.append(heart)
        return targets

    # ------------------------------------------------------------------
    # Spawn phase
    # ------------------------------------------------------------------
    def _choose_archetype(self, game, energy: int, counts: Dict[str, int]) -> Optional[str]:
        def affordable(aid: str) -> bool:
            arch = get_archetype(aid)
            return arch is not None and arch.purchasable and arch.cost <= energy

        if affordable("naval") and game.spawnable_tiles("naval", self.player):
            return "naval"
        for aid, wanted in COMPOSITION:
            if counts.get(aid, 0) < wanted and affordable(aid):
                return aid
        for aid in ("scout", "soldier"):
            if affordable(aid):
                return aid
        for arch in purchasable_archetypes():
            if arch.cost <= energy:
                return arch.id
        return None

    def _choose_tile(self, snap: Snapshot, tiles: List[Pos]) -> Optional[Pos]:
        if not tiles:
            return None
        targets = self._objectives(snap)
        if not targets:
            return tiles[0]
        return min(tiles, key=lambda t: (min(manhattan(t, o) for o in targets), t[1], t[0]))

    def spawn_phase(self, game) -> int:
        """Buy up to ``max_spawns`` units; returns how many were placed."""
        spawned = 0
        snap = game.snapshot()
        counts: Dict[str, int] = {}
        for unit in self._own_units(snap):
            counts[unit["archetype_id"]] = counts.get(unit["archetype_id"], 0) + 1
        rejected: set = set()
        while spawned < self.max_spawns:
            energy = snap["players"][self.player]["energy"]
            if energy <= self.reserve:
                break
            aid = self._choose_archetype(game, energy, counts)
            if aid is None or aid in rejected:
                break
            tile = self._choose_tile(snap, game.spawnable_tiles(aid, self.player))
            if tile is None or not game.spawn(aid, tile[0], tile[1], self.player):
                rejected.add(aid)
                break
            counts[aid] = counts.get(aid, 0) + 1
            spawned += 1
            self.log.append("spawn %s at %s" % (aid, tile))
            snap = game.snapshot()
        return spawned

    # ------------------------------------------------------------------
    # Unit phase
    # ------------------------------------------------------------------
    def _try_ability(self, game, snap: Snapshot, unit: UnitView) -> bool:
        arch = get_archetype(unit["archetype_id"])
        active = arch.active_ability() if arch else None
        if active is None:
            return False
        slot, _ability = active
        if unit["cooldowns"].get(slot, 0) > 0:
            return False

        pos = (unit["x"], unit["y"])
        enemies = self._enemy_units(snap, unit["realm"])
        aid = unit["archetype_id"]
        target: Optional[Pos] = None
        if aid == "medic":
            wounded = [
                u
                for u in _units(snap)
                if u["owner"] == self.player
                and u["realm"] == unit["realm"]
                and u["hp"] < u["max_hp"]
                and manhattan(pos, (u["x"], u["y"])) == 1
            ]
            if not wounded:
                return False
        elif aid == "builder":
            water = [
                (x, y)
                for x in range(pos[0] - 1, pos[0] + 2)
                for y in range(pos[1] - 1, pos[1] + 2)
                if (x, y) != pos
                and _cell(snap, x, y) is not None
                and _cell(snap, x, y)["terrain"] == constants.WATER
            ]
            if not water:
                return False
        elif aid in ("archer", "soldier"):
            in_range = [e for e in enemies if _in_range(unit, e["x"], e["y"])]
            if not in_range:
                return False
            victim = min(in_range, key=lambda e: (e["hp"], e["id"]))
            target = (victim["x"], victim["y"])
        elif aid == "naval":
            if not any(manhattan(pos, (e["x"], e["y"])) <= constants.BOMBARD_RANGE for e in enemies):
                return False
        elif aid == "tank":
            if not any(manhattan(pos, (e["x"], e["y"])) == 1 for e in enemies):
                return False
        elif aid == "scout":
            objectives = self._objectives(snap)
            if not objectives or min(manhattan(pos, o) for o in objectives) < 4:
                return False
        else:
            return False

        if target is None:
            result = game.use_ability(unit["id"], slot)
        else:
            result = game.use_ability(unit["id"], slot, target[0], target[1])
        if result:
            self.log.append("unit %d ability %s" % (unit["id"], aid))
        return bool(result)

    def _try_attack(self, game, snap: Snapshot, unit: UnitView) -> bool:
        enemies = [
            e for e in self._enemy_units(snap, unit["realm"]) if _in_range(unit, e["x"], e["y"])
        ]
        enemies.sort(key=lambda e: (e["hp"], e["id"]))
        for enemy in enemies:
            if game.attack(unit["id"], enemy["x"], enemy["y"]):
                self.log.append("unit %d attacks %s" % (unit["id"], (enemy["x"], enemy["y"])))
                return True
        heart = self._enemy_heart(snap)
        if heart and unit["realm"] == constants.OVERWORLD and _in_range(unit, *heart):
            if game.attack(unit["id"], *heart):
                self.log.append("unit %d attacks the heart" % unit["id"])
                return True
        return False

    def _step_towards(self, game, snap: Snapshot, unit: UnitView, goal: Pos) -> bool:
        path = find_path(snap, unit, goal)
        if not path:
            return False
        budget = unit["move"] + unit["temp_move_bonus"]
        steps = path[:budget]
        # Try the furthest step first; the engine has the final word
        for x, y in reversed(steps):
            if not _passable(snap, unit, x, y):
                continue
            if game.move(unit["id"], x, y):
                self.log.append("unit %d moves to %s" % (unit["id"], (x, y)))
                return True
        return False

    def _act(self, game, unit: UnitView) -> bool:
        snap = game.snapshot()
        if self._try_ability(game, snap, unit):
            return True
        if self._try_attack(game, snap, unit):
            return True

        pos = (unit["x"], unit["y"])
        cell = _cell(snap, *pos)
        if cell["nexus"] is not None and cell["nexus"]["owner"] != self.player:
            # Hold the tile until the capture scan at the end of the turn
            return False

        nexuses = [
            (n["x"], n["y"])
            for n in snap["nexuses"]
            if n["owner"] != self.player and _cell(snap, n["x"], n["y"])[_slot(unit["realm"])] is None
        ]
        if nexuses:
            goal = min(nexuses, key=lambda n: (manhattan(pos, n), n[1], n[0]))
            if self._step_towards(game, snap, unit, goal):
                return True

        enemies = self._enemy_units(snap, unit["realm"])
        if enemies:
            nearest = min(enemies, key=lambda e: (manhattan(pos, (e["x"], e["y"])), e["id"]))
            return self._step_towards(game, snap, unit, (nearest["x"], nearest["y"]))
        heart = self._enemy_heart(snap)
        if heart:
            return self._step_towards(game, snap, unit, heart)
        centre = snap["size"] // 2
        return self._step_towards(game, snap, unit, (centre, centre))

    def unit_phase(self, game) -> int:
        """Give each owned unit at most one command; returns how many acted."""
        acted = 0
        for view in self._own_units(game.snapshot()):
            if game.winner is not None:
                break
            current = next((u for u in _units(game.snapshot()) if u["id"] == view["id"]), None)
            if current is None or current["actions_left"] <= 0:
                continue
            if self._act(game, current):
                acted += 1
        return acted

    def take_turn(self, game) -> List[str]:
        """Play the spawn and unit phases; the caller ends the turn."""
        self.log = []
        if game.winner is not None or game.current_player != self.player:
            return self.log
        self.spawn_phase(game)
        self.unit_phase(game)
        logger.debug("Opponent turn: %s", self.log)
        return self.log
