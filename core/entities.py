"""
Entity definitions for the Nexus tactics game.

This module defines the static description of unit archetypes and the class
used to represent a unit on the board.  It does not depend on Pygame, so the
rules engine can be tested without graphics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import constants

# Ability declaration kinds
ACTIVE = "active"
PASSIVE = "passive"

# Target types of active abilities.  ``self`` and ``auto`` resolve from the
# unit's own context; the others expect target coordinates from the caller.
SELF_TARGETS = {"self", "auto"}
ABILITY_TARGETS = {
    "self",
    "auto",
    "enemy_in_range",
    "adjacent_water",
    "adjacent_friendly",
    "adjacent_enemy",
    "manhattan_2_enemy",
}


@dataclass(frozen=True)
class AbilityDef:
    """One ability slot of an archetype."""

    name: str
    kind: str = ACTIVE
    text: str = ""
    cooldown: int = 0
    target: str = "self"

    @property
    def is_active(self) -> bool:
        return self.kind == ACTIVE

    @property
    def needs_target(self) -> bool:
        """Whether the caller must supply target coordinates."""
        return self.is_active and self.target not in SELF_TARGETS


@dataclass(frozen=True)
class Archetype:
    """Base statistics shared by all units of a given type.

    Instances are produced by :mod:`loaders.units_loader`, which resolves
    templates and field aliases so every entry follows this single schema.
    """

    id: str
    name: str
    cost: int
    hp: int
    attack: int
    range: int
    move: int
    symbol: str = "?"
    description: str = ""
    can_climb_mountain: bool = False
    can_cross_water: bool = False
    water_only: bool = False
    can_attack_diagonal: bool = False
    summon_only: bool = False
    abilities: Tuple[AbilityDef, ...] = ()

    @property
    def purchasable(self) -> bool:
        return not self.summon_only and self.cost > 0

    def active_ability(self) -> Optional[Tuple[int, AbilityDef]]:
        """Return ``(slot, ability)`` for the first active ability, if any."""
        for index, ability in enumerate(self.abilities):
            if ability.is_active:
                return index, ability
        return None


@dataclass
class Unit:
    """A unit standing on the board.

    Combat statistics are copied from the archetype at spawn time so they can
    be modified per instance.  ``cooldowns`` maps an ability slot index to
    the number of owner turns left before the ability may be used again.
    """

    id: int
    archetype_id: str
    owner: int
    x: int
    y: int
    hp: int
    max_hp: int
    attack: int
    range: int
    move: int
    actions_left: int = 0
    realm: str = constants.OVERWORLD
    temp_move_bonus: int = 0
    cooldowns: Dict[int, int] = field(default_factory=dict)
    hidden_until_turn: Optional[int] = None
    shadow_return_on_turn: Optional[int] = None
    # Turn on which an ability last resolved, for renderer feedback
    ability_used_turn: Optional[int] = None

    @classmethod
    def from_archetype(cls, unit_id: int, archetype: Archetype, owner: int, x: int, y: int) -> "Unit":
        return cls(
            id=unit_id,
            archetype_id=archetype.id,
            owner=owner,
            x=x,
            y=y,
            hp=archetype.hp,
            max_hp=archetype.hp,
            attack=archetype.attack,
            range=archetype.range,
            move=archetype.move,
            actions_left=constants.ACTIONS_PER_TURN,
        )

    @property
    def pos(self) -> Tuple[int, int]:
        return self.x, self.y

    @property
    def is_alive(self) -> bool:
        return self.hp > 0

    @property
    def is_wounded(self) -> bool:
        return self.hp < self.max_hp

    def cooldown(self, slot: int) -> int:
        return self.cooldowns.get(slot, 0)

    def summary(self) -> Dict[str, object]:
        """Return an independent plain-data view used by the read model."""
        return {
            "id": self.id,
            "archetype_id": self.archetype_id,
            "owner": self.owner,
            "x": self.x,
            "y": self.y,
            "realm": self.realm,
            "hp": self.hp,
            "max_hp": self.max_hp,
            "attack": self.attack,
            "range": self.range,
            "move": self.move,
            "actions_left": self.actions_left,
            "temp_move_bonus": self.temp_move_bonus,
            "cooldowns": dict(self.cooldowns),
            "hidden_until_turn": self.hidden_until_turn,
            "shadow_return_on_turn": self.shadow_return_on_turn,
            "ability_used_turn": self.ability_used_turn,
        }


def other_player(player: int) -> int:
    """Return the opponent of ``player``."""
    return 2 if player == 1 else 1


def manhattan(a: Tuple[int, int], b: Tuple[int, int]) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def chebyshev(a: Tuple[int, int], b: Tuple[int, int]) -> int:
    return max(abs(a[0] - b[0]), abs(a[1] - b[1]))


__all__: List[str] = [
    "ACTIVE",
    "PASSIVE",
    "SELF_TARGETS",
    "ABILITY_TARGETS",
    "AbilityDef",
    "Archetype",
    "Unit",
    "other_player",
    "manhattan",
    "chebyshev",
]
