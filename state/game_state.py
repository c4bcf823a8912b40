"""Data structures representing the game state.

:class:`GameState` is the single mutable aggregate of a game: the board, the
two players' economies, the turn counter and the nexus registry.  Engine
functions in :mod:`core` receive the state explicitly; nothing here reaches
for module level globals.  :meth:`GameState.snapshot` produces the read model
handed to renderers and the automated opponent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

import constants
from core.board import Board, Cell


@dataclass
class Player:
    """Economy and structure locations of one player."""

    hp: int = constants.STARTING_HP
    energy: int = constants.STARTING_ENERGY
    energy_turns_used: int = 0
    purchased: Set[str] = field(default_factory=set)
    spawner: Optional[Tuple[int, int]] = None
    heart: Optional[Tuple[int, int]] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "hp": self.hp,
            "energy": self.energy,
            "energy_turns_used": self.energy_turns_used,
            "purchased": sorted(self.purchased),
            "spawner": self.spawner,
            "heart": self.heart,
        }


@dataclass
class NexusEntry:
    """Registry mirror of a nexus marker for quick iteration."""

    x: int
    y: int
    owner: Optional[int] = None


@dataclass
class AbilityTargeting:
    """Pending two-step ability invocation waiting for a target tile."""

    unit_id: int
    ability_index: int


@dataclass
class GameState:
    """High level container holding dynamic game information."""

    board: Board = field(default_factory=Board)
    turn: int = 1
    current_player: int = 1
    players: Dict[int, Player] = field(default_factory=dict)
    nexuses: List[NexusEntry] = field(default_factory=list)
    winner: Optional[int] = None
    last_nexus_damage_turn: Dict[Tuple[int, int], int] = field(default_factory=dict)
    unit_id_counter: int = 1
    # UI-facing scratch fields; never read by the rules
    selected_unit_id: Optional[int] = None
    pending_shop_selection: Dict[int, Optional[str]] = field(
        default_factory=lambda: {p: None for p in constants.PLAYERS}
    )
    ability_targeting: Optional[AbilityTargeting] = None

    @classmethod
    def new(cls, size: int | None = None, starting_energy: int | None = None) -> "GameState":
        """Return a fresh state with an empty board and two players."""
        energy = constants.STARTING_ENERGY if starting_energy is None else starting_energy
        return cls(
            board=Board(size),
            players={
                p: Player(hp=constants.STARTING_HP, energy=energy) for p in constants.PLAYERS
            },
        )

    # ------------------------------------------------------------------
    @property
    def is_over(self) -> bool:
        return self.winner is not None

    def next_unit_id(self) -> int:
        uid = self.unit_id_counter
        self.unit_id_counter += 1
        return uid

    def nexus_entry(self, x: int, y: int) -> Optional[NexusEntry]:
        for entry in self.nexuses:
            if entry.x == x and entry.y == y:
                return entry
        return None

    def clear_scratch(self) -> None:
        self.selected_unit_id = None
        self.ability_targeting = None

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------
    @staticmethod
    def _cell_view(cell: Cell) -> Dict[str, Any]:
        def marker(m):
            return None if m is None else {"owner": m.owner}

        return {
            "x": cell.x,
            "y": cell.y,
            "terrain": cell.terrain,
            "nexus": marker(cell.nexus),
            "spawner": marker(cell.spawner),
            "heart": marker(cell.heart),
            "blocked_for_movement": cell.blocked_for_movement,
            "unit": cell.unit.summary() if cell.unit else None,
            "shadow_unit": cell.shadow_unit.summary() if cell.shadow_unit else None,
        }

    def snapshot(self) -> Dict[str, Any]:
        """Return a deep, independent copy of the public state.

        Only plain dicts, lists, tuples and scalars are returned, so callers
        may mutate the result freely without affecting the game.
        """

        targeting = None
        if self.ability_targeting is not None:
            targeting = {
                "unit_id": self.ability_targeting.unit_id,
                "ability_index": self.ability_targeting.ability_index,
            }
        return {
            "size": self.board.size,
            "board": [[self._cell_view(c) for c in row] for row in self.board.grid],
            "players": {p: player.as_dict() for p, player in self.players.items()},
            "current_player": self.current_player,
            "turn": self.turn,
            "nexuses": [{"x": n.x, "y": n.y, "owner": n.owner} for n in self.nexuses],
            "winner": self.winner,
            "selected_unit_id": self.selected_unit_id,
            "ability_targeting": targeting,
            "pending_shop_selection": dict(self.pending_shop_selection),
        }
