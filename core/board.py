"""Board grid and per-realm cell occupancy."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

import constants
from core.entities import Unit


@dataclass
class Marker:
    """A nexus, spawner or heart placed on a cell."""

    owner: Optional[int] = None


@dataclass
class Cell:
    """Single square of the board.

    ``units`` holds one slot per realm; the overworld and shadow slots are
    independent so a shade hiding in the shadow realm can share coordinates
    with an overworld unit.
    """

    x: int
    y: int
    terrain: str = constants.PLAIN
    units: Dict[str, Optional[Unit]] = field(
        default_factory=lambda: {realm: None for realm in constants.REALMS}
    )
    nexus: Optional[Marker] = None
    spawner: Optional[Marker] = None
    heart: Optional[Marker] = None
    blocked_for_movement: bool = False

    @property
    def unit(self) -> Optional[Unit]:
        """Overworld occupant."""
        return self.units[constants.OVERWORLD]

    @property
    def shadow_unit(self) -> Optional[Unit]:
        return self.units[constants.SHADOW]

    def unit_in(self, realm: str) -> Optional[Unit]:
        return self.units[realm]

    def has_marker(self) -> bool:
        return self.nexus is not None or self.spawner is not None or self.heart is not None


class Board:
    """Fixed ``size`` x ``size`` array of :class:`Cell` objects.

    The board performs bounds checks and slot access only; game rules live in
    :mod:`core.actions` and :mod:`core.turn`.
    """

    def __init__(self, size: int | None = None) -> None:
        self.size = size if size is not None else constants.BOARD_SIZE
        self.grid: List[List[Cell]] = [
            [Cell(x, y) for x in range(self.size)] for y in range(self.size)
        ]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def cell(self, x: int, y: int) -> Optional[Cell]:
        if not self.in_bounds(x, y):
            return None
        return self.grid[y][x]

    def cells(self) -> Iterator[Cell]:
        for row in self.grid:
            yield from row

    def mirror(self, x: int, y: int) -> Tuple[int, int]:
        """Return the point reflection of ``(x, y)`` through the centre."""
        return self.size - 1 - x, self.size - 1 - y

    # ------------------------------------------------------------------
    # Occupancy
    # ------------------------------------------------------------------
    def unit_at(self, x: int, y: int, realm: str = constants.OVERWORLD) -> Optional[Unit]:
        cell = self.cell(x, y)
        if cell is None:
            return None
        return cell.units[realm]

    def place_unit(self, unit: Unit) -> None:
        """Store ``unit`` in the slot matching its position and realm."""
        self.grid[unit.y][unit.x].units[unit.realm] = unit

    def clear_slot(self, x: int, y: int, realm: str) -> Optional[Unit]:
        cell = self.cell(x, y)
        if cell is None:
            return None
        unit = cell.units[realm]
        cell.units[realm] = None
        return unit

    def remove_unit(self, unit: Unit) -> None:
        """Remove ``unit`` from its slot if it is still the occupant."""
        cell = self.cell(unit.x, unit.y)
        if cell is not None and cell.units[unit.realm] is unit:
            cell.units[unit.realm] = None

    def relocate(self, unit: Unit, x: int, y: int) -> None:
        """Move ``unit`` to ``(x, y)`` within its current realm."""
        self.remove_unit(unit)
        unit.x, unit.y = x, y
        self.place_unit(unit)

    def units(self, realm: str | None = None) -> Iterator[Unit]:
        """Iterate over units on the board, both realms unless ``realm`` given."""
        realms = constants.REALMS if realm is None else (realm,)
        for cell in self.cells():
            for r in realms:
                unit = cell.units[r]
                if unit is not None:
                    yield unit

    def find_unit(self, unit_id: int) -> Optional[Unit]:
        for unit in self.units():
            if unit.id == unit_id:
                return unit
        return None

    def neighbours4(self, x: int, y: int) -> Iterator[Tuple[int, int]]:
        for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny):
                yield nx, ny

    def neighbours8(self, x: int, y: int) -> Iterator[Tuple[int, int]]:
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                nx, ny = x + dx, y + dy
                if self.in_bounds(nx, ny):
                    yield nx, ny
