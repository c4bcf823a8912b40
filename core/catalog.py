"""Static registry of unit archetypes.

The catalog is read once from ``assets/units/units.json``.  Lookups never
raise: an unknown id returns ``None`` and the caller decides how to report
it.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, TYPE_CHECKING

from core.entities import Archetype
from loaders.core import default_context
from loaders.units_loader import load_units

if TYPE_CHECKING:  # pragma: no cover
    from state.game_state import GameState


UNIT_TYPES: Dict[str, Archetype] = load_units(default_context())


def get_archetype(archetype_id: str) -> Optional[Archetype]:
    """Return the archetype registered under ``archetype_id`` or ``None``."""
    return UNIT_TYPES.get(archetype_id)


def purchasable_archetypes() -> List[Archetype]:
    """Archetypes that may ever be bought, cheapest first."""
    return sorted(
        (a for a in UNIT_TYPES.values() if a.purchasable), key=lambda a: (a.cost, a.id)
    )


def shop_entries(purchased: Iterable[str]) -> List[Archetype]:
    """Archetypes still on sale, in the order the shop lists them."""
    owned = set(purchased)
    return [a for a in purchasable_archetypes() if a.id not in owned]


def shop_offer(state: "GameState", player: int) -> Dict[int, List[Archetype]]:
    """Return the shop listing for ``player`` grouped by cost.

    Each archetype is a one-time unlock per game: entries already in the
    player's purchased set are not offered again.
    """

    offer: Dict[int, List[Archetype]] = {}
    for archetype in shop_entries(state.players[player].purchased):
        offer.setdefault(archetype.cost, []).append(archetype)
    return offer
