"""Loader normalising unit archetype definitions into :class:`Archetype`."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

import constants
from core.entities import ABILITY_TARGETS, ACTIVE, PASSIVE, AbilityDef, Archetype
from .core import Context, read_json, require_keys

logger = logging.getLogger(__name__)

# Alternative spellings accepted in manifests, mapped to the canonical field
_STAT_ALIASES = {
    "atk": "attack",
    "health": "hp",
    "max_hp": "hp",
    "attack_range": "range",
    "speed": "move",
}
_FLAG_ALIASES = {
    "canClimbMountain": "can_climb_mountain",
    "canCrossWater": "can_cross_water",
    "waterOnly": "water_only",
    "canAttackDiagonal": "can_attack_diagonal",
    "summonOnly": "summon_only",
}
_FLAGS = (
    "can_climb_mountain",
    "can_cross_water",
    "water_only",
    "can_attack_diagonal",
    "summon_only",
)
_REQUIRED_STATS = ("cost", "hp", "attack", "range", "move")


def _normalise_stats(raw: Mapping[str, Any]) -> Dict[str, int]:
    stats: Dict[str, int] = {}
    for key, value in raw.items():
        canonical = _STAT_ALIASES.get(key, key)
        # An explicit canonical key wins over an alias
        if canonical in stats and key != canonical:
            continue
        stats[canonical] = int(value)
    return stats


def _parse_abilities(items: Sequence[Any]) -> List[AbilityDef]:
    """Convert ability declarations into :class:`AbilityDef` entries.

    Entries may be mappings (``{"name": ..., "type": ..., "cooldown": ...}``)
    or plain ``"name:cooldown"`` strings describing an active ability.
    """

    abilities: List[AbilityDef] = []
    for item in items:
        if isinstance(item, str):
            parts = item.split(":")
            cooldown = int(parts[1]) if len(parts) > 1 else 0
            abilities.append(AbilityDef(name=parts[0], kind=ACTIVE, cooldown=cooldown))
            continue
        require_keys(item, ["name"], where="ability declaration")
        kind = item.get("type", item.get("kind", ACTIVE))
        if kind not in (ACTIVE, PASSIVE):
            raise ValueError(f"Unknown ability type '{kind}' for {item['name']}")
        target = item.get("target", "self")
        if kind == ACTIVE and target not in ABILITY_TARGETS:
            raise ValueError(f"Unknown ability target '{target}' for {item['name']}")
        abilities.append(
            AbilityDef(
                name=item["name"],
                kind=kind,
                text=item.get("text", ""),
                cooldown=int(item.get("cooldown", 0) or 0),
                target=target,
            )
        )
    if len(abilities) > 2:
        raise ValueError("A unit may declare at most two abilities")
    if sum(1 for a in abilities if a.is_active) > 1:
        raise ValueError("A unit may declare at most one active ability")
    return abilities


def parse_archetype(entry: Mapping[str, Any], templates: Mapping[str, Any] | None = None) -> Archetype:
    """Build an :class:`Archetype` from a single manifest ``entry``."""

    require_keys(entry, ["id", "stats"], where="unit entry")
    entry = dict(entry)
    templates = templates or {}

    # Merge entry with template if referenced
    tmpl_name = entry.get("template")
    if tmpl_name:
        if tmpl_name not in templates:
            raise KeyError(f"Unknown template '{tmpl_name}' for {entry['id']}")
        tmpl = templates[tmpl_name]
        merged = dict(tmpl)
        stats = {**_normalise_stats(tmpl.get("stats", {})), **_normalise_stats(entry["stats"])}
        merged.update(entry)
        merged["stats"] = stats
        entry = merged
    stats = _normalise_stats(entry["stats"])
    require_keys(stats, _REQUIRED_STATS, where=f"stats of {entry['id']}")

    flags: Dict[str, bool] = {}
    for key, value in entry.items():
        canonical = _FLAG_ALIASES.get(key, key)
        if canonical in _FLAGS:
            flags[canonical] = bool(value)
    if entry["id"] in constants.DIAGONAL_ATTACK_ARCHETYPES:
        flags["can_attack_diagonal"] = True

    return Archetype(
        id=entry["id"],
        name=entry.get("name", entry["id"]),
        symbol=entry.get("symbol", "?"),
        description=entry.get("description", ""),
        cost=stats["cost"],
        hp=stats["hp"],
        attack=stats["attack"],
        range=stats["range"],
        move=stats["move"],
        abilities=tuple(_parse_abilities(entry.get("abilities", []))),
        **flags,
    )


def load_units(
    ctx: Context,
    manifest: str = "units/units.json",
    section: str = "units",
    strict: bool = True,
) -> Dict[str, Archetype]:
    """Load unit archetypes from ``manifest``.

    The manifest may contain a ``templates`` mapping providing default values
    for entries.  Data can either be stored directly as a list at the root or
    wrapped in a mapping under ``section``.  Returns a mapping of archetype id
    to :class:`Archetype` in manifest order.  A missing manifest raises
    :class:`FileNotFoundError` unless ``strict`` is false, in which case an
    empty catalog is returned.
    """

    try:
        data = read_json(ctx, manifest)
    except FileNotFoundError:
        if strict:
            raise
        logger.warning("Unit manifest %s not found; catalog is empty", manifest)
        return {}
    templates: Dict[str, dict] = {}
    if isinstance(data, dict):
        templates = data.get("templates", {})
        entries = data.get(section, [])
    else:
        entries = list(data)

    units: Dict[str, Archetype] = {}
    for entry in entries:
        archetype = parse_archetype(entry, templates)
        units[archetype.id] = archetype
    return units
