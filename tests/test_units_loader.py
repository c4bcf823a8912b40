import json
import os

import pytest

import loaders.core
from core.catalog import UNIT_TYPES, get_archetype, purchasable_archetypes
from loaders.core import Context, default_context, find_file
from loaders.units_loader import load_units, parse_archetype


def _write_manifest(tmp_path, data, header=""):
    manifest = tmp_path / "units.json"
    manifest.write_text(header + json.dumps(data), encoding="utf-8")
    return Context(str(tmp_path), [""]), manifest.name


def test_bundled_catalog_contents():
    assert set(UNIT_TYPES) == {
        "soldier", "archer", "builder", "naval", "medic", "scout", "tank", "shadow", "wolf"
    }
    soldier = get_archetype("soldier")
    assert (soldier.cost, soldier.hp, soldier.attack, soldier.range, soldier.move) == (3, 6, 2, 1, 2)
    assert get_archetype("archer").range == 3
    assert get_archetype("naval").water_only
    assert get_archetype("missing") is None


def test_builtin_diagonal_attackers():
    assert get_archetype("archer").can_attack_diagonal
    assert get_archetype("naval").can_attack_diagonal
    assert not get_archetype("soldier").can_attack_diagonal


def test_every_archetype_has_at_most_one_active_ability():
    for archetype in UNIT_TYPES.values():
        assert len(archetype.abilities) <= 2
        assert sum(1 for a in archetype.abilities if a.is_active) <= 1


def test_purchasable_excludes_summons_and_is_sorted_by_cost():
    ids = [a.id for a in purchasable_archetypes()]
    assert "wolf" not in ids
    costs = [get_archetype(i).cost for i in ids]
    assert costs == sorted(costs)
    assert ids[0] == "scout"


def test_template_and_aliases_are_normalised(tmp_path):
    data = {
        "templates": {"base": {"stats": {"range": 1, "speed": 2}}},
        "units": [
            {
                "id": "pike",
                "template": "base",
                "canClimbMountain": True,
                "stats": {"cost": 3, "health": 7, "atk": 2},
                "abilities": ["Brace:2"],
            }
        ],
    }
    ctx, name = _write_manifest(tmp_path, data, header="// leading comment\n")
    pike = load_units(ctx, name)["pike"]
    assert pike.hp == 7
    assert pike.attack == 2
    assert pike.move == 2
    assert pike.range == 1
    assert pike.can_climb_mountain
    assert pike.abilities[0].name == "Brace"
    assert pike.abilities[0].cooldown == 2
    assert pike.active_ability()[0] == 0


def test_canonical_stat_wins_over_alias():
    entry = {"id": "x", "stats": {"cost": 1, "hp": 2, "attack": 5, "atk": 1, "range": 1, "move": 1}}
    assert parse_archetype(entry).attack == 5


def test_missing_required_stat_raises():
    with pytest.raises(KeyError):
        parse_archetype({"id": "x", "stats": {"cost": 1, "hp": 2, "attack": 1, "range": 1}})


def test_unknown_ability_target_raises():
    entry = {
        "id": "x",
        "stats": {"cost": 1, "hp": 2, "attack": 1, "range": 1, "move": 1},
        "abilities": [{"name": "Zap", "type": "active", "target": "everywhere"}],
    }
    with pytest.raises(ValueError):
        parse_archetype(entry)


def test_two_active_abilities_raise():
    entry = {
        "id": "x",
        "stats": {"cost": 1, "hp": 2, "attack": 1, "range": 1, "move": 1},
        "abilities": ["One:1", "Two:1"],
    }
    with pytest.raises(ValueError):
        parse_archetype(entry)


def test_missing_manifest(tmp_path):
    ctx = Context(str(tmp_path), [""])
    with pytest.raises(FileNotFoundError):
        load_units(ctx, "nope.json")
    assert load_units(ctx, "nope.json", strict=False) == {}


def test_malformed_manifest_names_the_file(tmp_path):
    (tmp_path / "units.json").write_text("// header\n{\"units\": [", encoding="utf-8")
    ctx = Context(str(tmp_path), [""])
    with pytest.raises(ValueError, match="units.json"):
        load_units(ctx, "units.json")


def test_missing_stat_error_names_the_entry():
    with pytest.raises(KeyError, match="stats of x"):
        parse_archetype({"id": "x", "stats": {"cost": 1, "hp": 2, "attack": 1, "range": 1}})


def test_default_context_finds_catalog_beside_the_modules():
    root = os.path.dirname(os.path.dirname(os.path.abspath(loaders.core.__file__)))
    ctx = default_context()
    assert ctx.repo_root == root
    path = find_file(ctx, os.path.join("units", "units.json"))
    assert path == os.path.join(root, "assets", "units", "units.json")
    assert os.path.isfile(path)
