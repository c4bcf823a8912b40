import constants
from core.abilities import AbilityResult
from core.game import Game
from state.event_bus import EVENT_BUS, ON_INFO_MESSAGE


def test_new_game_generates_a_board():
    game = Game(seed=3)
    snap = game.snapshot()
    assert snap["size"] == constants.BOARD_SIZE
    assert snap["turn"] == 1 and snap["current_player"] == 1
    assert len(snap["nexuses"]) == 4
    for player in constants.PLAYERS:
        assert snap["players"][player]["energy"] == game.starting_energy
        assert snap["players"][player]["hp"] == constants.STARTING_HP
    assert Game(seed=3).snapshot() == snap


def test_snapshot_is_independent(blank_game, place):
    game = blank_game()
    unit = place(game, "soldier", 1, 5, 5)
    snap = game.snapshot()
    snap["board"][5][5]["unit"]["hp"] = 99
    snap["players"][1]["purchased"].append("tank")
    snap["board"][0][0]["terrain"] = constants.WATER
    assert unit.hp == 6
    assert game.state.players[1].purchased == set()
    assert game.state.board.cell(0, 0).terrain == constants.PLAIN
    assert game.snapshot()["board"][5][5]["unit"]["hp"] == 6


def test_commands_accept_unit_ids(blank_game, place):
    game = blank_game()
    soldier = place(game, "soldier", 1, 5, 5)
    assert game.move(soldier.id, 5, 6)
    assert game.unit_by_id(soldier.id) is soldier
    assert game.unit_at(5, 6) is soldier
    assert game.units_for(1) == [soldier]
    assert game.reachable_tiles(12345) == set()


def test_two_step_targeting(blank_game, place):
    game = blank_game()
    messages = []
    EVENT_BUS.subscribe(ON_INFO_MESSAGE, messages.append)
    archer = place(game, "archer", 1, 5, 5)
    enemy = place(game, "tank", 2, 5, 3)
    assert game.begin_ability(archer, 0) is True
    assert game.snapshot()["ability_targeting"] == {"unit_id": archer.id, "ability_index": 0}
    assert archer.actions_left == constants.ACTIONS_PER_TURN

    result = game.confirm_ability_target(0, 0)
    assert not result
    assert game.state.ability_targeting is not None
    assert archer.cooldowns == {}

    result = game.confirm_ability_target(5, 3)
    assert isinstance(result, AbilityResult) and result
    assert game.state.ability_targeting is None
    assert enemy.hp == 10
    assert any("target" in m for m in messages)


def test_self_targeted_ability_resolves_at_once(blank_game, place):
    game = blank_game()
    scout = place(game, "scout", 1, 5, 5)
    result = game.begin_ability(scout, 0)
    assert result
    assert scout.temp_move_bonus == constants.DASH_BONUS
    assert game.state.ability_targeting is None
    assert not game.begin_ability(scout, 0)


def test_cancel_ability(blank_game, place):
    game = blank_game()
    medic = place(game, "medic", 1, 5, 5)
    assert game.begin_ability(medic, 0) is True
    game.cancel_ability()
    assert game.state.ability_targeting is None
    assert not game.confirm_ability_target(5, 6)


def test_activate_tile_buys_selects_moves_and_attacks(blank_game, place):
    game = blank_game()
    assert game.choose_shop_item("soldier")
    assert not game.activate_tile(5, 5)  # not next to the spawner
    assert game.state.pending_shop_selection[1] == "soldier"
    assert game.activate_tile(5, 8)
    assert game.state.pending_shop_selection[1] is None
    soldier = game.unit_at(5, 8)
    assert soldier is not None and soldier.owner == 1

    assert game.activate_tile(5, 8)
    assert game.selected_unit() is soldier
    assert game.activate_tile(5, 6)
    assert soldier.pos == (5, 6)

    enemy = place(game, "soldier", 2, 5, 5)
    assert game.activate_tile(5, 5)
    assert enemy.hp == 4
    assert soldier.actions_left == 0
    assert not game.activate_tile(5, 5)
    assert enemy.hp == 4


def test_activate_tile_resolves_pending_target(blank_game, place):
    game = blank_game()
    archer = place(game, "archer", 1, 5, 5)
    enemy = place(game, "scout", 2, 5, 3)
    game.begin_ability(archer, 0)
    assert not game.activate_tile(0, 0)
    assert game.activate_tile(5, 3)
    assert enemy.hp == 1


def test_activate_tile_selects_own_shadow_unit(blank_game, place):
    game = blank_game()
    shade = place(game, "shadow", 1, 3, 3, constants.SHADOW)
    assert game.activate_tile(3, 3)
    assert game.selected_unit() is shade
    assert not game.activate_tile(0, 0)
    assert game.selected_unit() is None


def test_selection_rules(blank_game, place):
    game = blank_game()
    enemy = place(game, "soldier", 2, 5, 5)
    assert not game.select_unit(enemy)
    assert not game.activate_tile(5, 5)
    assert game.select_unit(None)
    assert not game.choose_shop_item("wolf")
    assert not game.choose_shop_item("dragon")
    assert game.spawn("soldier", 5, 8)
    assert not game.choose_shop_item("soldier")
    assert game.choose_shop_item("archer")
    assert game.choose_shop_item(None)
    assert game.state.pending_shop_selection[1] is None


def test_shop_offer_groups_by_cost(blank_game):
    game = blank_game()
    offer = game.shop_offer()
    assert [a.id for a in offer[3]] == ["soldier"]
    assert sorted(a.id for a in offer[5]) == ["builder", "medic"]
    assert 0 not in offer
    assert game.spawnable_tiles("dragon") == []
    assert (5, 8) in game.spawnable_tiles("soldier")


def test_reset_game_starts_over(blank_game, place):
    game = blank_game()
    place(game, "soldier", 1, 5, 5)
    game.state.winner = 1
    game.state.turn = 9
    game.reset_game(seed=11)
    snap = game.snapshot()
    assert snap["winner"] is None
    assert snap["turn"] == 1
    assert len(snap["nexuses"]) == 4
    assert not game.units_for(1)
    assert snap == Game(seed=11, starting_energy=10).snapshot()
