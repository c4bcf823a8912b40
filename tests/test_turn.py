import constants
from core import turn
from state.event_bus import EVENT_BUS, ON_GAME_OVER, ON_TURN_END


def test_end_turn_hands_over_and_grants_stipend(blank_game):
    game = blank_game()
    seen = []
    EVENT_BUS.subscribe(ON_TURN_END, lambda t, p: seen.append((t, p)))
    game.end_turn()
    state = game.state
    assert (state.turn, state.current_player) == (2, 2)
    assert state.players[2].energy == 10 + constants.ENERGY_PER_TURN
    assert state.players[2].energy_turns_used == 1
    assert state.players[1].energy == 10
    assert seen == [(2, 2)]
    game.end_turn()
    assert (state.turn, state.current_player) == (3, 1)
    assert state.players[1].energy == 15


def test_stipend_is_capped_and_limited(blank_game):
    game = blank_game()
    p2 = game.state.players[2]
    p2.energy = constants.ENERGY_CAP - 2
    game.end_turn()
    assert p2.energy == constants.ENERGY_CAP

    p1 = game.state.players[1]
    p1.energy_turns_used = constants.ENERGY_TURNS
    game.end_turn()
    assert p1.energy == 10
    assert p1.energy_turns_used == constants.ENERGY_TURNS


def test_stipend_counts_ten_grants(blank_game):
    game = blank_game(starting_energy=0)
    for _ in range(2 * constants.ENERGY_TURNS + 4):
        game.end_turn()
        if game.winner is not None:
            break
    for player in constants.PLAYERS:
        assert game.state.players[player].energy_turns_used == constants.ENERGY_TURNS
        assert game.state.players[player].energy == constants.ENERGY_CAP


def test_upkeep_refreshes_only_the_new_player(blank_game, place):
    game = blank_game()
    mine = place(game, "scout", 1, 3, 3)
    theirs = place(game, "scout", 2, 7, 7)
    for unit in (mine, theirs):
        unit.actions_left = 0
        unit.temp_move_bonus = 2
        unit.cooldowns[0] = 2
    game.end_turn()
    assert theirs.actions_left == constants.ACTIONS_PER_TURN
    assert theirs.temp_move_bonus == 0
    assert theirs.cooldown(0) == 1
    assert mine.actions_left == 0
    assert mine.temp_move_bonus == 2
    assert mine.cooldown(0) == 2
    game.end_turn()
    assert mine.actions_left == constants.ACTIONS_PER_TURN
    assert mine.cooldown(0) == 1


def test_cooldown_gates_reuse_until_owner_turns_pass(blank_game, place):
    game = blank_game()
    scout = place(game, "scout", 1, 3, 3)
    assert game.use_ability(scout, 0)
    game.end_turn()
    game.end_turn()
    assert scout.cooldown(0) == 1
    assert not game.use_ability(scout, 0)
    game.end_turn()
    game.end_turn()
    assert scout.cooldown(0) == 0
    assert game.use_ability(scout, 0)


def test_vanished_unit_returns_on_its_owners_next_turn(blank_game, place):
    game = blank_game()
    board = game.state.board
    shade = place(game, "shadow", 1, 5, 5)
    assert game.use_ability(shade, 0)
    game.end_turn()  # player 2 to act; the shade stays hidden
    assert shade.realm == constants.SHADOW
    game.end_turn()
    assert shade.realm == constants.OVERWORLD
    assert board.unit_at(5, 5) is shade
    assert board.unit_at(5, 5, constants.SHADOW) is None
    assert shade.shadow_return_on_turn is None
    assert shade.hidden_until_turn is None


def test_shadow_return_waits_for_free_overworld_slot(blank_game, place):
    game = blank_game()
    shade = place(game, "shadow", 2, 5, 5, constants.SHADOW)
    shade.shadow_return_on_turn = 2
    blocker = place(game, "scout", 1, 5, 5)
    game.end_turn()
    assert shade.realm == constants.SHADOW
    assert shade.shadow_return_on_turn == 2
    game.state.board.remove_unit(blocker)
    game.end_turn()
    game.end_turn()
    assert shade.realm == constants.OVERWORLD


def test_stalemate_awards_the_opponent(blank_game):
    game = blank_game()
    winners = []
    EVENT_BUS.subscribe(ON_GAME_OVER, winners.append)
    p2 = game.state.players[2]
    p2.energy_turns_used = constants.ENERGY_TURNS
    p2.energy = 1
    game.end_turn()
    assert game.winner == 1
    assert winners == [1]


def test_no_stalemate_with_units_or_affordable_spawns(blank_game, place):
    game = blank_game()
    p2 = game.state.players[2]
    p2.energy_turns_used = constants.ENERGY_TURNS
    p2.energy = 2  # a scout is still affordable
    game.end_turn()
    assert game.winner is None

    other = blank_game()
    other.state.players[2].energy_turns_used = constants.ENERGY_TURNS
    other.state.players[2].energy = 0
    place(other, "shadow", 2, 3, 3, constants.SHADOW)
    other.end_turn()
    assert other.winner is None


def test_stalemate_when_spawn_ring_is_full(blank_game, place):
    game = blank_game()
    state = game.state
    state.players[1].energy_turns_used = constants.ENERGY_TURNS
    state.players[1].energy = 50
    sx, sy = state.players[1].spawner
    for x, y in state.board.neighbours8(sx, sy):
        if state.board.cell(x, y).heart is None:
            place(game, "scout", 2, x, y)
    assert not turn.can_player_place_any_affordable_unit(state, 1)
    assert turn.is_stalemated(state, 1)


def test_end_turn_clears_selection_and_targeting(blank_game, place):
    game = blank_game()
    archer = place(game, "archer", 1, 5, 5)
    assert game.begin_ability(archer, 0) is True
    game.select_unit(archer)
    game.end_turn()
    assert game.state.selected_unit_id is None
    assert game.state.ability_targeting is None


def test_end_turn_after_game_over_is_a_no_op(blank_game):
    game = blank_game()
    game.state.winner = 2
    game.end_turn()
    assert (game.state.turn, game.state.current_player) == (1, 1)
    assert game.state.players[2].energy == 10
