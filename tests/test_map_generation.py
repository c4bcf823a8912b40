import logging
import random

import pytest

import constants
from core.entities import chebyshev
from mapgen import generate_map, generate_terrain, place_nexuses, terrain_ratios
from mapgen.markers import is_marker_placable, place_hearts, place_spawners
from mapgen.symmetric import impose_symmetry, smooth
from state.game_state import GameState


def _is_symmetric(grid):
    n = len(grid)
    return all(grid[y][x] == grid[n - 1 - y][n - 1 - x] for y in range(n) for x in range(n))


def test_impose_symmetry_mirrors_top_half_and_centre_row():
    grid = [[constants.PLAIN] * 5 for _ in range(5)]
    grid[0][1] = constants.WATER
    grid[2][0] = constants.FOREST
    impose_symmetry(grid)
    assert grid[4][3] == constants.WATER
    assert grid[2][4] == constants.FOREST
    assert _is_symmetric(grid)


@pytest.mark.parametrize("seed", range(8))
def test_generated_terrain_is_centrally_symmetric(seed):
    grid = generate_terrain(11, random.Random(seed))
    assert len(grid) == 11 and all(len(row) == 11 for row in grid)
    assert _is_symmetric(grid)
    assert {t for row in grid for t in row} <= set(constants.TERRAINS)


def test_smoothing_keeps_symmetry(rng):
    grid = generate_terrain(11, rng)
    assert _is_symmetric(smooth(grid, rng))


def test_same_seed_same_terrain():
    assert generate_terrain(11, random.Random(42)) == generate_terrain(11, random.Random(42))


def test_terrain_ratios_on_known_grid():
    grid = [[constants.PLAIN, constants.WATER], [constants.FOREST, constants.MOUNTAIN]]
    ratios = terrain_ratios(grid)
    assert ratios["non_plain"] == pytest.approx(0.75)
    assert ratios[constants.WATER] == pytest.approx(0.25)


def test_unreachable_density_bands_keep_last_attempt(monkeypatch, rng, caplog):
    monkeypatch.setattr(constants, "DENSITY_BANDS", {"non_plain": (2.0, 3.0)})
    monkeypatch.setattr(constants, "MAP_ATTEMPTS", 3)
    with caplog.at_level(logging.WARNING, logger="mapgen.symmetric"):
        grid = generate_terrain(11, rng)
    assert _is_symmetric(grid)
    assert "density bands" in caplog.text


@pytest.mark.parametrize("seed", range(20))
def test_generate_map_places_four_mirrored_neutral_nexuses(seed):
    state = GameState.new()
    generate_map(state, random.Random(seed))
    board = state.board
    assert len(state.nexuses) == 4
    positions = {(n.x, n.y) for n in state.nexuses}
    for entry in state.nexuses:
        assert entry.owner is None
        assert board.mirror(entry.x, entry.y) in positions
        cell = board.cell(entry.x, entry.y)
        assert cell.nexus is not None and cell.nexus.owner is None
        assert not cell.blocked_for_movement
        assert cell.terrain not in constants.ROUGH_TERRAINS


@pytest.mark.parametrize("seed", range(10))
def test_spawners_and_hearts_are_symmetric(seed):
    state = GameState.new()
    generate_map(state, random.Random(seed))
    board = state.board
    p1, p2 = state.players[1], state.players[2]
    assert board.mirror(*p1.spawner) == p2.spawner
    assert board.mirror(*p1.heart) == p2.heart
    assert p1.spawner[1] >= int(board.size * constants.SPAWNER_BAND_START)
    assert chebyshev(p1.spawner, p1.heart) <= constants.HEART_RADIUS
    for pos in (p1.spawner, p2.spawner, p1.heart, p2.heart):
        assert board.cell(*pos).blocked_for_movement
    assert board.cell(*p1.spawner).spawner.owner == 1
    assert board.cell(*p2.heart).heart.owner == 2


def test_nexus_fallback_flattens_terrain_when_nothing_fits(rng):
    state = GameState.new()
    for cell in state.board.cells():
        cell.terrain = constants.FOREST
    placed = place_nexuses(state, rng)
    assert placed == constants.NEXUS_PAIRS
    assert len(state.nexuses) == 2 * constants.NEXUS_PAIRS
    positions = {(n.x, n.y) for n in state.nexuses}
    for x, y in positions:
        assert state.board.mirror(x, y) in positions
        assert (x, y) != state.board.mirror(x, y)
        assert state.board.cell(x, y).terrain == constants.PLAIN


def test_marker_placability_rules():
    state = GameState.new()
    cell = state.board.cell(3, 3)
    assert is_marker_placable(cell)
    cell.terrain = constants.BRIDGE
    assert is_marker_placable(cell)
    for terrain in constants.ROUGH_TERRAINS:
        cell.terrain = terrain
        assert not is_marker_placable(cell)
    assert not is_marker_placable(None)


def _rough_state(terrain=constants.FOREST):
    state = GameState.new()
    for cell in state.board.cells():
        cell.terrain = terrain
    return state


def test_spawner_search_falls_back_to_fixed_tiles(rng, caplog):
    state = _rough_state()
    with caplog.at_level(logging.WARNING, logger="mapgen.markers"):
        p1, p2 = place_spawners(state, rng)
    assert p1 == (5, 9)
    assert p2 == (5, 1)
    assert state.board.cell(5, 9).spawner.owner == 1
    assert state.board.cell(5, 1).blocked_for_movement
    assert "fallback" in caplog.text


def test_hearts_stack_on_spawners_when_nothing_is_free(rng):
    state = _rough_state()
    place_spawners(state, rng)
    h1, h2 = place_hearts(state, rng)
    assert (h1, h2) == ((5, 9), (5, 1))
    assert state.players[1].heart == state.players[1].spawner
    assert state.board.cell(5, 1).heart.owner == 2


def test_heart_uses_the_only_free_adjacent_tile(rng):
    state = _rough_state()
    place_spawners(state, rng)
    state.board.cell(6, 9).terrain = constants.PLAIN
    state.board.cell(4, 1).terrain = constants.PLAIN
    h1, h2 = place_hearts(state, rng)
    assert h1 == (6, 9)
    assert h2 == (4, 1)
    assert chebyshev(h1, state.players[1].spawner) == 1


def test_heart_pair_needs_both_mirrored_tiles(rng):
    state = _rough_state()
    place_spawners(state, rng)
    state.board.cell(6, 9).terrain = constants.PLAIN  # mirror partner (4, 1) stays forest
    assert place_hearts(state, rng) == ((5, 9), (5, 1))


def test_smoothing_reads_the_unmodified_grid(monkeypatch, rng):
    monkeypatch.setattr(constants, "SMOOTHING_RESAMPLE_CHANCE", 0.0)
    monkeypatch.setattr("mapgen.symmetric.impose_symmetry", lambda grid: None)
    W, P = constants.WATER, constants.PLAIN
    grid = [
        [W, P, W, P],
        [W, W, P, P],
        [P, P, P, P],
        [P, P, P, P],
    ]
    before = [row[:] for row in grid]
    out = smooth(grid, rng)
    assert grid == before
    # (1, 0) turns to water; an in-place pass would then keep (2, 0) as water
    assert out[0][1] == W
    assert out[0][2] == P
    assert out[0][0] == W
    assert out[3] == [P, P, P, P]
