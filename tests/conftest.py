import os
import random
import sys

import pytest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

# Ensure the project root is on the path so modules can be imported in tests
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import constants
from core.board import Marker
from core.catalog import get_archetype
from core.entities import Unit
from core.game import Game
from state.event_bus import EVENT_BUS
from state.game_state import NexusEntry

# Fixed structure layout used by ``blank_game``; player 2 mirrors player 1
P1_SPAWNER = (5, 9)
P1_HEART = (1, 10)
P2_SPAWNER = (5, 1)
P2_HEART = (9, 0)


@pytest.fixture(autouse=True)
def _reset_event_bus():
    """Isolate global event subscriptions between tests."""

    EVENT_BUS.reset()
    yield
    EVENT_BUS.reset()


@pytest.fixture
def rng():
    """Return a deterministic random number generator."""

    return random.Random(0)


@pytest.fixture
def blank_game():
    """Return a factory building a :class:`Game` on an all-plain board.

    Spawners and hearts sit at the fixed ``P1_*``/``P2_*`` tiles; nexuses are
    only placed at the positions passed in ``nexuses``.
    """

    def _factory(nexuses=(), starting_energy=10):
        game = Game(seed=0, starting_energy=starting_energy, generate=False)
        state = game.state
        layout = ((1, P1_SPAWNER, P1_HEART), (2, P2_SPAWNER, P2_HEART))
        for player, spawner, heart in layout:
            cell = state.board.cell(*spawner)
            cell.spawner = Marker(owner=player)
            cell.blocked_for_movement = True
            cell = state.board.cell(*heart)
            cell.heart = Marker(owner=player)
            cell.blocked_for_movement = True
            state.players[player].spawner = spawner
            state.players[player].heart = heart
        for x, y in nexuses:
            state.board.cell(x, y).nexus = Marker(owner=None)
            state.nexuses.append(NexusEntry(x, y, None))
        return game

    return _factory


@pytest.fixture
def place():
    """Return a helper putting a fresh unit straight onto the board."""

    def _place(game, archetype_id, owner, x, y, realm=constants.OVERWORLD):
        unit = Unit.from_archetype(
            game.state.next_unit_id(), get_archetype(archetype_id), owner, x, y
        )
        unit.realm = realm
        game.state.board.place_unit(unit)
        return unit

    return _place
