"""Entry point for the Nexus tactics game.

Initialises Pygame, opens a window sized for the board and runs the event
loop.  Player 1 is always human; player 2 is either a second human at the
same keyboard or the automated opponent, depending on ``settings``.

Controls: left click selects, moves, attacks, buys and confirms ability
targets; right click or Escape cancels; ``A`` arms the selected unit's
ability; ``1``-``9`` pick a shop entry; Space or Enter ends the turn; ``R``
starts a new game.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import pygame

import constants
import settings
from core.ai import OpponentAI
from core.catalog import get_archetype, shop_entries
from core.game import Game
from render.board_renderer import BoardRenderer


logger = logging.getLogger(__name__)

Pos = Tuple[int, int]


def _shop_ids(game: Game) -> List[str]:
    """Shop entries of the current player, numbered as the side panel shows them."""
    purchased = game.state.players[game.current_player].purchased
    return [a.id for a in shop_entries(purchased)]


def _highlights(game: Game) -> Tuple[List[Pos], List[Pos], List[Pos]]:
    state = game.state
    pending = state.pending_shop_selection.get(state.current_player)
    if pending is not None:
        return [], [], game.spawnable_tiles(pending)
    unit = game.selected_unit()
    if unit is None or unit.actions_left <= 0:
        return [], [], []
    return sorted(game.reachable_tiles(unit)), game.attackable_tiles(unit), []


def _arm_ability(game: Game) -> None:
    unit = game.selected_unit()
    if unit is None:
        return
    arch = get_archetype(unit.archetype_id)
    active = arch.active_ability() if arch else None
    if active is not None:
        game.begin_ability(unit, active[0])


def _handle_key(game: Game, key: int, human_turn: bool) -> bool:
    """Apply a key press; returns ``False`` when the game should quit."""
    if key == pygame.K_q:
        return False
    if key == pygame.K_r:
        game.reset_game()
        return True
    if not human_turn:
        return True
    if key == pygame.K_ESCAPE:
        game.cancel_ability()
        game.select_unit(None)
        game.choose_shop_item(None)
    elif key in (pygame.K_SPACE, pygame.K_RETURN):
        game.end_turn()
    elif key == pygame.K_a:
        _arm_ability(game)
    elif pygame.K_1 <= key <= pygame.K_9:
        ids = _shop_ids(game)
        index = key - pygame.K_1
        if index < len(ids):
            game.choose_shop_item(ids[index])
    return True


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    pygame.init()
    game = Game()
    renderer = BoardRenderer(game.state.board.size)
    flags = pygame.FULLSCREEN if settings.FULLSCREEN else 0
    screen = pygame.display.set_mode(renderer.size, flags)
    pygame.display.set_caption("Nexus")
    clock = pygame.time.Clock()
    ai = OpponentAI(player=2) if settings.AI_OPPONENT else None
    ai_due: Optional[int] = None
    logger.info("Starting game (seed=%s, ai=%s)", game.seed, bool(ai))

    running = True
    while running:
        human_turn = ai is None or game.current_player != ai.player
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                running = _handle_key(game, event.key, human_turn)
            elif event.type == pygame.MOUSEBUTTONDOWN and human_turn:
                if event.button == 3:
                    game.cancel_ability()
                    game.select_unit(None)
                    continue
                tile = renderer.tile_at(event.pos)
                if tile is not None:
                    game.activate_tile(*tile)

        if ai is not None and not human_turn and game.winner is None:
            now = pygame.time.get_ticks()
            if ai_due is None:
                ai_due = now + settings.AI_DELAY_MS
            elif now >= ai_due:
                ai.take_turn(game)
                game.end_turn()
                ai_due = None

        move_tiles, attack_tiles, spawn_tiles = _highlights(game)
        screen.fill((0, 0, 0))
        renderer.draw(screen, game.snapshot(), move_tiles, attack_tiles, spawn_tiles)
        pygame.display.flip()
        clock.tick(constants.FPS)

    pygame.quit()


if __name__ == "__main__":
    main()
