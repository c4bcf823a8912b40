from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pygame

import constants
from core.catalog import get_archetype, shop_entries
from state.event_bus import EVENT_BUS, ON_ABILITY_USED, ON_INFO_MESSAGE


logger = logging.getLogger(__name__)

Pos = Tuple[int, int]

# Number of frames an ability flash stays visible
FLASH_FRAMES = 12


class BoardRenderer:
    """Draw a game snapshot onto a pygame surface.

    The renderer only reads the plain-data snapshot produced by
    :meth:`core.game.Game.snapshot`; it never touches the game state.  The
    board occupies the top of the surface, one ``tile_size`` square per
    cell, and a HUD strip of ``constants.HUD_HEIGHT`` pixels sits below it.
    Feedback such as ability flashes and info messages arrives through the
    event bus.
    """

    def __init__(self, board_size: int = constants.BOARD_SIZE, tile_size: Optional[int] = None) -> None:
        self.board_size = board_size
        self.tile_size = tile_size or constants.TILE_SIZE
        self.message = ""
        self.flash: Dict[Pos, int] = {}
        self._font: Optional[pygame.font.Font] = None
        EVENT_BUS.subscribe(ON_INFO_MESSAGE, self._on_info)
        EVENT_BUS.subscribe(ON_ABILITY_USED, self._on_ability)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def _on_info(self, message: str) -> None:
        self.message = message

    def _on_ability(self, unit_id: int, affected: Iterable[Pos]) -> None:
        for pos in affected:
            self.flash[tuple(pos)] = FLASH_FRAMES

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    @property
    def size(self) -> Tuple[int, int]:
        """Pixel size of the full window: board and HUD plus the side panel."""
        side = self.board_size * self.tile_size
        return side + constants.PANEL_WIDTH, side + constants.HUD_HEIGHT

    def tile_rect(self, x: int, y: int) -> pygame.Rect:
        ts = self.tile_size
        return pygame.Rect(x * ts, y * ts, ts, ts)

    def tile_at(self, pixel: Tuple[int, int]) -> Optional[Pos]:
        """Return the board cell under ``pixel`` or ``None`` outside the board."""
        px, py = pixel
        if px < 0 or py < 0:
            return None
        x, y = px // self.tile_size, py // self.tile_size
        if x >= self.board_size or y >= self.board_size:
            return None
        return int(x), int(y)

    def _get_font(self) -> pygame.font.Font:
        if self._font is None:
            if not pygame.font.get_init():
                pygame.font.init()
            self._font = pygame.font.Font(None, max(12, self.tile_size // 2))
        return self._font

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def _draw_marker(self, surface: pygame.Surface, rect: pygame.Rect, marker: Dict[str, Any], kind: str) -> None:
        owner = marker["owner"]
        colour = constants.PLAYER_COLOURS.get(owner, constants.NEUTRAL_COLOUR)
        if kind == "nexus":
            points = [rect.midtop, rect.midright, rect.midbottom, rect.midleft]
            pygame.draw.polygon(surface, colour, points, 3)
        elif kind == "spawner":
            pygame.draw.rect(surface, colour, rect.inflate(-8, -8), 3)
        else:
            pygame.draw.circle(surface, colour, rect.center, rect.width // 3)

    def _draw_unit(self, surface: pygame.Surface, rect: pygame.Rect, unit: Dict[str, Any], shadow: bool) -> None:
        colour = constants.PLAYER_COLOURS.get(unit["owner"], constants.NEUTRAL_COLOUR)
        if shadow:
            colour = tuple(c // 2 for c in colour)
        body = rect.inflate(-rect.width // 3, -rect.height // 3)
        pygame.draw.ellipse(surface, colour, body)
        arch = get_archetype(unit["archetype_id"])
        # The default font has no glyphs for the catalog symbols
        letter = arch.name[:1].upper() if arch else "?"
        label = self._get_font().render(letter, True, (255, 255, 255))
        surface.blit(label, label.get_rect(center=body.center))
        # hp bar along the bottom edge
        ratio = max(0.0, min(1.0, unit["hp"] / max(1, unit["max_hp"])))
        bar = pygame.Rect(rect.x + 3, rect.bottom - 6, int((rect.width - 6) * ratio), 3)
        pygame.draw.rect(surface, (60, 220, 60), bar)

    def _draw_highlights(self, surface: pygame.Surface, tiles: Iterable[Pos], colour: Tuple[int, int, int]) -> None:
        for x, y in tiles:
            pygame.draw.rect(surface, colour, self.tile_rect(x, y), 2)

    def _draw_hud(self, surface: pygame.Surface, snap: Dict[str, Any]) -> None:
        side = self.board_size * self.tile_size
        hud = pygame.Rect(0, side, side, constants.HUD_HEIGHT)
        pygame.draw.rect(surface, (20, 20, 24), hud)
        font = self._get_font()
        lines: List[str] = []
        for pid, player in sorted(snap["players"].items()):
            lines.append("P%d  hp %d  energy %d" % (pid, player["hp"], player["energy"]))
        if snap["winner"] is not None:
            status = "Player %d wins" % snap["winner"]
        else:
            status = "Turn %d - player %d" % (snap["turn"], snap["current_player"])
        lines.append(status + ("   " + self.message if self.message else ""))
        y = hud.y + 4
        for line in lines:
            text = font.render(line, True, (230, 230, 230))
            surface.blit(text, (6, y))
            y += text.get_height() + 2

    # ------------------------------------------------------------------
    # Side panel
    # ------------------------------------------------------------------
    @staticmethod
    def _find_unit(snap: Dict[str, Any], unit_id: Optional[int]) -> Optional[Dict[str, Any]]:
        if unit_id is None:
            return None
        for row in snap["board"]:
            for cell in row:
                for key in ("unit", "shadow_unit"):
                    unit = cell[key]
                    if unit is not None and unit["id"] == unit_id:
                        return unit
        return None

    def shop_lines(self, snap: Dict[str, Any]) -> List[str]:
        """Numbered ``name (cost)`` entries on sale to the current player.

        The numbers match the ``1``-``9`` keys; entries the player cannot
        afford are flagged and the pending purchase is marked with ``>``.
        """
        player = snap["current_player"]
        info = snap["players"][player]
        pending = snap["pending_shop_selection"].get(player)
        lines = ["Shop (energy %d)" % info["energy"]]
        for index, arch in enumerate(shop_entries(info["purchased"]), start=1):
            mark = ">" if arch.id == pending else " "
            note = "" if arch.cost <= info["energy"] else "  -"
            lines.append("%s%d. %s (%d)%s" % (mark, index, arch.name, arch.cost, note))
        if info["purchased"]:
            names = [get_archetype(aid).name if get_archetype(aid) else aid for aid in info["purchased"]]
            lines.append("Bought: " + ", ".join(names))
        return lines

    def unit_lines(self, snap: Dict[str, Any]) -> List[str]:
        """Details of the selected unit, empty when nothing is selected."""
        unit = self._find_unit(snap, snap.get("selected_unit_id"))
        if unit is None:
            return []
        arch = get_archetype(unit["archetype_id"])
        name = arch.name if arch else unit["archetype_id"]
        lines = [
            "%s #%d (P%d)" % (name, unit["id"], unit["owner"]),
            "hp %d/%d  atk %d  rng %d" % (unit["hp"], unit["max_hp"], unit["attack"], unit["range"]),
            "move %d%s  actions %d"
            % (
                unit["move"],
                "+%d" % unit["temp_move_bonus"] if unit["temp_move_bonus"] else "",
                unit["actions_left"],
            ),
        ]
        if unit["realm"] == constants.SHADOW:
            lines.append("in the shadow realm")
        if arch is not None:
            for slot, ability in enumerate(arch.abilities):
                if not ability.is_active:
                    lines.append("%s (passive)" % ability.name)
                    continue
                remaining = unit["cooldowns"].get(slot, 0)
                state = "ready" if remaining <= 0 else "cooldown %d" % remaining
                lines.append("[A] %s: %s" % (ability.name, state))
        targeting = snap.get("ability_targeting")
        if targeting and targeting["unit_id"] == unit["id"]:
            lines.append("choose a target")
        return lines

    def _draw_panel(self, surface: pygame.Surface, snap: Dict[str, Any]) -> None:
        side = self.board_size * self.tile_size
        panel = pygame.Rect(side, 0, constants.PANEL_WIDTH, side + constants.HUD_HEIGHT)
        pygame.draw.rect(surface, (28, 28, 34), panel)
        font = self._get_font()
        y = panel.y + 6
        for block in (self.shop_lines(snap), self.unit_lines(snap)):
            for line in block:
                text = font.render(line, True, (230, 230, 230))
                surface.blit(text, (panel.x + 8, y))
                y += text.get_height() + 2
            y += 10

    def draw(
        self,
        surface: pygame.Surface,
        snap: Dict[str, Any],
        move_tiles: Iterable[Pos] = (),
        attack_tiles: Iterable[Pos] = (),
        spawn_tiles: Iterable[Pos] = (),
    ) -> None:
        """Render ``snap`` and the given highlight sets onto ``surface``."""
        for row in snap["board"]:
            for cell in row:
                rect = self.tile_rect(cell["x"], cell["y"])
                colour = constants.TERRAIN_COLOURS.get(cell["terrain"], constants.NEUTRAL_COLOUR)
                pygame.draw.rect(surface, colour, rect)
                pygame.draw.rect(surface, (0, 0, 0), rect, 1)
                for kind in ("nexus", "spawner", "heart"):
                    if cell[kind] is not None:
                        self._draw_marker(surface, rect, cell[kind], kind)
                if cell["shadow_unit"] is not None:
                    pygame.draw.rect(surface, constants.SHADOW_TINT, rect.inflate(-2, -2), 2)
                    if cell["unit"] is None:
                        self._draw_unit(surface, rect, cell["shadow_unit"], True)
                if cell["unit"] is not None:
                    self._draw_unit(surface, rect, cell["unit"], False)

        self._draw_highlights(surface, move_tiles, constants.HIGHLIGHT_MOVE)
        self._draw_highlights(surface, attack_tiles, constants.HIGHLIGHT_ATTACK)
        self._draw_highlights(surface, spawn_tiles, constants.HIGHLIGHT_SPAWN)

        for pos in list(self.flash):
            self._draw_highlights(surface, [pos], (255, 255, 160))
            self.flash[pos] -= 1
            if self.flash[pos] <= 0:
                del self.flash[pos]

        self._draw_hud(surface, snap)
        self._draw_panel(surface, snap)
