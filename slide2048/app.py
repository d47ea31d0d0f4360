import argparse
import logging
import sys
from typing import Dict, Optional, Sequence, Tuple, Union

import pygame

from slide2048.controls import InputDispatcher
from slide2048.grid import GRID_SIZE, Position
from slide2048.session import GameSession
from slide2048.snapshot import MergeGhost, RenderMetadata, RenderSnapshot, TileMove
from slide2048.storage import StorageManager, default_storage

logger = logging.getLogger(__name__)

TILE_COLORS = {
    0: (204, 192, 179),
    2: (238, 228, 218),
    4: (237, 224, 200),
    8: (242, 177, 121),
    16: (245, 149, 99),
    32: (246, 124, 95),
    64: (246, 94, 59),
    128: (237, 207, 114),
    256: (237, 204, 97),
    512: (237, 200, 80),
    1024: (237, 197, 63),
    2048: (237, 194, 46),
}
BACKGROUND_COLOR = (250, 248, 239)
BOARD_COLOR = (187, 173, 160)
TEXT_COLOR = (119, 110, 101)
LIGHT_TEXT_COLOR = (249, 246, 242)

WINDOW_WIDTH = 600
WINDOW_HEIGHT = 780
BOARD_MARGIN = 32
BOARD_TOP = 210
TILE_GAP = 12
BOARD_SIZE = WINDOW_WIDTH - 2 * BOARD_MARGIN
TILE_SIZE = (BOARD_SIZE - (GRID_SIZE + 1) * TILE_GAP) // GRID_SIZE
ANIMATION_DURATION_MS = 140
SPAWN_ANIMATION_DURATION_MS = 120
GAIN_DISPLAY_MS = 1200
BUTTON_WIDTH = 170
BUTTON_HEIGHT = 58
BUTTON_GAP = 24
CONTROL_BUTTON_HEIGHT = 48
CONTROL_BUTTON_PADDING_X = 28
CONTROL_BUTTON_PADDING_Y = 12
CONTROL_BUTTON_GAP = 18
HEADER_CONTROL_BUTTONS = [
    ("Restart", "restart"),
    ("Quit", "quit"),
]


def ease_out_cubic(t: float) -> float:
    return 1 - (1 - t) ** 3


class PygameRenderer:
    """Render adapter that animates snapshots onto a pygame surface.

    ``render`` only records the latest snapshot; drawing happens on the app's
    frame clock in :meth:`draw`. A new snapshot replaces any animation in flight.
    """

    def __init__(self) -> None:
        self.font_large = pygame.font.SysFont("arial", 48, bold=True)
        self.font_medium = pygame.font.SysFont("arial", 28, bold=True)
        self.font_small = pygame.font.SysFont("arial", 20)
        self.font_tile_big = pygame.font.SysFont("arial", 36, bold=True)
        self.font_tile_medium = pygame.font.SysFont("arial", 30, bold=True)
        self.font_tile_small = pygame.font.SysFont("arial", 24, bold=True)
        self.font_tile_tiny = pygame.font.SysFont("arial", 20, bold=True)
        self.snapshot: Optional[RenderSnapshot] = None
        self.metadata: Optional[RenderMetadata] = None
        self.animation_start: Optional[int] = None
        self.last_gain = 0
        self.last_gain_time: Optional[int] = None
        self.overlay_buttons: Dict[str, pygame.Rect] = {}
        self.header_buttons: Dict[str, pygame.Rect] = {}

    def render(self, snapshot: RenderSnapshot, metadata: RenderMetadata) -> None:
        if self.metadata is not None and metadata.score > self.metadata.score:
            gain = metadata.score - self.metadata.score
            self.last_gain = gain
            self.last_gain_time = None
        self.snapshot = snapshot
        self.metadata = metadata
        self.animation_start = None if snapshot.has_movement else 0

    def draw(self, screen: pygame.Surface, now: int) -> None:
        if self.animation_start is None:
            self.animation_start = now
        if self.last_gain and self.last_gain_time is None:
            self.last_gain_time = now

        screen.fill(BACKGROUND_COLOR)
        self._draw_header(screen, now)
        self._draw_board(screen, now)
        if self.metadata and self.metadata.terminated:
            self._draw_overlay(screen)
        else:
            self.overlay_buttons = {}

    def _draw_header(self, screen: pygame.Surface, now: int) -> None:
        title_surface = self.font_large.render("2048", True, TEXT_COLOR)
        title_rect = title_surface.get_rect()
        title_rect.topleft = (BOARD_MARGIN, 36)
        screen.blit(title_surface, title_rect)

        box_width = 152
        box_height = 68
        box_spacing = 12
        score = self.metadata.score if self.metadata else 0
        best = self.metadata.best_score if self.metadata else 0
        best_rect = pygame.Rect(WINDOW_WIDTH - BOARD_MARGIN - box_width, 36, box_width, box_height)
        score_rect = pygame.Rect(best_rect.x - box_spacing - box_width, 36, box_width, box_height)
        gain_active = self._gain_active(now)
        self._draw_score_box(screen, score_rect, "SCORE", score, highlight=gain_active)
        self._draw_score_box(screen, best_rect, "BEST", best)
        if gain_active:
            gain_surface = self.font_small.render(f"+{self.last_gain}", True, (197, 120, 30))
            screen.blit(gain_surface, gain_surface.get_rect(midtop=(score_rect.centerx, score_rect.bottom + 6)))

        self._draw_header_buttons(screen, best_rect.bottom + 20)

    def _gain_active(self, now: int) -> bool:
        if self.last_gain <= 0 or self.last_gain_time is None:
            return False
        if now - self.last_gain_time > GAIN_DISPLAY_MS:
            self.last_gain = 0
            return False
        return True

    def _draw_board(self, screen: pygame.Surface, now: int) -> None:
        pygame.draw.rect(
            screen,
            BOARD_COLOR,
            (BOARD_MARGIN, BOARD_TOP, BOARD_SIZE, BOARD_SIZE),
            border_radius=8,
        )
        for x in range(GRID_SIZE):
            for y in range(GRID_SIZE):
                self._draw_tile(screen, 0, *self._cell_position((x, y)), TILE_SIZE)

        if self.snapshot is None:
            return

        elapsed = now - (self.animation_start or 0)
        progress = min(1.0, elapsed / ANIMATION_DURATION_MS) if self.snapshot.has_movement else 1.0
        eased = ease_out_cubic(progress)

        if progress < 1.0:
            for ghost in self.snapshot.ghosts:
                self._draw_sliding(screen, ghost, eased)

        for tile in self.snapshot.tiles:
            if tile.is_new:
                self._draw_spawning(screen, tile, elapsed - ANIMATION_DURATION_MS)
            elif tile.is_merge_result:
                if progress >= 1.0:
                    self._draw_spawning(screen, tile, elapsed - ANIMATION_DURATION_MS, start_scale=0.8)
            else:
                self._draw_sliding(screen, tile, eased)

    def _draw_sliding(self, screen: pygame.Surface, move: Union[TileMove, MergeGhost], progress: float) -> None:
        start_x, start_y = self._cell_position(move.start)
        end_x, end_y = self._cell_position(move.end)
        x = start_x + (end_x - start_x) * progress
        y = start_y + (end_y - start_y) * progress
        self._draw_tile(screen, move.value, x, y, TILE_SIZE)

    def _draw_spawning(self, screen: pygame.Surface, tile: TileMove, elapsed: float,
                       start_scale: float = 0.5) -> None:
        if elapsed < 0:
            return
        progress = min(1.0, elapsed / SPAWN_ANIMATION_DURATION_MS)
        scale = start_scale + (1 - start_scale) * progress
        size = TILE_SIZE * scale
        base_x, base_y = self._cell_position(tile.end)
        x = base_x + (TILE_SIZE - size) / 2
        y = base_y + (TILE_SIZE - size) / 2
        self._draw_tile(screen, tile.value, x, y, size)

    def _draw_tile(self, screen: pygame.Surface, value: int, x: float, y: float, size: float) -> None:
        color = TILE_COLORS.get(value, (60, 58, 50))
        rect = pygame.Rect(x, y, size, size)
        pygame.draw.rect(screen, color, rect, border_radius=6)
        if value:
            text_color = LIGHT_TEXT_COLOR if value >= 8 else TEXT_COLOR
            text = self._tile_font(value).render(str(value), True, text_color)
            screen.blit(text, text.get_rect(center=rect.center))

    def _tile_font(self, value: int) -> pygame.font.Font:
        if value < 100:
            return self.font_tile_big
        if value < 1000:
            return self.font_tile_medium
        if value < 10000:
            return self.font_tile_small
        return self.font_tile_tiny

    @staticmethod
    def _cell_position(position: Position) -> Tuple[float, float]:
        x, y = position
        left = BOARD_MARGIN + TILE_GAP + x * (TILE_SIZE + TILE_GAP)
        top = BOARD_TOP + TILE_GAP + y * (TILE_SIZE + TILE_GAP)
        return float(left), float(top)

    def _draw_overlay(self, screen: pygame.Surface) -> None:
        overlay = pygame.Surface((WINDOW_WIDTH, WINDOW_HEIGHT), pygame.SRCALPHA)
        overlay.fill((255, 255, 255, 200))
        screen.blit(overlay, (0, 0))

        if self.metadata.won and not self.metadata.over:
            message = "You made 2048!"
            labels = [("Keep going", "keep_playing"), ("Replay", "restart")]
        elif self.metadata.won:
            message = "Victory & no moves!"
            labels = [("Replay", "restart"), ("Exit", "quit")]
        else:
            message = "Game Over"
            labels = [("Replay", "restart"), ("Exit", "quit")]

        message_surface = self.font_large.render(message, True, TEXT_COLOR)
        message_rect = message_surface.get_rect(center=(WINDOW_WIDTH / 2, WINDOW_HEIGHT / 2 - 80))
        screen.blit(message_surface, message_rect)

        detail_surface = self.font_medium.render("Choose an option below", True, TEXT_COLOR)
        detail_rect = detail_surface.get_rect(center=(WINDOW_WIDTH / 2, message_rect.bottom + 30))
        screen.blit(detail_surface, detail_rect)

        self.overlay_buttons = {}
        total_width = BUTTON_WIDTH * 2 + BUTTON_GAP
        start_x = WINDOW_WIDTH / 2 - total_width / 2
        for idx, (text, action) in enumerate(labels):
            rect = pygame.Rect(start_x + idx * (BUTTON_WIDTH + BUTTON_GAP), detail_rect.bottom + 30,
                               BUTTON_WIDTH, BUTTON_HEIGHT)
            primary = idx == 0
            color = (146, 123, 99) if primary else BOARD_COLOR
            text_color = LIGHT_TEXT_COLOR if primary else TEXT_COLOR
            pygame.draw.rect(screen, color, rect, border_radius=10)
            button_text = self.font_medium.render(text, True, text_color)
            screen.blit(button_text, button_text.get_rect(center=rect.center))
            self.overlay_buttons[action] = rect

    def _draw_score_box(self, screen: pygame.Surface, rect: pygame.Rect, label: str, value: int, *,
                        highlight: bool = False) -> None:
        box_color = (205, 190, 170) if highlight else BOARD_COLOR
        pygame.draw.rect(screen, box_color, rect, border_radius=8)
        label_surface = self.font_small.render(label, True, LIGHT_TEXT_COLOR)
        label_rect = label_surface.get_rect(center=(rect.centerx, rect.top + label_surface.get_height() / 2 + 6))
        value_surface = self.font_medium.render(str(value), True, LIGHT_TEXT_COLOR)
        value_rect = value_surface.get_rect(center=(rect.centerx, rect.bottom - value_surface.get_height() / 2 - 6))
        screen.blit(label_surface, label_rect)
        screen.blit(value_surface, value_rect)

    def _draw_header_buttons(self, screen: pygame.Surface, top_y: float) -> None:
        self.header_buttons = {}
        x = BOARD_MARGIN
        for label, action in HEADER_CONTROL_BUTTONS:
            text_surface = self.font_medium.render(label, True, TEXT_COLOR)
            width = text_surface.get_width() + CONTROL_BUTTON_PADDING_X * 2
            height = max(CONTROL_BUTTON_HEIGHT, text_surface.get_height() + CONTROL_BUTTON_PADDING_Y * 2)
            rect = pygame.Rect(x, top_y, width, height)
            pygame.draw.rect(screen, (196, 180, 160), rect, border_radius=10)
            screen.blit(text_surface, text_surface.get_rect(center=rect.center))
            self.header_buttons[action] = rect
            x += width + CONTROL_BUTTON_GAP


class GameApp:
    def __init__(self, storage: StorageManager) -> None:
        pygame.init()
        pygame.display.set_caption("2048 in Python")
        self.screen = pygame.display.set_mode((WINDOW_WIDTH, WINDOW_HEIGHT))
        self.clock = pygame.time.Clock()
        self.renderer = PygameRenderer()
        self.dispatcher = InputDispatcher(window_size=(WINDOW_WIDTH, WINDOW_HEIGHT))
        self.session = GameSession(
            storage,
            renderer=self.renderer,
            dispatcher=self.dispatcher,
            on_game_end=self._game_ended,
        )

    def run(self) -> None:
        self.session.start()
        while True:
            self.clock.tick(60)
            self._handle_events()
            self.renderer.draw(self.screen, pygame.time.get_ticks())
            pygame.display.flip()

    def _handle_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self._quit()
            if event.type == pygame.KEYDOWN and event.key in (pygame.K_ESCAPE, pygame.K_q):
                self._quit()
            if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                if self._handle_click(event.pos):
                    continue
            self.dispatcher.handle_event(event)

    def _handle_click(self, pos: Tuple[int, int]) -> bool:
        buttons = dict(self.renderer.header_buttons)
        buttons.update(self.renderer.overlay_buttons)
        for action, rect in buttons.items():
            if rect.collidepoint(pos):
                self._trigger_action(action)
                return True
        return False

    def _trigger_action(self, action: str) -> None:
        if action == "quit":
            self._quit()
        self.dispatcher.emit(action)

    def _game_ended(self, score: int) -> None:
        logger.info("Final score: %d", score)

    def _quit(self) -> None:
        self.session.teardown()
        pygame.quit()
        sys.exit()


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Slide numbered tiles and merge them to reach 2048.")
    parser.add_argument("--state-file", default=None,
                        help="Where to keep the best score and the game in progress")
    parser.add_argument("--no-persist", action="store_true",
                        help="Keep progress in memory only")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    storage = StorageManager(None if args.no_persist else default_storage(args.state_file))
    app = GameApp(storage)
    app.run()


if __name__ == "__main__":
    main()
