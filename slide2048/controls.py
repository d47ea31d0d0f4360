import logging
from typing import Callable, Dict, List, Optional, Tuple

import pygame

from slide2048.game import Direction

logger = logging.getLogger(__name__)

SWIPE_THRESHOLD = 10

KEY_DIRECTIONS = {
    pygame.K_UP: Direction.UP,
    pygame.K_RIGHT: Direction.RIGHT,
    pygame.K_DOWN: Direction.DOWN,
    pygame.K_LEFT: Direction.LEFT,
    pygame.K_k: Direction.UP,
    pygame.K_l: Direction.RIGHT,
    pygame.K_j: Direction.DOWN,
    pygame.K_h: Direction.LEFT,
    pygame.K_w: Direction.UP,
    pygame.K_d: Direction.RIGHT,
    pygame.K_s: Direction.DOWN,
    pygame.K_a: Direction.LEFT,
}
RESTART_KEY = pygame.K_r
KEEP_PLAYING_KEY = pygame.K_c
MODIFIER_MASK = pygame.KMOD_ALT | pygame.KMOD_CTRL | pygame.KMOD_META | pygame.KMOD_SHIFT


def swipe_direction(start: Tuple[float, float], end: Tuple[float, float],
                    threshold: float = SWIPE_THRESHOLD) -> Optional[Direction]:
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    if max(abs(dx), abs(dy)) <= threshold:
        return None
    if abs(dx) > abs(dy):
        return Direction.RIGHT if dx > 0 else Direction.LEFT
    return Direction.DOWN if dy > 0 else Direction.UP


class InputDispatcher:
    """Turns key presses and swipes into ``move``/``restart``/``keep_playing`` events.

    One physical gesture emits exactly one event: keys fire on KEYDOWN only and
    swipes resolve on release. Events raised while a handler is still running
    are dropped.
    """

    def __init__(self, window_size: Tuple[int, int] = (1, 1)) -> None:
        self.window_size = window_size
        self.events: Dict[str, List[Callable]] = {}
        self._press_start: Optional[Tuple[float, float]] = None
        self._dispatching = False

    def on(self, event: str, callback: Callable) -> None:
        self.events.setdefault(event, []).append(callback)

    def emit(self, event: str, *args) -> bool:
        if self._dispatching:
            logger.debug("Dropping %s received during dispatch", event)
            return False
        self._dispatching = True
        try:
            for callback in self.events.get(event, []):
                callback(*args)
        finally:
            self._dispatching = False
        return True

    def bind(self, manager) -> None:
        self.on("move", manager.move)
        self.on("restart", manager.restart)
        self.on("keep_playing", manager.keep_playing)

    def unbind(self) -> None:
        self.events = {}
        self._press_start = None

    def handle_event(self, event) -> bool:
        """Process one pygame event; returns True if it produced a game event."""
        if event.type == pygame.KEYDOWN:
            return self._handle_key(event.key, getattr(event, "mod", 0))
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self._press_start = event.pos
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            return self._finish_swipe(event.pos)
        elif event.type == pygame.FINGERDOWN:
            self._press_start = self._finger_point(event)
        elif event.type == pygame.FINGERUP:
            return self._finish_swipe(self._finger_point(event))
        return False

    def _handle_key(self, key: int, mod: int) -> bool:
        if mod & MODIFIER_MASK:
            return False
        if key in KEY_DIRECTIONS:
            return self.emit("move", KEY_DIRECTIONS[key])
        if key == RESTART_KEY:
            return self.emit("restart")
        if key == KEEP_PLAYING_KEY:
            return self.emit("keep_playing")
        return False

    def _finger_point(self, event) -> Tuple[float, float]:
        width, height = self.window_size
        return event.x * width, event.y * height

    def _finish_swipe(self, end: Tuple[float, float]) -> bool:
        start, self._press_start = self._press_start, None
        if start is None:
            return False
        direction = swipe_direction(start, end)
        if direction is None:
            return False
        return self.emit("move", direction)
