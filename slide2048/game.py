import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from slide2048.grid import GRID_SIZE, Grid, Position, Tile
from slide2048.snapshot import RenderMetadata, RenderSnapshot, capture_snapshot
from slide2048.state import CorruptStateError, SessionState
from slide2048.storage import StorageManager

logger = logging.getLogger(__name__)

START_TILES = 2
WINNING_VALUE = 2048


class Direction(Enum):
    UP = "up"
    RIGHT = "right"
    DOWN = "down"
    LEFT = "left"

    @property
    def vector(self) -> Tuple[int, int]:
        return VECTORS[self]

    @classmethod
    def coerce(cls, value) -> Optional["Direction"]:
        """Accept a Direction, its name or value, or the numeric codes 0-3."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            ordered = list(cls)
            return ordered[value] if 0 <= value < len(ordered) else None
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                return None
        return None


VECTORS = {
    Direction.UP: (0, -1),
    Direction.RIGHT: (1, 0),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
}


@dataclass(frozen=True)
class GameOutcome:
    score: int
    won: bool


@dataclass
class MoveResult:
    score_gain: int
    merges: int
    spawn: Optional[Tile]
    snapshot: RenderSnapshot


def build_traversals(size: int, vector: Tuple[int, int]) -> Tuple[List[int], List[int]]:
    """Cell visiting order that handles the tiles nearest the far edge first."""
    xs = list(range(size))
    ys = list(range(size))
    if vector[0] == 1:
        xs.reverse()
    if vector[1] == 1:
        ys.reverse()
    return xs, ys


def find_farthest_position(grid: Grid, cell: Position, vector: Tuple[int, int]) -> Tuple[Position, Position]:
    """Return the last empty cell along ``vector`` and the cell just past it."""
    previous = cell
    following = (cell[0] + vector[0], cell[1] + vector[1])
    while grid.within_bounds(following) and grid.cell_at(following) is None:
        previous = following
        following = (previous[0] + vector[0], previous[1] + vector[1])
    return previous, following


def tile_matches_available(grid: Grid) -> bool:
    for tile in grid.tiles():
        for dx, dy in VECTORS.values():
            other = grid.cell_at((tile.x + dx, tile.y + dy))
            if other is not None and other.value == tile.value:
                return True
    return False


def tile_reached(grid: Grid, value: int) -> bool:
    return any(tile.value >= value for tile in grid.tiles())


def moves_available(grid: Grid) -> bool:
    return grid.has_empty_cell() or tile_matches_available(grid)


class GameManager:
    """Runs one game session: moves, merges, scoring and persistence.

    ``renderer`` is any object with ``render(snapshot, metadata)``; it is
    optional and its failures never reach the caller. ``on_game_terminated``
    receives a :class:`GameOutcome` once per transition into a terminal state.
    """

    def __init__(
        self,
        storage: Optional[StorageManager] = None,
        renderer=None,
        on_game_terminated: Optional[Callable[[GameOutcome], None]] = None,
        size: int = GRID_SIZE,
        rng: Optional[random.Random] = None,
        auto_setup: bool = True,
    ) -> None:
        self.size = size
        self.storage = storage if storage is not None else StorageManager()
        self.renderer = renderer
        self.on_game_terminated = on_game_terminated
        self.rng = rng or random.Random()
        self.grid: Optional[Grid] = None
        self.score = 0
        self.over = False
        self.won = False
        self.keep_playing_flag = False
        self.termination_notified = False
        self.last_snapshot: Optional[RenderSnapshot] = None
        if auto_setup:
            self.setup()

    def setup(self) -> None:
        self.termination_notified = False
        restored = self._load_session()
        if restored is not None:
            self.grid = restored.grid
            self.score = restored.score
            self.over = restored.over
            self.won = restored.won
            self.keep_playing_flag = restored.keep_playing
            logger.info("Resumed saved game with score %d", self.score)
        else:
            self.grid = Grid(self.size)
            self.score = 0
            self.over = False
            self.won = False
            self.keep_playing_flag = False
            self._add_start_tiles()
            logger.info("Started a new game")

        self.actuate()

    def _load_session(self) -> Optional[SessionState]:
        data = self.storage.get_game_state()
        if data is None:
            return None
        try:
            state = SessionState.from_dict(data, self.size)
        except CorruptStateError as exc:
            logger.warning("Discarding saved game: %s", exc)
            self.storage.clear_game_state()
            return None
        if state.terminated:
            logger.warning("Discarding saved game that had already ended")
            self.storage.clear_game_state()
            return None
        return state

    def restart(self) -> None:
        self.termination_notified = False
        self.storage.clear_game_state()
        self.grid = None
        self.setup()

    def keep_playing(self) -> None:
        if not self.won or self.keep_playing_flag or self.over:
            return
        self.keep_playing_flag = True
        self.termination_notified = False
        self.actuate()

    def is_game_terminated(self) -> bool:
        return self.over or (self.won and not self.keep_playing_flag)

    def serialize(self) -> Dict:
        return SessionState(
            grid=self.grid,
            score=self.score,
            over=self.over,
            won=self.won,
            keep_playing=self.keep_playing_flag,
        ).to_dict()

    def _add_start_tiles(self) -> None:
        for _ in range(START_TILES):
            self.add_random_tile()

    def add_random_tile(self) -> Optional[Tile]:
        position = self.grid.random_empty_cell(self.rng)
        if position is None:
            return None
        value = 4 if self.rng.random() < 0.1 else 2
        tile = Tile(position[0], position[1], value)
        self.grid.insert(tile)
        return tile

    def _prepare_tiles(self) -> None:
        for tile in self.grid.tiles():
            tile.merged_from = None
            tile.save_position()

    def move(self, direction) -> Optional[MoveResult]:
        if self.grid is None or self.is_game_terminated():
            return None

        resolved = Direction.coerce(direction)
        if resolved is None:
            logger.debug("Ignoring invalid direction %r", direction)
            return None

        vector = resolved.vector
        xs, ys = build_traversals(self.size, vector)
        moved = False
        gain = 0
        merges = 0

        self._prepare_tiles()

        for x in xs:
            for y in ys:
                tile = self.grid.cell_at((x, y))
                if tile is None:
                    continue

                farthest, following = find_farthest_position(self.grid, (x, y), vector)
                blocker = self.grid.cell_at(following)

                if blocker is not None and blocker.value == tile.value and blocker.merged_from is None:
                    merged = Tile(following[0], following[1], tile.value * 2)
                    merged.merged_from = (tile, blocker)

                    self.grid.remove(blocker)
                    self.grid.remove(tile)
                    self.grid.insert(merged)
                    tile.update_position(following)

                    gain += merged.value
                    merges += 1
                else:
                    self.grid.move_tile(tile, farthest)

                if tile.position != (x, y):
                    moved = True

        if not moved:
            if not self.over and not moves_available(self.grid):
                self.over = True
                self.actuate()
            return None

        self.score += gain
        if merges and tile_reached(self.grid, WINNING_VALUE):
            self.won = True
        spawn = self.add_random_tile()
        if not moves_available(self.grid):
            self.over = True

        logger.debug("Moved %s: +%d (%d merges), score %d", resolved.value, gain, merges, self.score)
        self.actuate()
        return MoveResult(score_gain=gain, merges=merges, spawn=spawn, snapshot=self.last_snapshot)

    def metadata(self) -> RenderMetadata:
        return RenderMetadata(
            score=self.score,
            over=self.over,
            won=self.won,
            best_score=self.storage.get_best_score(),
            keep_playing=self.keep_playing_flag,
            terminated=self.is_game_terminated(),
        )

    def actuate(self) -> None:
        if self.storage.get_best_score() < self.score:
            self.storage.set_best_score(self.score)

        terminated = self.is_game_terminated()
        if terminated:
            self.storage.clear_game_state()
        else:
            self.storage.set_game_state(self.serialize())

        self.last_snapshot = capture_snapshot(self.grid)
        if self.renderer is not None:
            try:
                self.renderer.render(self.last_snapshot, self.metadata())
            except Exception:
                logger.exception("Renderer failed; continuing without animation")

        if terminated and not self.termination_notified:
            self.termination_notified = True
            if self.on_game_terminated is not None:
                try:
                    self.on_game_terminated(GameOutcome(score=self.score, won=self.won))
                except Exception:
                    logger.exception("on_game_terminated hook failed")
