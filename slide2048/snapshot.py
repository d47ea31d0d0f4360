from dataclasses import dataclass
from typing import Tuple

from slide2048.grid import Grid, Position


@dataclass(frozen=True)
class TileMove:
    start: Position
    end: Position
    value: int
    is_new: bool = False
    is_merge_result: bool = False


@dataclass(frozen=True)
class MergeGhost:
    start: Position
    end: Position
    value: int


@dataclass(frozen=True)
class RenderMetadata:
    score: int
    over: bool
    won: bool
    best_score: int
    keep_playing: bool
    terminated: bool


@dataclass(frozen=True)
class RenderSnapshot:
    """Read-only picture of the grid after a move, ready to animate."""

    size: int
    tiles: Tuple[TileMove, ...]
    ghosts: Tuple[MergeGhost, ...]
    has_movement: bool

    def value_at(self, position: Position) -> int:
        for tile in self.tiles:
            if tile.end == position:
                return tile.value
        return 0


def capture_snapshot(grid: Grid) -> RenderSnapshot:
    tiles = []
    ghosts = []
    has_movement = False

    for tile in grid.tiles():
        target = tile.position

        if tile.merged_from:
            for source in tile.merged_from:
                origin = source.previous_position or target
                ghosts.append(MergeGhost(start=origin, end=target, value=source.value))
            tiles.append(TileMove(start=target, end=target, value=tile.value, is_merge_result=True))
            has_movement = True
            continue

        is_new = tile.previous_position is None
        origin = tile.previous_position or target
        if is_new or origin != target:
            has_movement = True
        tiles.append(TileMove(start=origin, end=target, value=tile.value, is_new=is_new))

    return RenderSnapshot(
        size=grid.size,
        tiles=tuple(tiles),
        ghosts=tuple(ghosts),
        has_movement=has_movement,
    )
