"""Serializable session state and its schema checks."""

from dataclasses import dataclass
from typing import Any, Dict

from slide2048.grid import GRID_SIZE, Grid


class CorruptStateError(ValueError):
    """Raised when a persisted session does not match the expected schema."""


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_tile_value(value: Any) -> bool:
    return _is_int(value) and value >= 2 and value & (value - 1) == 0


def validate_grid_state(state: Any, size: int = GRID_SIZE) -> None:
    if not isinstance(state, dict):
        raise CorruptStateError("grid must be an object")
    if state.get("size") != size or not _is_int(state.get("size")):
        raise CorruptStateError(f"grid size must be {size}, got {state.get('size')!r}")

    cells = state.get("cells")
    if not isinstance(cells, list) or len(cells) != size:
        raise CorruptStateError("grid cells must hold one column per index")

    for x, column in enumerate(cells):
        if not isinstance(column, list) or len(column) != size:
            raise CorruptStateError(f"grid column {x} is not {size} cells long")
        for y, cell in enumerate(column):
            if cell is None:
                continue
            if not isinstance(cell, dict) or not _is_tile_value(cell.get("value")):
                raise CorruptStateError(f"cell ({x}, {y}) does not hold a valid tile")
            position = cell.get("position")
            if position is None:
                continue
            if not isinstance(position, dict) or (position.get("x"), position.get("y")) != (x, y):
                raise CorruptStateError(f"cell ({x}, {y}) records position {position!r}")


@dataclass
class SessionState:
    grid: Grid
    score: int = 0
    over: bool = False
    won: bool = False
    keep_playing: bool = False

    @property
    def terminated(self) -> bool:
        return self.over or (self.won and not self.keep_playing)

    def to_dict(self) -> Dict:
        return {
            "grid": self.grid.serialize(),
            "score": self.score,
            "over": self.over,
            "won": self.won,
            "keepPlaying": self.keep_playing,
        }

    @classmethod
    def from_dict(cls, data: Any, size: int = GRID_SIZE) -> "SessionState":
        if not isinstance(data, dict):
            raise CorruptStateError("session state must be an object")

        validate_grid_state(data.get("grid"), size)

        score = data.get("score")
        if not _is_int(score) or score < 0:
            raise CorruptStateError(f"score must be a non-negative integer, got {score!r}")

        flags = {}
        for key in ("over", "won", "keepPlaying"):
            value = data.get(key, False)
            if not isinstance(value, bool):
                raise CorruptStateError(f"{key} must be a boolean, got {value!r}")
            flags[key] = value

        return cls(
            grid=Grid.from_state(data["grid"]),
            score=score,
            over=flags["over"],
            won=flags["won"],
            keep_playing=flags["keepPlaying"],
        )
