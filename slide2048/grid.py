import random
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple


GRID_SIZE = 4

Position = Tuple[int, int]


@dataclass(eq=False)
class Tile:
    x: int
    y: int
    value: int = 2
    previous_position: Optional[Position] = None
    merged_from: Optional[Tuple["Tile", "Tile"]] = None

    @property
    def position(self) -> Position:
        return (self.x, self.y)

    def save_position(self) -> None:
        self.previous_position = (self.x, self.y)

    def update_position(self, position: Position) -> None:
        self.x, self.y = position

    def serialize(self) -> Dict:
        return {"position": {"x": self.x, "y": self.y}, "value": self.value}


class Grid:
    """Square board of optional tiles, indexed ``cells[x][y]``."""

    def __init__(self, size: int = GRID_SIZE) -> None:
        self.size = size
        self.cells: List[List[Optional[Tile]]] = [[None for _ in range(size)] for _ in range(size)]

    @classmethod
    def from_state(cls, state: Dict) -> "Grid":
        """Rebuild a grid from its serialized form.

        The caller is expected to have validated ``state`` (see
        :func:`slide2048.state.validate_grid_state`).
        """
        grid = cls(state["size"])
        for x, column in enumerate(state["cells"]):
            for y, cell in enumerate(column):
                if cell:
                    grid.insert(Tile(x, y, cell["value"]))
        return grid

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[int]]) -> "Grid":
        """Build a grid from a row-major matrix of values, 0 meaning empty."""
        grid = cls(len(rows))
        for y, row in enumerate(rows):
            if len(row) != grid.size:
                raise ValueError("rows must form a square matrix")
            for x, value in enumerate(row):
                if value:
                    grid.insert(Tile(x, y, value))
        return grid

    def to_rows(self) -> List[List[int]]:
        return [
            [self.cells[x][y].value if self.cells[x][y] else 0 for x in range(self.size)]
            for y in range(self.size)
        ]

    def each_cell(self) -> Iterator[Tuple[int, int, Optional[Tile]]]:
        for x in range(self.size):
            for y in range(self.size):
                yield x, y, self.cells[x][y]

    def tiles(self) -> Iterator[Tile]:
        for _, _, tile in self.each_cell():
            if tile is not None:
                yield tile

    def empty_cells(self) -> List[Position]:
        return [(x, y) for x, y, tile in self.each_cell() if tile is None]

    def random_empty_cell(self, rng=random) -> Optional[Position]:
        cells = self.empty_cells()
        if not cells:
            return None
        return rng.choice(cells)

    def has_empty_cell(self) -> bool:
        return any(tile is None for _, _, tile in self.each_cell())

    def within_bounds(self, position: Position) -> bool:
        x, y = position
        return 0 <= x < self.size and 0 <= y < self.size

    def cell_at(self, position: Position) -> Optional[Tile]:
        if not self.within_bounds(position):
            return None
        x, y = position
        return self.cells[x][y]

    def insert(self, tile: Tile) -> None:
        occupant = self.cells[tile.x][tile.y]
        if occupant is not None and occupant is not tile:
            raise ValueError(f"cell {tile.position} is already occupied")
        self.cells[tile.x][tile.y] = tile

    def remove(self, tile: Tile) -> None:
        if self.cells[tile.x][tile.y] is tile:
            self.cells[tile.x][tile.y] = None

    def move_tile(self, tile: Tile, position: Position) -> None:
        self.remove(tile)
        tile.update_position(position)
        self.insert(tile)

    def serialize(self) -> Dict:
        return {
            "size": self.size,
            "cells": [
                [tile.serialize() if tile else None for tile in column]
                for column in self.cells
            ],
        }
