from slide2048.game import Direction, GameManager, GameOutcome, MoveResult
from slide2048.grid import GRID_SIZE, Grid, Tile
from slide2048.state import CorruptStateError, SessionState
from slide2048.storage import JsonFileStorage, MemoryStorage, StorageManager

__all__ = [
    "GRID_SIZE",
    "CorruptStateError",
    "Direction",
    "GameManager",
    "GameOutcome",
    "Grid",
    "JsonFileStorage",
    "MemoryStorage",
    "MoveResult",
    "SessionState",
    "StorageManager",
    "Tile",
]
