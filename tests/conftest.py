from __future__ import annotations

import random
from collections.abc import Callable, Sequence

import pytest

from slide2048.game import GameManager, GameOutcome
from slide2048.grid import Grid
from slide2048.snapshot import RenderMetadata, RenderSnapshot
from slide2048.storage import MemoryStorage, StorageManager


class FixedRng:
    """Stand-in for random.Random with predictable spawn placement and value."""

    def __init__(self, roll: float = 0.5, pick: int = -1) -> None:
        self.roll = roll
        self.pick = pick

    def random(self) -> float:
        return self.roll

    def choice(self, seq):
        return seq[self.pick]


class RecordingRenderer:
    def __init__(self) -> None:
        self.calls: list[tuple[RenderSnapshot, RenderMetadata]] = []

    def render(self, snapshot: RenderSnapshot, metadata: RenderMetadata) -> None:
        self.calls.append((snapshot, metadata))

    @property
    def last_metadata(self) -> RenderMetadata:
        return self.calls[-1][1]


@pytest.fixture()
def storage() -> StorageManager:
    return StorageManager(MemoryStorage())


@pytest.fixture()
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture()
def outcomes() -> list[GameOutcome]:
    return []


@pytest.fixture()
def make_manager(
    storage: StorageManager, renderer: RecordingRenderer, outcomes: list[GameOutcome]
) -> Callable[..., GameManager]:
    """Build a manager, optionally replacing its board with row-major ``rows``."""

    def _make(rows: Sequence[Sequence[int]] | None = None, rng=None, score: int = 0) -> GameManager:
        manager = GameManager(
            storage=storage,
            renderer=renderer,
            on_game_terminated=outcomes.append,
            rng=rng if rng is not None else FixedRng(),
        )
        if rows is not None:
            manager.grid = Grid.from_rows(rows)
            manager.score = score
            manager.over = manager.won = manager.keep_playing_flag = False
        return manager

    return _make


@pytest.fixture()
def seeded_rng() -> random.Random:
    return random.Random(2048)


@pytest.fixture()
def fixed_rng() -> type[FixedRng]:
    return FixedRng
