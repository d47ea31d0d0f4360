from __future__ import annotations

import os

import pygame
import pytest

from slide2048.app import WINDOW_HEIGHT, WINDOW_WIDTH, PygameRenderer, parse_args
from slide2048.game import GameManager
from slide2048.grid import Grid


@pytest.fixture()
def surface():
    os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
    pygame.font.init()
    yield pygame.Surface((WINDOW_WIDTH, WINDOW_HEIGHT))
    pygame.font.quit()


def test_parse_args_defaults() -> None:
    args = parse_args([])
    assert args.state_file is None
    assert args.no_persist is False
    assert args.log_level == "WARNING"


def test_parse_args_options() -> None:
    args = parse_args(["--state-file", "/tmp/s.json", "--no-persist", "--log-level", "DEBUG"])
    assert args.state_file == "/tmp/s.json"
    assert args.no_persist is True
    assert args.log_level == "DEBUG"


def test_renderer_draws_every_animation_phase(surface, storage, fixed_rng) -> None:
    renderer = PygameRenderer()
    manager = GameManager(storage=storage, renderer=renderer, rng=fixed_rng())
    manager.grid = Grid.from_rows([[2, 2, 0, 0]] + [[0] * 4] * 3)
    manager.move("left")

    for now in (1000, 1050, 1200, 1500, 3000):
        renderer.draw(surface, now)

    assert renderer.metadata.score == 4
    assert renderer.last_gain == 0
    assert set(renderer.header_buttons) == {"restart", "quit"}
    assert renderer.overlay_buttons == {}


def test_renderer_offers_keep_going_after_a_win(surface, storage, fixed_rng) -> None:
    renderer = PygameRenderer()
    manager = GameManager(storage=storage, renderer=renderer, rng=fixed_rng())
    manager.grid = Grid.from_rows([[1024, 1024, 0, 0]] + [[0] * 4] * 3)
    manager.move("left")

    renderer.draw(surface, 0)

    assert set(renderer.overlay_buttons) == {"keep_playing", "restart"}
    assert manager.grid.to_rows()[0][0] == 2048
