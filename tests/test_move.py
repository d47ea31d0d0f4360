from __future__ import annotations

import pytest

from slide2048.game import Direction, build_traversals, find_farthest_position
from slide2048.grid import Grid

EMPTY_ROW = [0, 0, 0, 0]


def _board(first_row: list[int]) -> list[list[int]]:
    return [list(first_row), list(EMPTY_ROW), list(EMPTY_ROW), list(EMPTY_ROW)]


def _rows_without(rows: list[list[int]], position: tuple[int, int]) -> list[list[int]]:
    x, y = position
    stripped = [list(row) for row in rows]
    stripped[y][x] = 0
    return stripped


def _total(grid: Grid) -> int:
    return sum(tile.value for tile in grid.tiles())


def test_two_equal_tiles_merge_left(make_manager) -> None:
    manager = make_manager(_board([2, 2, 0, 0]))

    result = manager.move("left")

    assert result is not None
    assert manager.grid.to_rows()[0] == [4, 0, 0, 0]
    assert manager.score == 4
    assert result.score_gain == 4
    assert result.merges == 1
    assert len(list(manager.grid.tiles())) == 2
    assert result.spawn is not None
    assert result.spawn.position != (0, 0)


@pytest.mark.parametrize(
    ("row", "expected", "gain"),
    [
        ([2, 2, 2, 0], [4, 2, 0, 0], 4),
        ([2, 2, 2, 2], [4, 4, 0, 0], 8),
        ([4, 4, 8, 0], [8, 8, 0, 0], 8),
        ([0, 0, 0, 2], [2, 0, 0, 0], 0),
        ([2, 0, 2, 4], [4, 4, 0, 0], 4),
        ([4, 2, 2, 0], [4, 4, 0, 0], 4),
    ],
)
def test_left_merges_each_tile_at_most_once(make_manager, row, expected, gain) -> None:
    manager = make_manager(_board(row))

    result = manager.move(Direction.LEFT)

    assert result is not None
    assert result.spawn.position == (3, 3)
    assert _rows_without(manager.grid.to_rows(), (3, 3))[0] == expected
    assert manager.score == gain


def test_right_merges_nearest_the_far_edge_first(make_manager, fixed_rng) -> None:
    manager = make_manager(_board([2, 2, 2, 0]), rng=fixed_rng(pick=0))

    manager.move("right")

    # first empty cell in column-major order is (0, 0)
    assert manager.grid.to_rows()[0][1:] == [0, 2, 4]


def test_up_and_down_work_on_columns(make_manager, fixed_rng) -> None:
    rows = [
        [2, 0, 0, 0],
        [2, 0, 0, 0],
        [4, 0, 0, 0],
        [4, 0, 0, 0],
    ]
    manager = make_manager(rows, rng=fixed_rng(pick=-1))
    manager.move("up")
    column = [manager.grid.to_rows()[y][0] for y in range(4)]
    assert column == [4, 8, 0, 0]
    assert manager.score == 12

    manager = make_manager(rows, rng=fixed_rng(pick=-1))
    manager.move("down")
    column = [manager.grid.to_rows()[y][0] for y in range(4)]
    assert column == [0, 0, 4, 8]


def test_blocked_move_changes_nothing(make_manager, renderer) -> None:
    rows = _board([2, 4, 8, 0])
    manager = make_manager(rows, score=12)
    renders_before = len(renderer.calls)

    assert manager.move("left") is None

    assert manager.grid.to_rows() == rows
    assert manager.score == 12
    assert len(renderer.calls) == renders_before


def test_merge_records_sources_and_previous_positions(make_manager) -> None:
    manager = make_manager(_board([0, 2, 0, 2]))

    manager.move("left")

    merged = manager.grid.cell_at((0, 0))
    assert merged.value == 4
    first, second = merged.merged_from
    assert {first.previous_position, second.previous_position} == {(1, 0), (3, 0)}
    assert first.value == second.value == 2


def test_merge_sources_are_cleared_on_next_move(make_manager) -> None:
    manager = make_manager(_board([2, 2, 0, 0]))
    manager.move("left")
    merged = manager.grid.cell_at((0, 0))

    manager.move("down")

    assert merged.merged_from is None
    assert merged.previous_position == (0, 0)


def test_spawn_lands_on_a_previously_empty_cell(make_manager, seeded_rng) -> None:
    manager = make_manager(_board([2, 2, 4, 0]), rng=seeded_rng)
    empty_before = set(Grid.from_rows(_board([4, 4, 0, 0])).empty_cells())

    result = manager.move("left")

    assert result.spawn.position in empty_before
    assert result.spawn.value in (2, 4)
    assert result.spawn.previous_position is None


@pytest.mark.parametrize(("roll", "value"), [(0.05, 4), (0.0999, 4), (0.1, 2), (0.95, 2)])
def test_spawn_value_follows_ninety_ten_split(make_manager, fixed_rng, roll, value) -> None:
    manager = make_manager(_board([0, 0, 0, 2]), rng=fixed_rng(roll=roll))

    result = manager.move("left")

    assert result.spawn.value == value


def test_random_play_conserves_tile_sum_and_scores_merges(make_manager, seeded_rng) -> None:
    manager = make_manager(rng=seeded_rng)
    directions = list(Direction)

    for _ in range(400):
        if manager.is_game_terminated():
            break
        before_total = _total(manager.grid)
        before_count = len(list(manager.grid.tiles()))
        before_score = manager.score

        result = manager.move(directions[seeded_rng.randrange(4)])
        if result is None:
            assert _total(manager.grid) == before_total
            assert manager.score == before_score
            continue

        assert _total(manager.grid) == before_total + result.spawn.value
        assert manager.score == before_score + result.score_gain
        assert len(list(manager.grid.tiles())) == before_count - result.merges + 1
        merged_values = [t.value for t in manager.grid.tiles() if t.merged_from]
        assert sum(merged_values) == result.score_gain
        assert len(merged_values) == result.merges
        assert manager.grid.cell_at(result.spawn.position) is result.spawn
        for x, y, tile in manager.grid.each_cell():
            if tile is not None:
                assert tile.position == (x, y)


def test_traversal_order_visits_far_edge_first() -> None:
    assert build_traversals(4, (1, 0)) == ([3, 2, 1, 0], [0, 1, 2, 3])
    assert build_traversals(4, (0, 1)) == ([0, 1, 2, 3], [3, 2, 1, 0])
    assert build_traversals(4, (-1, 0)) == ([0, 1, 2, 3], [0, 1, 2, 3])
    assert build_traversals(4, (0, -1)) == ([0, 1, 2, 3], [0, 1, 2, 3])


def test_find_farthest_position_stops_before_blocker() -> None:
    grid = Grid.from_rows(_board([2, 0, 0, 8]))

    farthest, following = find_farthest_position(grid, (3, 0), (-1, 0))
    assert farthest == (1, 0)
    assert following == (0, 0)

    farthest, following = find_farthest_position(grid, (0, 0), (0, 1))
    assert farthest == (0, 3)
    assert following == (0, 4)
