from planner.config import PlannerConfig, StartRect
from planner.tools.grid import (
    BoardRect,
    board_rows,
    from_index,
    in_bounds,
    is_hero_cell,
    is_start_unlocked,
    pointer_to_cell,
    start_unlocked_indices,
    to_index,
)
from planner.tools.polyomino import Cell


def test_index_round_trip() -> None:
    assert to_index(3, 3) == 24
    assert from_index(24) == Cell(3, 3)
    assert from_index(to_index(6, 0)) == Cell(6, 0)


def test_in_bounds_edges() -> None:
    assert in_bounds(0, 0)
    assert in_bounds(6, 6)
    assert not in_bounds(7, 0)
    assert not in_bounds(0, -1)


def test_start_mask_is_inner_rectangle() -> None:
    indices = start_unlocked_indices()
    assert len(indices) == 15
    assert indices == sorted(indices)
    assert to_index(1, 2) in indices
    assert to_index(5, 4) in indices
    assert to_index(0, 3) not in indices
    assert to_index(3, 5) not in indices


def test_start_mask_follows_config() -> None:
    config = PlannerConfig(grid_width=4, grid_height=4, start_unlocked=StartRect(x_min=0, x_max=1, y_min=0, y_max=0))
    assert start_unlocked_indices(config) == [0, 1]
    assert is_start_unlocked(1, 0, config.start_unlocked)
    assert not is_start_unlocked(2, 0, config.start_unlocked)


def test_pointer_to_cell_uses_width_based_cell_size() -> None:
    rect = BoardRect(left=100, top=50, width=350, height=350)
    assert pointer_to_cell(100, 50, rect) == Cell(0, 0)
    assert pointer_to_cell(149.9, 99.9, rect) == Cell(0, 0)
    assert pointer_to_cell(150, 100, rect) == Cell(1, 1)
    assert pointer_to_cell(449, 399, rect) == Cell(6, 6)


def test_pointer_outside_board_has_no_cell() -> None:
    rect = BoardRect(left=100, top=50, width=350, height=350)
    assert pointer_to_cell(99, 60, rect) is None
    assert pointer_to_cell(450, 60, rect) is None
    assert pointer_to_cell(200, 400, rect) is None
    assert pointer_to_cell(200, 200, BoardRect(0, 0, 0, 0)) is None


def test_hero_cell_follows_config() -> None:
    assert is_hero_cell(3, 3)
    assert not is_hero_cell(3, 2)
    assert is_hero_cell(0, 6, PlannerConfig(hero_start=(0, 6)))


def test_board_rows_marks_hero_tiles_and_locks() -> None:
    rows = board_rows(start_unlocked_indices(), occupied=[Cell(1, 2), Cell(3, 3)])

    assert rows == [
        "-------",
        "-------",
        "-#....-",
        "-..H..-",
        "-.....-",
        "-------",
        "-------",
    ]


def test_board_rows_small_grid() -> None:
    config = PlannerConfig(grid_width=3, grid_height=2, hero_start=(2, 1))
    assert board_rows([0, 1], config=config) == ["..-", "--H"]
