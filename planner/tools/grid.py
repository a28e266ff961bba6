"""
Grid addressing helpers.

Cells are addressed by (x, y) or by the linear index y * width + x. Also
converts screen-space pointer positions to cells given the board's on-screen
rectangle, which the caller measures.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass

from planner.config import PlannerConfig, StartRect
from planner.tools.polyomino import Cell


GRID_W = 7
GRID_H = 7


def to_index(x: int, y: int, grid_w: int = GRID_W) -> int:
    return y * grid_w + x


def from_index(index: int, grid_w: int = GRID_W) -> Cell:
    return Cell(index % grid_w, index // grid_w)


def in_bounds(x: int, y: int, grid_w: int = GRID_W, grid_h: int = GRID_H) -> bool:
    return 0 <= x < grid_w and 0 <= y < grid_h


def is_start_unlocked(x: int, y: int, rect: StartRect | None = None) -> bool:
    """Whether (x, y) lies inside the starting unlocked rectangle."""
    rect = rect or StartRect()
    return rect.x_min <= x <= rect.x_max and rect.y_min <= y <= rect.y_max


def start_unlocked_indices(config: PlannerConfig | None = None) -> list[int]:
    """Indices of the start mask, ascending."""
    config = config or PlannerConfig()

    indices = []
    for y in range(config.grid_height):
        for x in range(config.grid_width):
            if is_start_unlocked(x, y, config.start_unlocked):
                indices.append(to_index(x, y, config.grid_width))
    return indices


def is_hero_cell(x: int, y: int, config: PlannerConfig | None = None) -> bool:
    config = config or PlannerConfig()
    return (x, y) == config.hero_start


def board_rows(
    unlocked: Iterable[int],
    occupied: Iterable[tuple[int, int]] = (),
    config: PlannerConfig | None = None,
) -> list[str]:
    """
    Plain-text picture of the board, one string per row.

    H is the hero start cell, # a cell covered by a tile, . an unlocked cell
    and - a locked one.
    """
    config = config or PlannerConfig()
    unlocked = set(unlocked)
    occupied = set(occupied)

    rows = []
    for y in range(config.grid_height):
        row = ""
        for x in range(config.grid_width):
            if is_hero_cell(x, y, config):
                row += "H"
            elif (x, y) in occupied:
                row += "#"
            elif to_index(x, y, config.grid_width) in unlocked:
                row += "."
            else:
                row += "-"
        rows.append(row)
    return rows


# ============================================================================
# Screen -> Grid
# ============================================================================

@dataclass(frozen=True)
class BoardRect:
    """On-screen rectangle of the board, in the same space as pointer events."""
    left: float
    top: float
    width: float
    height: float


def pointer_to_cell(
    px: float,
    py: float,
    rect: BoardRect,
    grid_w: int = GRID_W,
    grid_h: int = GRID_H,
) -> Cell | None:
    """
    Resolve a pointer position to the grid cell under it.

    Cells are square with side rect.width / grid_w. Returns None when the
    pointer is outside the board.
    """
    if rect.width <= 0 or grid_w <= 0:
        return None

    cell_size = rect.width / grid_w
    cx = math.floor((px - rect.left) / cell_size)
    cy = math.floor((py - rect.top) / cell_size)

    if not in_bounds(cx, cy, grid_w, grid_h):
        return None
    return Cell(cx, cy)
