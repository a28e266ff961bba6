"""
Polyomino geometry for item footprints.

Maps a shape definition (relative cells + pivot) onto absolute grid cells for
a given anchor and rotation. Rotation is clockwise on a y-down grid:
90 degrees sends (x, y) to (-y, x). Everything here is pure.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal, NamedTuple

from planner.models import Item


ROTATIONS: tuple[int, ...] = (0, 90, 180, 270)

RotateDirection = Literal["cw", "ccw"]


class Cell(NamedTuple):
    """An absolute grid cell. Compares equal to the plain (x, y) tuple."""
    x: int
    y: int


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive extents of a cell list plus its width and height."""
    min_x: int
    min_y: int
    max_x: int
    max_y: int
    w: int
    h: int


def rotate_offset(dx: int, dy: int, rotation: int) -> tuple[int, int]:
    """Rotate an offset about the origin. Unknown rotations leave it unchanged."""
    if rotation == 90:
        return -dy, dx
    if rotation == 180:
        return -dx, -dy
    if rotation == 270:
        return dy, -dx
    return dx, dy


def occupied_cells(
    anchor: Cell | tuple[int, int],
    shape_cells: Iterable[tuple[int, int]],
    pivot: tuple[int, int] = (0, 0),
    rotation: int = 0,
) -> list[Cell]:
    """
    Compute the absolute cells a shape covers.

    Each shape cell is moved into pivot space, rotated, then moved back by the
    pivot and the anchor. Output order follows shape_cells, one cell per entry.
    """
    ax, ay = anchor
    px, py = pivot

    cells = []
    for cx, cy in shape_cells:
        rx, ry = rotate_offset(cx - px, cy - py, rotation)
        cells.append(Cell(ax + px + rx, ay + py + ry))
    return cells


def item_cells(item: Item, x: int, y: int, rotation: int) -> list[Cell]:
    """Footprint of a catalog item anchored at (x, y)."""
    return occupied_cells(Cell(x, y), item.shape.cells, item.shape.pivot, rotation)


def normalize_cells(cells: Iterable[tuple[int, int] | Cell]) -> list[tuple[int, int]]:
    """Translate cells so the minimum x and y are both zero."""
    points = [(x, y) for x, y in cells]
    if not points:
        return []

    min_x = min(x for x, _ in points)
    min_y = min(y for _, y in points)
    return [(x - min_x, y - min_y) for x, y in points]


def bounding_box(cells: Iterable[tuple[int, int] | Cell]) -> BoundingBox:
    """Extents of a cell list; all zeros when empty."""
    points = [(x, y) for x, y in cells]
    if not points:
        return BoundingBox(0, 0, 0, 0, 0, 0)

    xs = [x for x, _ in points]
    ys = [y for _, y in points]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)
    return BoundingBox(
        min_x=min_x,
        min_y=min_y,
        max_x=max_x,
        max_y=max_y,
        w=max_x - min_x + 1,
        h=max_y - min_y + 1,
    )


def next_rotation(current: int, direction: RotateDirection) -> int:
    """Step one quarter turn through ROTATIONS; an unknown current resets to 0."""
    if current not in ROTATIONS:
        return 0

    offset = 1 if direction == "cw" else -1
    index = (ROTATIONS.index(current) + offset) % len(ROTATIONS)
    return ROTATIONS[index]
