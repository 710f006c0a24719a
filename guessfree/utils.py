"""Utility functions shared by the board model, solver and generator."""

import random
from typing import Dict, Optional, Tuple

Coord = Tuple[int, int]

# King-move offsets in row-major order.
_OFFSETS: Tuple[Coord, ...] = tuple(
    (drow, dcol) for drow in (-1, 0, 1) for dcol in (-1, 0, 1) if (drow, dcol) != (0, 0)
)

# (height, width) -> {(row, col): neighbor coords}
_NEIGHBORHOODS_CACHE: Dict[Tuple[int, int], Dict[Coord, Tuple[Coord, ...]]] = {}


def in_bounds(coord: Coord, height: int, width: int) -> bool:
    row, col = coord
    return 0 <= row < height and 0 <= col < width


def get_neighborhoods(height: int, width: int) -> Dict[Coord, Tuple[Coord, ...]]:
    """
    Map every cell of a `height` x `width` grid to its in-bounds 8-connected
    neighbors, row-major. Tables are built once per grid size and shared.

    Raises:
        ValueError: If width or height is non-positive.
    """
    if width <= 0 or height <= 0:
        raise ValueError("width and height must be positive.")

    table = _NEIGHBORHOODS_CACHE.get((height, width))
    if table is None:
        table = {
            (row, col): tuple(
                (row + drow, col + dcol)
                for drow, dcol in _OFFSETS
                if in_bounds((row + drow, col + dcol), height, width)
            )
            for row in range(height)
            for col in range(width)
        }
        _NEIGHBORHOODS_CACHE[(height, width)] = table
    return table


def resolve_rng(rng: Optional[random.Random]) -> random.Random:
    """Return `rng`, or a fresh OS-seeded generator when none is given."""
    if rng is None:
        return random.Random()
    return rng
