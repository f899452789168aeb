"""Swap legality checks."""

from typing import List, Tuple

from .grid import in_bounds, is_adjacent, swap_tiles
from .matching import find_matches
from .models import Grid


Swap = Tuple[int, int, int, int]


def would_create_match(grid: Grid, r1: int, c1: int, r2: int, c2: int) -> bool:
    """
    Check whether swapping two adjacent cells forms at least one run.

    Works on a private copy; the caller's grid is never touched.

    Raises:
        ValueError: If either cell is off the grid or the cells are not adjacent
    """
    if not (in_bounds(grid, r1, c1) and in_bounds(grid, r2, c2)):
        raise ValueError(f"Swap ({r1}, {c1}) <-> ({r2}, {c2}) is out of bounds")
    if not is_adjacent(r1, c1, r2, c2):
        raise ValueError(f"Cells ({r1}, {c1}) and ({r2}, {c2}) are not adjacent")

    return bool(find_matches(swap_tiles(grid, r1, c1, r2, c2)))


def find_valid_swaps(grid: Grid) -> List[Swap]:
    """List every legal swap, each pair once (right and down neighbours)."""
    swaps: List[Swap] = []
    size = len(grid)

    for r in range(size):
        for c in range(len(grid[r])):
            for r2, c2 in ((r, c + 1), (r + 1, c)):
                if in_bounds(grid, r2, c2) and would_create_match(grid, r, c, r2, c2):
                    swaps.append((r, c, r2, c2))

    return swaps
