"""Run detection over a grid."""

from typing import Iterable, List, Set

from .models import Coordinate, Grid


MIN_RUN = 3


def _runs_in_line(cells: List[Coordinate], grid: Grid) -> Set[Coordinate]:
    """Collect cells of every maximal run of length >= MIN_RUN along one line."""
    matched: Set[Coordinate] = set()
    run: List[Coordinate] = []
    run_type = None

    # A trailing None sentinel flushes the last run
    for cell in cells + [None]:
        tile = grid[cell.row][cell.col] if cell is not None else None
        tile_type = tile.type if tile is not None else None

        if tile_type is not None and tile_type == run_type:
            run.append(cell)
            continue

        if len(run) >= MIN_RUN:
            matched.update(run)

        run = [cell] if tile_type is not None else []
        run_type = tile_type

    return matched


def find_matches(grid: Grid) -> Set[Coordinate]:
    """
    Find every cell that belongs to a horizontal or vertical run of 3+.

    Cells shared by crossing runs (L and T shapes) appear once.
    The grid is not modified.
    """
    matched: Set[Coordinate] = set()
    size = len(grid)

    for r in range(size):
        matched |= _runs_in_line([Coordinate(r, c) for c in range(len(grid[r]))], grid)

    width = len(grid[0]) if size else 0
    for c in range(width):
        matched |= _runs_in_line([Coordinate(r, c) for r in range(size)], grid)

    return matched


def has_matches(grid: Grid) -> bool:
    return bool(find_matches(grid))


def get_matched_types(grid: Grid, coords: Iterable[Coordinate]) -> List[str]:
    """
    One category per matched cell, in row-major order.

    Row-major ordering makes the first entry, and so the credited bucket,
    deterministic for a given grid.
    """
    return [
        grid[cell.row][cell.col].type
        for cell in sorted(coords)
        if grid[cell.row][cell.col] is not None
    ]
