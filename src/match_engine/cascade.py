"""Cascade resolution: remove -> gravity -> refill, repeated to a fixpoint."""

from typing import Iterable, List, Optional

from .errors import CascadeLimitError
from .grid import TileFactory, copy_grid
from .matching import find_matches, get_matched_types
from .models import CascadeStep, Coordinate, Grid


def remove_matches(grid: Grid, matched: Iterable[Coordinate]) -> Grid:
    """Return a copy of the grid with every matched cell emptied."""
    removed = copy_grid(grid)
    for cell in matched:
        removed[cell.row][cell.col] = None
    return removed


def apply_gravity(grid: Grid) -> Grid:
    """
    Compact each column toward the highest row index.

    Surviving tiles keep their relative order; empties collect at the top.
    """
    size = len(grid)
    settled = copy_grid(grid)

    for c in range(len(grid[0]) if size else 0):
        column = [grid[r][c] for r in range(size) if grid[r][c] is not None]
        gap = size - len(column)

        for r in range(gap):
            settled[r][c] = None
        for offset, tile in enumerate(column):
            row = gap + offset
            settled[row][c] = tile if tile.row == row else tile.moved_to(row, c)

    return settled


def refill_grid(grid: Grid, factory: TileFactory) -> Grid:
    """Fill every empty cell with a fresh random tile."""
    refilled = copy_grid(grid)
    for r, row in enumerate(refilled):
        for c, tile in enumerate(row):
            if tile is None:
                row[c] = factory.random_tile(r, c)
    return refilled


def resolve_cascade(
    grid: Grid,
    factory: TileFactory,
    max_steps: Optional[int] = None,
) -> List[CascadeStep]:
    """
    Resolve every run on the grid until none remain.

    Each iteration removes matched cells, applies gravity and refills from
    `factory`. The returned steps are ordered by `step_index` (1-based); a
    grid without runs yields an empty list.

    Args:
        grid: Fully populated grid to resolve (not modified)
        factory: Source of refill tiles and their ids
        max_steps: Optional safety valve; None resolves without a cap

    Returns:
        Cascade steps in the order they happened

    Raises:
        CascadeLimitError: If `max_steps` is set and the grid is still
            unstable after that many steps
    """
    steps: List[CascadeStep] = []
    current = grid

    while True:
        matched = find_matches(current)
        if not matched:
            break

        if max_steps is not None and len(steps) >= max_steps:
            raise CascadeLimitError(max_steps, steps=steps, context={"pending_matches": len(matched)})

        matched_types = get_matched_types(current, matched)
        refilled = refill_grid(apply_gravity(remove_matches(current, matched)), factory)

        steps.append(CascadeStep(
            grid=refilled,
            matched_types=matched_types,
            match_count=len(matched),
            step_index=len(steps) + 1,
            matched_cells=sorted(matched),
        ))
        current = refilled

    return steps
