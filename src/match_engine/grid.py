"""Grid building, copying and rendering utilities."""

import random
from typing import Dict, List, Optional, Sequence, Tuple
from pydantic import BaseModel, Field

from .errors import InvalidGridError
from .models import Coordinate, Grid, Tile


GRID_SIZE = 6

# Fixed category enumeration; bucket order follows it
TILE_TYPES: Tuple[str, ...] = ("GREEN", "BLUE", "YELLOW", "RED")


class TileFactory(BaseModel):
    """
    Mints tiles with unique ids and random categories.

    The random source is seedable so cascades can be replayed exactly.

    Attributes:
        tile_types: Categories to draw from
        seed: Optional random seed for reproducibility
        id_prefix: Prefix for minted tile ids
    """

    tile_types: List[str] = Field(default_factory=lambda: list(TILE_TYPES))
    seed: Optional[int] = None
    id_prefix: str = "t"
    _rng: random.Random = None
    _minted: int = 0

    def model_post_init(self, __context) -> None:
        """Initialize the random generator after model creation."""
        self._rng = random.Random(self.seed)
        self._minted = 0

    @property
    def rng(self) -> random.Random:
        return self._rng

    @property
    def minted(self) -> int:
        """Number of tiles created so far."""
        return self._minted

    def create(self, tile_type: str, row: int, col: int) -> Tile:
        """Create a tile of a given category with a fresh id."""
        self._minted += 1
        return Tile(id=f"{self.id_prefix}-{self._minted}", type=tile_type, row=row, col=col)

    def random_type(self, exclude: Sequence[str] = ()) -> str:
        """Draw a category uniformly, skipping any in `exclude`."""
        choices = [t for t in self.tile_types if t not in exclude] or self.tile_types
        return self._rng.choice(choices)

    def random_tile(self, row: int, col: int) -> Tile:
        """Create a tile of a uniformly random category."""
        return self.create(self.random_type(), row, col)


def create_grid(factory: TileFactory, size: int = GRID_SIZE) -> Grid:
    """
    Build a fully populated grid that contains no runs.

    Each cell avoids the category that would complete a run with its two
    left or two upper neighbours.
    """
    grid: Grid = [[None] * size for _ in range(size)]

    for r in range(size):
        for c in range(size):
            blocked = []
            if c >= 2 and grid[r][c - 1].type == grid[r][c - 2].type:
                blocked.append(grid[r][c - 1].type)
            if r >= 2 and grid[r - 1][c].type == grid[r - 2][c].type:
                blocked.append(grid[r - 1][c].type)
            grid[r][c] = factory.create(factory.random_type(exclude=blocked), r, c)

    return grid


def grid_from_types(rows: Sequence[Sequence[str]], factory: TileFactory) -> Grid:
    """Build a grid from explicit category rows (row 0 first)."""
    return [
        [factory.create(tile_type, r, c) for c, tile_type in enumerate(row)]
        for r, row in enumerate(rows)
    ]


def copy_grid(grid: Grid) -> Grid:
    """Shallow copy of the row lists; tiles are immutable and shared."""
    return [list(row) for row in grid]


def in_bounds(grid: Grid, row: int, col: int) -> bool:
    """Check if a coordinate lies on the grid."""
    return 0 <= row < len(grid) and 0 <= col < len(grid[row])


def is_adjacent(r1: int, c1: int, r2: int, c2: int) -> bool:
    """Check if two cells are 4-neighbours (Manhattan distance 1)."""
    return abs(r1 - r2) + abs(c1 - c2) == 1


def swap_tiles(grid: Grid, r1: int, c1: int, r2: int, c2: int) -> Grid:
    """Return a new grid with two tiles exchanged and their positions rewritten."""
    swapped = copy_grid(grid)
    a = grid[r1][c1]
    b = grid[r2][c2]
    swapped[r1][c1] = b.moved_to(r1, c1) if b is not None else None
    swapped[r2][c2] = a.moved_to(r2, c2) if a is not None else None
    return swapped


def grid_to_types(grid: Grid) -> List[List[Optional[str]]]:
    """Categories only, for serialization and comparisons."""
    return [[tile.type if tile else None for tile in row] for row in grid]


def render_grid(grid: Grid) -> str:
    """Render the grid to a string, one letter per tile and '.' for empty."""
    if not grid:
        return ""

    lines = [
        ''.join(tile.type[0] if tile else '.' for tile in row)
        for row in grid
    ]

    return '\n'.join(lines)


def validate_grid(grid: Grid, allow_empty: bool = False) -> None:
    """
    Check the structural invariants of a grid.

    Raises:
        InvalidGridError: If the grid is not square, a tile's row/col
            disagrees with its cell, an id repeats, or a cell is empty
            when `allow_empty` is False
    """
    size = len(grid)
    seen: Dict[str, Coordinate] = {}

    for r, row in enumerate(grid):
        if len(row) != size:
            raise InvalidGridError(
                f"Row {r} has {len(row)} cells, expected {size}",
                context={"row": r},
            )
        for c, tile in enumerate(row):
            if tile is None:
                if not allow_empty:
                    raise InvalidGridError(f"Empty cell at ({r}, {c})", context={"row": r, "col": c})
                continue
            if (tile.row, tile.col) != (r, c):
                raise InvalidGridError(
                    f"Tile {tile.id} stored at ({r}, {c}) claims ({tile.row}, {tile.col})",
                    context={"tile": tile.id},
                )
            if tile.id in seen:
                raise InvalidGridError(
                    f"Duplicate tile id {tile.id} at ({r}, {c}) and {tuple(seen[tile.id])}",
                    context={"tile": tile.id},
                )
            seen[tile.id] = Coordinate(r, c)
