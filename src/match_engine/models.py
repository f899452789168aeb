"""Data models for the match engine."""

from typing import List, Optional, NamedTuple
from pydantic import BaseModel, ConfigDict, Field


class Coordinate(NamedTuple):
    """A cell position on the grid."""
    row: int
    col: int


class Tile(BaseModel):
    """A single tile. `row`/`col` always mirror the cell holding it."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    type: str
    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)

    def moved_to(self, row: int, col: int) -> "Tile":
        """Return this tile placed at a new cell, keeping its id."""
        return self.model_copy(update={"row": row, "col": col})


# Rows of cells; None marks a cell emptied mid-cascade
Grid = List[List[Optional[Tile]]]


class CascadeStep(BaseModel):
    """One remove -> gravity -> refill iteration of a cascade."""
    model_config = ConfigDict(frozen=True)

    grid: Grid
    matched_types: List[str] = Field(default_factory=list)
    match_count: int = Field(..., ge=0)
    step_index: int = Field(..., ge=1)
    matched_cells: List[Coordinate] = Field(default_factory=list)

    @property
    def primary_type(self) -> Optional[str]:
        """Category credited with this step's points."""
        return self.matched_types[0] if self.matched_types else None
