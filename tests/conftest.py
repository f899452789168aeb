"""Shared grid builders for the test suite."""

from typing import List, Sequence

import pytest
from pydantic import Field

from src.match_engine import TileFactory, grid_from_types


LETTER_TYPES = {"G": "GREEN", "B": "BLUE", "Y": "YELLOW", "R": "RED"}

# No runs anywhere; every row and column alternates
BASE_ROWS = [
    "GBYRGB",
    "YRGBYR",
    "GBYRGB",
    "YRGBYR",
    "GBYRGB",
    "YRGBYR",
]

# Base grid with a single horizontal run of YELLOW at row 2, columns 1-3
RUN_ROWS = [
    "GBYRGB",
    "YRGBYR",
    "GYYYGB",
    "YRGBYR",
    "GBYRGB",
    "YRGBYR",
]

# No runs; swapping (2,3) with (3,3) completes YELLOW at row 2, columns 1-3
SWAP_ROWS = [
    "GBYRGB",
    "YRGBYR",
    "GYYRGB",
    "YRGYYR",
    "GBYRGB",
    "YRGBYR",
]


class ScriptedFactory(TileFactory):
    """Refills from a fixed letter script, then falls back to the seeded RNG."""
    script: List[str] = Field(default_factory=list)

    def random_type(self, exclude: Sequence[str] = ()) -> str:
        if self.script:
            return LETTER_TYPES[self.script.pop(0)]
        return super().random_type(exclude)


@pytest.fixture
def make_grid():
    """Build a grid from letter rows such as "GBYRGB"."""
    def _make(rows, factory=None):
        factory = factory or TileFactory(id_prefix="g")
        return grid_from_types([[LETTER_TYPES[ch] for ch in row] for row in rows], factory)
    return _make


@pytest.fixture
def scripted():
    """Build a refill factory that yields the given letters in order."""
    def _make(*letters, seed=0):
        return ScriptedFactory(script=list("".join(letters)), seed=seed, id_prefix="s")
    return _make
