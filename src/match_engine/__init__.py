"""Match-3 puzzle engine for Balance Builder."""

from .models import Tile, Coordinate, Grid, CascadeStep
from .errors import MatchEngineError, InvalidGridError, CascadeLimitError
from .grid import (
    GRID_SIZE,
    TILE_TYPES,
    TileFactory,
    create_grid,
    grid_from_types,
    copy_grid,
    in_bounds,
    is_adjacent,
    swap_tiles,
    grid_to_types,
    render_grid,
    validate_grid,
)
from .matching import find_matches, has_matches, get_matched_types
from .swap import would_create_match, find_valid_swaps
from .cascade import remove_matches, apply_gravity, refill_grid, resolve_cascade
from .scoring import (
    BUCKET_MAX,
    Buckets,
    ScoringTiers,
    empty_buckets,
    step_points,
    add_to_bucket,
    apply_step,
    compute_final_score,
    all_buckets_full,
)

__all__ = [
    # Models
    "Tile",
    "Coordinate",
    "Grid",
    "CascadeStep",
    # Errors
    "MatchEngineError",
    "InvalidGridError",
    "CascadeLimitError",
    # Grid utilities
    "GRID_SIZE",
    "TILE_TYPES",
    "TileFactory",
    "create_grid",
    "grid_from_types",
    "copy_grid",
    "in_bounds",
    "is_adjacent",
    "swap_tiles",
    "grid_to_types",
    "render_grid",
    "validate_grid",
    # Matching
    "find_matches",
    "has_matches",
    "get_matched_types",
    "would_create_match",
    "find_valid_swaps",
    # Cascade
    "remove_matches",
    "apply_gravity",
    "refill_grid",
    "resolve_cascade",
    # Scoring
    "BUCKET_MAX",
    "Buckets",
    "ScoringTiers",
    "empty_buckets",
    "step_points",
    "add_to_bucket",
    "apply_step",
    "compute_final_score",
    "all_buckets_full",
]
