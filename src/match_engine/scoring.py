"""Points, bucket accumulation and the final percentage score."""

import math
from typing import Dict, Iterable, Optional
from pydantic import BaseModel, Field

from .grid import TILE_TYPES
from .models import CascadeStep


BUCKET_MAX = 100
BUCKET_COUNT = 4

Buckets = Dict[str, int]


class ScoringTiers(BaseModel):
    """Point values for a cascade step."""
    match3: int = Field(default=10, ge=0)
    match4: int = Field(default=20, ge=0)
    match5: int = Field(default=30, ge=0)
    combo_bonus: int = Field(default=5, ge=0)
    cascade_bonus: int = Field(default=10, ge=0)


DEFAULT_TIERS = ScoringTiers()


def empty_buckets(tile_types: Iterable[str] = TILE_TYPES) -> Buckets:
    """One zeroed bucket per category."""
    return {tile_type: 0 for tile_type in tile_types}


def step_points(match_count: int, step_index: int, tiers: ScoringTiers = DEFAULT_TIERS) -> int:
    """
    Points for one cascade step.

    Base points come from the number of removed cells; any step after the
    first adds the combo bonus, any step after the second also adds the
    cascade bonus.
    """
    if match_count >= 5:
        points = tiers.match5
    elif match_count == 4:
        points = tiers.match4
    else:
        points = tiers.match3

    if step_index > 1:
        points += tiers.combo_bonus
    if step_index > 2:
        points += tiers.cascade_bonus

    return points


def add_to_bucket(
    buckets: Buckets,
    tile_type: str,
    points: int,
    bucket_max: int = BUCKET_MAX,
) -> Buckets:
    """Return new buckets with `points` added to one category, clamped."""
    updated = dict(buckets)
    updated[tile_type] = max(0, min(updated.get(tile_type, 0) + points, bucket_max))
    return updated


def apply_step(
    buckets: Buckets,
    step: CascadeStep,
    tiers: ScoringTiers = DEFAULT_TIERS,
    bucket_max: int = BUCKET_MAX,
) -> Buckets:
    """
    Credit a cascade step to the bucket of its first matched category.

    When one step clears several categories, all of its points still go to
    the category that appears first in the step's matched types.
    """
    target: Optional[str] = step.primary_type
    if target is None:
        return dict(buckets)
    return add_to_bucket(buckets, target, step_points(step.match_count, step.step_index, tiers), bucket_max)


def compute_final_score(buckets: Buckets, bucket_max: int = BUCKET_MAX) -> int:
    """
    Overall fill level of the four buckets as a 0-100 integer.

    Halves round up. A board one point short of full reports 99, never 100.
    """
    total = sum(min(max(value, 0), bucket_max) for value in buckets.values())
    capacity = BUCKET_COUNT * bucket_max
    score = min(100, int(math.floor(total * 100 / capacity + 0.5)))

    if score == 100 and not all_buckets_full(buckets, bucket_max):
        return 99
    return score


def all_buckets_full(buckets: Buckets, bucket_max: int = BUCKET_MAX) -> bool:
    """Win condition: every bucket at its cap."""
    return len(buckets) >= BUCKET_COUNT and all(value >= bucket_max for value in buckets.values())
