"""Game configuration and YAML loading."""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from ..match_engine.grid import GRID_SIZE, TILE_TYPES
from ..match_engine.scoring import BUCKET_COUNT, BUCKET_MAX, ScoringTiers


PRAISE_MESSAGES: List[str] = [
    "Great Move!",
    "Smart Saver!",
    "Super Combo!",
    "Well Balanced!",
    "Money Master!",
]


class GameConfig(BaseModel):
    """Configuration for a Balance Builder session."""
    grid_size: int = Field(default=GRID_SIZE, ge=3)
    tile_types: List[str] = Field(default_factory=lambda: list(TILE_TYPES))
    bucket_max: int = Field(default=BUCKET_MAX, ge=1)
    scoring: ScoringTiers = Field(default_factory=ScoringTiers)

    # Timing, in seconds
    game_duration: int = Field(default=60, ge=1)
    tick_period: float = Field(default=1.0, gt=0)
    tutorial_delay: float = Field(default=3.0, ge=0)
    finish_delay: float = Field(default=1.5, ge=0)
    exit_delay: float = Field(default=0.8, ge=0)
    praise_duration: float = Field(default=1.5, ge=0)
    float_duration: float = Field(default=0.8, ge=0)
    step_delay: float = Field(default=0.45, ge=0)

    praise_messages: List[str] = Field(default_factory=lambda: list(PRAISE_MESSAGES), min_length=1)
    max_cascade_steps: Optional[int] = Field(default=None, ge=1)
    seed: Optional[int] = None

    lead_source_tag: str = "BALANCE_BUILDER_LEAD"
    booking_source_tag: str = "BALANCE_BUILDER_BOOKING"

    @field_validator("tile_types")
    @classmethod
    def _four_unique_types(cls, value: List[str]) -> List[str]:
        if len(value) != BUCKET_COUNT or len(set(value)) != BUCKET_COUNT:
            raise ValueError(f"tile_types must list {BUCKET_COUNT} distinct categories, got {value}")
        return value


def load_config(config_path: str | Path) -> GameConfig:
    """Load game configuration from a YAML file."""
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    return GameConfig(**data)
