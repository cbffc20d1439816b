"""Configuration models and YAML loader for the scoring engine."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

MAX_TOTAL_SCORE = 100.0

# Points per criterion. Each criterion's raw value in [0, 1] is multiplied
# by its points; the table sums to MAX_TOTAL_SCORE.
MAX_SCORES: dict[str, float] = {
    "age_range": 15.0,
    "engagement_type": 8.0,
    "contract_type": 6.0,
    "activities": 8.0,
    "schedule": 15.0,
    "children_count": 3.0,
    "distance": 12.0,
    "budget": 10.0,
    "experience": 6.0,
    "certifications": 5.0,
    "verification": 5.0,
    "reputation": 5.0,
    "recency": 2.0,
}


class ScoringConfig(BaseModel):
    """Weight table and thresholds for compatibility scoring."""

    weights: dict[str, float] = Field(default_factory=lambda: dict(MAX_SCORES))
    distance_tolerance: float = Field(default=1.2, ge=1.0)
    budget_is_eliminatory: bool = False
    full_experience_years: int = Field(default=5, ge=1)
    full_certifications: int = Field(default=3, ge=1)
    recency_full_days: int = Field(default=7, ge=0)
    recency_floor_days: int = Field(default=90, ge=1)
    recency_floor: float = Field(default=0.2, ge=0.0, le=1.0)
    review_prior_count: int = Field(default=3, ge=0)

    @field_validator("weights")
    @classmethod
    def weights_cover_criteria(cls, v: dict[str, float]) -> dict[str, float]:
        unknown = set(v) - set(MAX_SCORES)
        if unknown:
            msg = f"unknown scoring criteria: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        merged = {**MAX_SCORES, **v}
        if any(w < 0 for w in merged.values()):
            msg = "weights must not be negative"
            raise ValueError(msg)
        if abs(sum(merged.values()) - MAX_TOTAL_SCORE) > 1e-6:
            msg = f"weights must sum to {MAX_TOTAL_SCORE:g}"
            raise ValueError(msg)
        return merged


class RankingConfig(BaseModel):
    """Defaults for ranking a candidate pool."""

    limit: int = Field(default=20, ge=1)
    min_score: int = Field(default=0, ge=0, le=100)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
