"""Configuration models and YAML loader for the matching engine."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/matches.db"
    busy_timeout_s: float = Field(default=5.0, gt=0.0)


class CacheConfig(BaseModel):
    """In-process cache sizing and stats TTL."""

    maxsize: int = Field(default=1024, ge=1)
    stats_ttl_seconds: int = Field(default=300, ge=1)


class ScoringWeights(BaseModel):
    """Component weights for the overall compatibility score."""

    skills: float = Field(default=0.35, ge=0.0, le=1.0)
    keywords: float = Field(default=0.25, ge=0.0, le=1.0)
    experience: float = Field(default=0.25, ge=0.0, le=1.0)
    education: float = Field(default=0.15, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def weights_sum_to_one(self) -> "ScoringWeights":
        total = self.skills + self.keywords + self.experience + self.education
        if abs(total - 1.0) > 1e-6:
            msg = f"scoring weights must sum to 1.0, got {total:.4f}"
            raise ValueError(msg)
        return self


class ScoringConfig(BaseModel):
    """Knobs for rule-based compatibility scoring."""

    neutral_score: int = Field(default=50, ge=0, le=100)
    remote_bonus: int = Field(default=10, ge=0, le=100)
    max_missing_terms: int = Field(default=10, ge=0)
    weights: ScoringWeights = Field(default_factory=ScoringWeights)


class MatchingConfig(BaseModel):
    """Refresh batch size and persistence/statistics thresholds."""

    batch_size: int = Field(default=100, ge=1, le=1000)
    persist_threshold: int = Field(default=30, ge=0, le=100)
    high_match_threshold: int = Field(default=70, ge=0, le=100)
    top_skill_gaps: int = Field(default=5, ge=1)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
