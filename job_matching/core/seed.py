"""SeedData model for loading listings and preferences from a local YAML file."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from job_matching.core.schemas import JobListing, UserPreferences


class SeedData(BaseModel):
    """Listings and preference profiles to load into the store."""

    listings: list[JobListing] = Field(default_factory=list)
    preferences: list[UserPreferences] = Field(default_factory=list)

    @field_validator("preferences")
    @classmethod
    def one_profile_per_user(cls, v: list[UserPreferences]) -> list[UserPreferences]:
        user_ids = [p.user_id for p in v]
        dupes = sorted({u for u in user_ids if user_ids.count(u) > 1})
        if dupes:
            msg = f"duplicate preferences for users: {dupes}"
            raise ValueError(msg)
        return v

    @classmethod
    def from_yaml(cls, path: str | Path) -> "SeedData":
        """Load seed data from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Seed file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
