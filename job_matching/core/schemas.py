"""Core data models for the matching engine."""

import secrets
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def new_match_id() -> str:
    """Return a random 15-character URL-safe id."""
    return secrets.token_urlsafe(11)


class JobListing(BaseModel):
    """A job listing owned by the ingestion side; read-only here."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    company: str = ""
    location: str = ""
    is_remote: bool = False
    required_skills: list[str] = Field(default_factory=list)
    preferred_skills: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    years_experience_min: int | None = Field(default=None, ge=0)
    years_experience_max: int | None = Field(default=None, ge=0)
    is_active: bool = True
    posted_at: datetime = Field(default_factory=datetime.now)


class UserPreferences(BaseModel):
    """A user's job-preference profile. At most one per user."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    skills: list[str] = Field(default_factory=list)
    resume_keywords: list[str] = Field(default_factory=list)
    years_experience: int | None = Field(default=None, ge=0)
    is_remote_preferred: bool = False


class MatchStatus(str, Enum):
    """Review status of a match."""

    NEW = "new"
    VIEWED = "viewed"
    SAVED = "saved"
    APPLIED = "applied"
    DISMISSED = "dismissed"

    @property
    def timestamp_field(self) -> str | None:
        """Column stamped the first time this status is reached."""
        if self is MatchStatus.NEW:
            return None
        return f"{self.value}_at"


class InsertResult(str, Enum):
    """Outcome of an insert-if-absent on the match store."""

    INSERTED = "inserted"
    ALREADY_EXISTS = "already_exists"


class ScoreBreakdown(BaseModel):
    """Overall and per-component compatibility scores plus evidence."""

    model_config = ConfigDict(frozen=True)

    overall: int = Field(ge=0, le=100)
    skills: int = Field(ge=0, le=100)
    keywords: int = Field(ge=0, le=100)
    experience: int = Field(ge=0, le=100)
    education: int = Field(ge=0, le=100)
    matched_skills: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)
    matched_keywords: list[str] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)


class JobMatch(BaseModel):
    """A persisted (user, job) pairing with scores, evidence, and review status."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_match_id)
    user_id: str
    job_id: str
    compatibility_score: float = Field(ge=0.0, le=100.0)
    skills_score: float = Field(default=0.0, ge=0.0, le=100.0)
    keywords_score: float = Field(default=0.0, ge=0.0, le=100.0)
    experience_score: float = Field(default=0.0, ge=0.0, le=100.0)
    education_score: float = Field(default=0.0, ge=0.0, le=100.0)
    matched_skills: list[str] = Field(default_factory=list)
    missing_skills: list[str] = Field(default_factory=list)
    matched_keywords: list[str] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)
    status: MatchStatus = MatchStatus.NEW
    viewed_at: datetime | None = None
    saved_at: datetime | None = None
    applied_at: datetime | None = None
    dismissed_at: datetime | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime | None = None

    @classmethod
    def from_breakdown(cls, user_id: str, job_id: str, breakdown: ScoreBreakdown) -> "JobMatch":
        """Build a fresh ``new`` match from a score breakdown."""
        return cls(
            user_id=user_id,
            job_id=job_id,
            compatibility_score=breakdown.overall,
            skills_score=breakdown.skills,
            keywords_score=breakdown.keywords,
            experience_score=breakdown.experience,
            education_score=breakdown.education,
            matched_skills=list(breakdown.matched_skills),
            missing_skills=list(breakdown.missing_skills),
            matched_keywords=list(breakdown.matched_keywords),
            missing_keywords=list(breakdown.missing_keywords),
        )


class RefreshResult(BaseModel):
    """Summary of one refresh cycle."""

    new_matches: int = Field(ge=0)
    total_matches: int = Field(ge=0)


class SkillGap(BaseModel):
    """A missing skill and how many of the user's matches list it."""

    skill: str
    count: int = Field(ge=1)


class MatchStats(BaseModel):
    """Per-user match statistics."""

    total: int = 0
    new: int = 0
    saved: int = 0
    applied: int = 0
    average_score: float = 0.0
    high_match_count: int = 0
    top_skill_gaps: list[SkillGap] = Field(default_factory=list)
