"""Abstract collaborator interfaces consumed by the matching engine."""

from abc import ABC, abstractmethod

from job_matching.core.schemas import (
    InsertResult,
    JobListing,
    JobMatch,
    MatchStatus,
    UserPreferences,
)


class ListingSource(ABC):
    """Read access to the job listing catalog."""

    @abstractmethod
    def list_active(self, limit: int, newest_first: bool = True) -> list[JobListing]:
        """Return up to ``limit`` active listings, ordered by posted time."""


class PreferencesSource(ABC):
    """Read access to user preference profiles."""

    @abstractmethod
    def find_by_user(self, user_id: str) -> UserPreferences | None:
        """Return the user's preferences, or None when they have none."""


class MatchStore(ABC):
    """Persistence for job matches and the aggregates computed over them."""

    @abstractmethod
    def find_existing_job_ids(self, user_id: str) -> set[str]:
        """Ids of every job the user already has a match for."""

    @abstractmethod
    def insert_if_absent(self, match: JobMatch) -> InsertResult:
        """Insert unless a match for (user_id, job_id) already exists."""

    @abstractmethod
    def find_by_id(self, match_id: str) -> JobMatch | None:
        """Return one match by id."""

    @abstractmethod
    def find_for_user(
        self,
        user_id: str,
        status: MatchStatus | None = None,
        min_score: float | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[JobMatch]:
        """List a user's matches, newest first."""

    @abstractmethod
    def update_status(
        self,
        match_id: str,
        status: MatchStatus,
        timestamp_field: str | None,
    ) -> JobMatch | None:
        """Set the status, stamping ``timestamp_field`` if unset. None if not found."""

    @abstractmethod
    def count_for_user(self, user_id: str) -> int:
        """Total number of matches for the user."""

    @abstractmethod
    def counts_by_status(self, user_id: str) -> dict[str, int]:
        """Match counts keyed by status value."""

    @abstractmethod
    def average_score(self, user_id: str) -> float:
        """Mean compatibility score, 0.0 when there are no matches."""

    @abstractmethod
    def count_at_least(self, user_id: str, threshold: float) -> int:
        """Number of matches scoring at or above ``threshold``."""

    @abstractmethod
    def missing_skill_frequencies(self, user_id: str) -> list[tuple[str, int]]:
        """(skill, count) pairs across all missing-skill lists, most frequent first."""
