"""SQLite-backed implementations of the store interfaces."""

import sqlite3

from job_matching.core import db
from job_matching.core.schemas import (
    InsertResult,
    JobListing,
    JobMatch,
    MatchStatus,
    UserPreferences,
)
from job_matching.stores.base import ListingSource, MatchStore, PreferencesSource


class SqliteListingSource(ListingSource):
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def list_active(self, limit: int, newest_first: bool = True) -> list[JobListing]:
        return db.list_active_listings(self._conn, limit, newest_first=newest_first)

    def upsert(self, listing: JobListing) -> None:
        db.upsert_listing(self._conn, listing)


class SqlitePreferencesSource(PreferencesSource):
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def find_by_user(self, user_id: str) -> UserPreferences | None:
        return db.get_preferences(self._conn, user_id)

    def upsert(self, prefs: UserPreferences) -> None:
        db.upsert_preferences(self._conn, prefs)


class SqliteMatchStore(MatchStore):
    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def find_existing_job_ids(self, user_id: str) -> set[str]:
        return db.get_matched_job_ids(self._conn, user_id)

    def insert_if_absent(self, match: JobMatch) -> InsertResult:
        return db.insert_match_if_absent(self._conn, match)

    def find_by_id(self, match_id: str) -> JobMatch | None:
        return db.get_match(self._conn, match_id)

    def find_for_user(
        self,
        user_id: str,
        status: MatchStatus | None = None,
        min_score: float | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[JobMatch]:
        return db.find_matches(
            self._conn, user_id, status=status, min_score=min_score, limit=limit, offset=offset,
        )

    def update_status(
        self,
        match_id: str,
        status: MatchStatus,
        timestamp_field: str | None,
    ) -> JobMatch | None:
        return db.update_match_status(self._conn, match_id, status, timestamp_field)

    def count_for_user(self, user_id: str) -> int:
        return db.count_matches(self._conn, user_id)

    def counts_by_status(self, user_id: str) -> dict[str, int]:
        return db.count_matches_by_status(self._conn, user_id)

    def average_score(self, user_id: str) -> float:
        return db.average_match_score(self._conn, user_id)

    def count_at_least(self, user_id: str, threshold: float) -> int:
        return db.count_matches_at_least(self._conn, user_id, threshold)

    def missing_skill_frequencies(self, user_id: str) -> list[tuple[str, int]]:
        return db.missing_skill_frequencies(self._conn, user_id)
