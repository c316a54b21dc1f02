"""SQLite database layer for listings, preferences, and job matches."""

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from job_matching.core.schemas import (
    InsertResult,
    JobListing,
    JobMatch,
    MatchStatus,
    UserPreferences,
)

_LISTINGS_TABLE = """
CREATE TABLE IF NOT EXISTS job_listings (
    id                   TEXT    PRIMARY KEY,
    title                TEXT    NOT NULL,
    company              TEXT    NOT NULL DEFAULT '',
    location             TEXT    NOT NULL DEFAULT '',
    is_remote            INTEGER NOT NULL DEFAULT 0,
    required_skills      TEXT    NOT NULL DEFAULT '[]',
    preferred_skills     TEXT    NOT NULL DEFAULT '[]',
    keywords             TEXT    NOT NULL DEFAULT '[]',
    years_experience_min INTEGER,
    years_experience_max INTEGER,
    is_active            INTEGER NOT NULL DEFAULT 1,
    posted_at            TEXT    NOT NULL
);
"""

_PREFERENCES_TABLE = """
CREATE TABLE IF NOT EXISTS user_preferences (
    user_id              TEXT    PRIMARY KEY,
    skills               TEXT    NOT NULL DEFAULT '[]',
    resume_keywords      TEXT    NOT NULL DEFAULT '[]',
    years_experience     INTEGER,
    is_remote_preferred  INTEGER NOT NULL DEFAULT 0
);
"""

_MATCHES_TABLE = """
CREATE TABLE IF NOT EXISTS job_matches (
    id                   TEXT    PRIMARY KEY,
    user_id              TEXT    NOT NULL,
    job_id               TEXT    NOT NULL,
    compatibility_score  REAL    NOT NULL,
    skills_score         REAL    NOT NULL DEFAULT 0.0,
    keywords_score       REAL    NOT NULL DEFAULT 0.0,
    experience_score     REAL    NOT NULL DEFAULT 0.0,
    education_score      REAL    NOT NULL DEFAULT 0.0,
    matched_skills       TEXT    NOT NULL DEFAULT '[]',
    missing_skills       TEXT    NOT NULL DEFAULT '[]',
    matched_keywords     TEXT    NOT NULL DEFAULT '[]',
    missing_keywords     TEXT    NOT NULL DEFAULT '[]',
    status               TEXT    NOT NULL DEFAULT 'new',
    viewed_at            TEXT,
    saved_at             TEXT,
    applied_at           TEXT,
    dismissed_at         TEXT,
    created_at           TEXT    NOT NULL,
    updated_at           TEXT,
    UNIQUE(user_id, job_id)
);
"""

_MATCHES_USER_INDEX = """
CREATE INDEX IF NOT EXISTS idx_job_matches_user ON job_matches(user_id, status);
"""

# Only these columns may be stamped by update_match_status.
_TIMESTAMP_FIELDS = frozenset(
    s.timestamp_field for s in MatchStatus if s.timestamp_field is not None
)


def init_db(path: str | Path, busy_timeout_s: float = 5.0) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path), timeout=busy_timeout_s)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_LISTINGS_TABLE)
    conn.execute(_PREFERENCES_TABLE)
    conn.execute(_MATCHES_TABLE)
    conn.execute(_MATCHES_USER_INDEX)
    conn.commit()
    return conn


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


def upsert_listing(conn: sqlite3.Connection, listing: JobListing) -> None:
    """Insert a listing or replace the stored copy with the same id."""
    conn.execute(
        """
        INSERT INTO job_listings
            (id, title, company, location, is_remote, required_skills,
             preferred_skills, keywords, years_experience_min,
             years_experience_max, is_active, posted_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            title = excluded.title,
            company = excluded.company,
            location = excluded.location,
            is_remote = excluded.is_remote,
            required_skills = excluded.required_skills,
            preferred_skills = excluded.preferred_skills,
            keywords = excluded.keywords,
            years_experience_min = excluded.years_experience_min,
            years_experience_max = excluded.years_experience_max,
            is_active = excluded.is_active,
            posted_at = excluded.posted_at
        """,
        (
            listing.id,
            listing.title,
            listing.company,
            listing.location,
            int(listing.is_remote),
            json.dumps(listing.required_skills),
            json.dumps(listing.preferred_skills),
            json.dumps(listing.keywords),
            listing.years_experience_min,
            listing.years_experience_max,
            int(listing.is_active),
            listing.posted_at.isoformat(),
        ),
    )
    conn.commit()


def list_active_listings(
    conn: sqlite3.Connection,
    limit: int,
    newest_first: bool = True,
) -> list[JobListing]:
    """Return up to ``limit`` active listings ordered by posted_at."""
    order = "DESC" if newest_first else "ASC"
    rows = conn.execute(
        f"SELECT * FROM job_listings WHERE is_active = 1 ORDER BY posted_at {order} LIMIT ?",
        (limit,),
    ).fetchall()
    return [_row_to_listing(r) for r in rows]


def _row_to_listing(row: sqlite3.Row) -> JobListing:
    return JobListing(
        id=row["id"],
        title=row["title"],
        company=row["company"],
        location=row["location"],
        is_remote=bool(row["is_remote"]),
        required_skills=json.loads(row["required_skills"]),
        preferred_skills=json.loads(row["preferred_skills"]),
        keywords=json.loads(row["keywords"]),
        years_experience_min=row["years_experience_min"],
        years_experience_max=row["years_experience_max"],
        is_active=bool(row["is_active"]),
        posted_at=datetime.fromisoformat(row["posted_at"]),
    )


# ---------------------------------------------------------------------------
# Preferences
# ---------------------------------------------------------------------------


def upsert_preferences(conn: sqlite3.Connection, prefs: UserPreferences) -> None:
    """Insert or replace the preference profile for a user."""
    conn.execute(
        """
        INSERT INTO user_preferences
            (user_id, skills, resume_keywords, years_experience, is_remote_preferred)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(user_id) DO UPDATE SET
            skills = excluded.skills,
            resume_keywords = excluded.resume_keywords,
            years_experience = excluded.years_experience,
            is_remote_preferred = excluded.is_remote_preferred
        """,
        (
            prefs.user_id,
            json.dumps(prefs.skills),
            json.dumps(prefs.resume_keywords),
            prefs.years_experience,
            int(prefs.is_remote_preferred),
        ),
    )
    conn.commit()


def get_preferences(conn: sqlite3.Connection, user_id: str) -> UserPreferences | None:
    """Return the user's preferences, or None if they have none."""
    row = conn.execute(
        "SELECT * FROM user_preferences WHERE user_id = ?",
        (user_id,),
    ).fetchone()
    if row is None:
        return None
    return UserPreferences(
        user_id=row["user_id"],
        skills=json.loads(row["skills"]),
        resume_keywords=json.loads(row["resume_keywords"]),
        years_experience=row["years_experience"],
        is_remote_preferred=bool(row["is_remote_preferred"]),
    )


# ---------------------------------------------------------------------------
# Matches
# ---------------------------------------------------------------------------


def get_matched_job_ids(conn: sqlite3.Connection, user_id: str) -> set[str]:
    """Return the ids of every job the user already has a match for."""
    rows = conn.execute(
        "SELECT job_id FROM job_matches WHERE user_id = ?",
        (user_id,),
    ).fetchall()
    return {r["job_id"] for r in rows}


def insert_match_if_absent(conn: sqlite3.Connection, match: JobMatch) -> InsertResult:
    """Insert a match unless the (user_id, job_id) pair already exists."""
    cursor = conn.execute(
        """
        INSERT INTO job_matches
            (id, user_id, job_id, compatibility_score, skills_score,
             keywords_score, experience_score, education_score,
             matched_skills, missing_skills, matched_keywords, missing_keywords,
             status, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(user_id, job_id) DO NOTHING
        """,
        (
            match.id,
            match.user_id,
            match.job_id,
            match.compatibility_score,
            match.skills_score,
            match.keywords_score,
            match.experience_score,
            match.education_score,
            json.dumps(match.matched_skills),
            json.dumps(match.missing_skills),
            json.dumps(match.matched_keywords),
            json.dumps(match.missing_keywords),
            match.status.value,
            match.created_at.isoformat(),
        ),
    )
    conn.commit()
    if cursor.rowcount == 0:
        return InsertResult.ALREADY_EXISTS
    return InsertResult.INSERTED


def get_match(conn: sqlite3.Connection, match_id: str) -> JobMatch | None:
    """Return a single match by id."""
    row = conn.execute("SELECT * FROM job_matches WHERE id = ?", (match_id,)).fetchone()
    return None if row is None else _row_to_match(row)


def update_match_status(
    conn: sqlite3.Connection,
    match_id: str,
    status: MatchStatus,
    timestamp_field: str | None,
    now: datetime | None = None,
) -> JobMatch | None:
    """Set a match's status, stamping ``timestamp_field`` only if it is unset.

    Returns the updated match, or None if no match has that id.
    """
    now = now or datetime.now()
    if timestamp_field is None:
        sql = "UPDATE job_matches SET status = ?, updated_at = ? WHERE id = ?"
        params: tuple[object, ...] = (status.value, now.isoformat(), match_id)
    else:
        if timestamp_field not in _TIMESTAMP_FIELDS:
            msg = f"Unknown timestamp field: {timestamp_field}"
            raise ValueError(msg)
        sql = (
            f"UPDATE job_matches SET status = ?, updated_at = ?, "
            f"{timestamp_field} = COALESCE({timestamp_field}, ?) WHERE id = ?"
        )
        params = (status.value, now.isoformat(), now.isoformat(), match_id)
    cursor = conn.execute(sql, params)
    conn.commit()
    if cursor.rowcount == 0:
        return None
    return get_match(conn, match_id)


def find_matches(
    conn: sqlite3.Connection,
    user_id: str,
    status: MatchStatus | None = None,
    min_score: float | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[JobMatch]:
    """List a user's matches, newest first, with optional filters."""
    clauses = ["user_id = ?"]
    params: list[object] = [user_id]
    if status is not None:
        clauses.append("status = ?")
        params.append(status.value)
    if min_score is not None:
        clauses.append("compatibility_score >= ?")
        params.append(min_score)
    sql = f"SELECT * FROM job_matches WHERE {' AND '.join(clauses)} ORDER BY created_at DESC"
    # SQLite requires a LIMIT before OFFSET; -1 means no limit.
    sql += " LIMIT ? OFFSET ?"
    params.extend([limit if limit is not None else -1, offset])
    rows = conn.execute(sql, params).fetchall()
    return [_row_to_match(r) for r in rows]


def count_matches(conn: sqlite3.Connection, user_id: str) -> int:
    """Return how many matches the user has."""
    row = conn.execute(
        "SELECT COUNT(*) FROM job_matches WHERE user_id = ?",
        (user_id,),
    ).fetchone()
    return int(row[0])


def count_matches_by_status(conn: sqlite3.Connection, user_id: str) -> dict[str, int]:
    """Return {status: count} for every status the user has matches in."""
    rows = conn.execute(
        "SELECT status, COUNT(*) AS n FROM job_matches WHERE user_id = ? GROUP BY status",
        (user_id,),
    ).fetchall()
    return {r["status"]: int(r["n"]) for r in rows}


def average_match_score(conn: sqlite3.Connection, user_id: str) -> float:
    """Return the mean compatibility score, or 0.0 if the user has no matches."""
    row = conn.execute(
        "SELECT AVG(compatibility_score) FROM job_matches WHERE user_id = ?",
        (user_id,),
    ).fetchone()
    return float(row[0]) if row[0] is not None else 0.0


def count_matches_at_least(conn: sqlite3.Connection, user_id: str, threshold: float) -> int:
    """Return how many of the user's matches score at or above ``threshold``."""
    row = conn.execute(
        "SELECT COUNT(*) FROM job_matches WHERE user_id = ? AND compatibility_score >= ?",
        (user_id, threshold),
    ).fetchone()
    return int(row[0])


def missing_skill_frequencies(conn: sqlite3.Connection, user_id: str) -> list[tuple[str, int]]:
    """Return (skill, count) across all missing_skills lists, most frequent first."""
    rows = conn.execute(
        """
        SELECT j.value AS skill, COUNT(*) AS n
        FROM job_matches AS m, json_each(m.missing_skills) AS j
        WHERE m.user_id = ?
        GROUP BY j.value
        ORDER BY n DESC, skill ASC
        """,
        (user_id,),
    ).fetchall()
    return [(r["skill"], int(r["n"])) for r in rows]


def _row_to_match(row: sqlite3.Row) -> JobMatch:
    return JobMatch(
        id=row["id"],
        user_id=row["user_id"],
        job_id=row["job_id"],
        compatibility_score=row["compatibility_score"],
        skills_score=row["skills_score"],
        keywords_score=row["keywords_score"],
        experience_score=row["experience_score"],
        education_score=row["education_score"],
        matched_skills=json.loads(row["matched_skills"]),
        missing_skills=json.loads(row["missing_skills"]),
        matched_keywords=json.loads(row["matched_keywords"]),
        missing_keywords=json.loads(row["missing_keywords"]),
        status=MatchStatus(row["status"]),
        viewed_at=_parse_ts(row["viewed_at"]),
        saved_at=_parse_ts(row["saved_at"]),
        applied_at=_parse_ts(row["applied_at"]),
        dismissed_at=_parse_ts(row["dismissed_at"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None
