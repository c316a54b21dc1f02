"""Integration test: refresh → lifecycle → stats through MatchingEngine on SQLite."""

import sqlite3
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from job_matching.core.config import MatchingConfig, Settings
from job_matching.core.db import count_matches, find_matches, init_db
from job_matching.core.schemas import JobListing, MatchStatus, RefreshResult, UserPreferences
from job_matching.core.seed import SeedData
from job_matching.pipeline.engine import MatchingEngine

_BASE = datetime(2026, 10, 1, 9, 0, 0)


def _listing(job_id: str, days: int, **kw: object) -> JobListing:
    defaults: dict[str, object] = {
        "id": job_id,
        "title": "Engineer",
        "posted_at": _BASE + timedelta(days=days),
    }
    defaults.update(kw)
    return JobListing(**defaults)  # type: ignore[arg-type]


def _seed() -> SeedData:
    listings = [
        # skills 100, keywords 100, experience 100 → 93
        _listing("strong", 0, required_skills=["Python"], keywords=["api"], years_experience_min=2),
        # skills 50, keywords 50, experience 50 → 50
        _listing("medium", 1, required_skills=["Python", "Go"], keywords=["api", "grpc"]),
        # skills 0, keywords 0, experience 50 → 20, below threshold
        _listing("weak", 2, required_skills=["COBOL"], keywords=["mainframe"]),
        _listing("closed", 3, required_skills=["Python"], is_active=False),
    ]
    listings += [
        _listing(f"bulk{i:02d}", 10 + i, required_skills=["Python", "Terraform"], is_remote=True)
        for i in range(5)
    ]
    prefs = [
        UserPreferences(
            user_id="u1",
            skills=["python"],
            resume_keywords=["api"],
            years_experience=5,
            is_remote_preferred=True,
        ),
    ]
    return SeedData(listings=listings, preferences=prefs)


class TestFullPipeline:
    """End-to-end: seed → refresh → status changes → stats."""

    @pytest.fixture
    def db_path(self, tmp_path: Path) -> Path:
        return tmp_path / "test.db"

    @pytest.fixture
    def engine(self, db_path: Path) -> MatchingEngine:
        engine = MatchingEngine(Settings(), init_db(db_path))
        engine.import_seed(_seed())
        return engine

    def test_refresh_lifecycle_stats(self, engine: MatchingEngine) -> None:
        result = engine.refresher.refresh("u1")

        # 5 bulk + strong + medium; weak is below threshold, closed is inactive
        assert result == RefreshResult(new_matches=7, total_matches=7)

        matches = {m.job_id: m for m in engine.matches.find_for_user("u1")}
        assert set(matches) == {"strong", "medium", *(f"bulk{i:02d}" for i in range(5))}
        assert matches["strong"].compatibility_score == 93
        assert matches["medium"].compatibility_score == 50
        # bulk: skills 50 + remote 10 = 60, keywords 50, experience 50 → 53.5 → 54
        assert matches["bulk00"].compatibility_score == 54
        assert matches["bulk00"].missing_skills == ["terraform"]

        stats = engine.stats.stats("u1")
        assert stats.total == 7
        assert stats.new == 7
        assert stats.high_match_count == 1
        # (93 + 50 + 5 * 54) / 7
        assert stats.average_score == 59.0
        assert stats.top_skill_gaps[0].skill == "terraform"
        assert stats.top_skill_gaps[0].count == 5

        engine.lifecycle.transition(matches["strong"].id, MatchStatus.APPLIED)
        engine.lifecycle.transition(matches["medium"].id, MatchStatus.SAVED)
        engine.lifecycle.transition(matches["bulk00"].id, MatchStatus.DISMISSED)

        stats = engine.stats.stats("u1")
        assert stats.total == 7
        assert stats.new == 4
        assert stats.saved == 1
        assert stats.applied == 1

    def test_refresh_is_idempotent(self, engine: MatchingEngine) -> None:
        engine.refresher.refresh("u1")
        result = engine.refresher.refresh("u1")
        assert result == RefreshResult(new_matches=0, total_matches=7)

    def test_new_listing_invalidates_stats(self, engine: MatchingEngine) -> None:
        engine.refresher.refresh("u1")
        assert engine.stats.stats("u1").total == 7

        engine.listings.upsert(_listing("late", 30, required_skills=["Python"]))
        result = engine.refresher.refresh("u1")

        assert result.new_matches == 1
        assert engine.stats.stats("u1").total == 8

    def test_missing_evidence_capped(self, db_path: Path) -> None:
        conn = init_db(db_path)
        engine = MatchingEngine(Settings(matching=MatchingConfig(persist_threshold=0)), conn)
        engine.listings.upsert(
            _listing(
                "wide", 0,
                required_skills=[f"lang{i:02d}" for i in range(20)],
                keywords=[f"kw{i:02d}" for i in range(20)],
            ),
        )
        engine.preferences.upsert(UserPreferences(user_id="u2", skills=["rust"]))

        assert engine.refresher.refresh("u2").new_matches == 1

        [wide] = find_matches(conn, "u2")
        assert wide.compatibility_score == 20
        assert wide.missing_skills == [f"lang{i:02d}" for i in range(10)]
        assert len(wide.missing_keywords) == 10


class TestConcurrentRefresh:
    def test_concurrent_refresh_never_duplicates(self, tmp_path: Path) -> None:
        db_path = tmp_path / "race.db"
        setup = init_db(db_path)
        MatchingEngine(Settings(), setup).import_seed(_seed())
        setup.close()

        barrier = threading.Barrier(2)

        def worker() -> RefreshResult:
            conn = init_db(db_path)
            try:
                engine = MatchingEngine(Settings(), conn)
                barrier.wait()
                return engine.refresher.refresh("u1")
            finally:
                conn.close()

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = [f.result() for f in [pool.submit(worker), pool.submit(worker)]]

        check = init_db(db_path)
        assert count_matches(check, "u1") == 7
        assert sum(r.new_matches for r in results) == 7
        rows = check.execute(
            "SELECT job_id, COUNT(*) FROM job_matches WHERE user_id = 'u1' GROUP BY job_id"
        ).fetchall()
        assert all(n == 1 for _, n in rows)
        check.close()

    def test_sequential_connections_share_dedup(self, tmp_path: Path) -> None:
        db_path = tmp_path / "seq.db"
        first = MatchingEngine(Settings(), init_db(db_path))
        first.import_seed(_seed())
        first.refresher.refresh("u1")

        second_conn: sqlite3.Connection = init_db(db_path)
        second = MatchingEngine(Settings(), second_conn)
        assert second.refresher.refresh("u1").new_matches == 0
