"""Explicitly constructed engine wiring stores, cache, and pipeline components."""

import logging
import sqlite3

from job_matching.core.cache import Cache, MemoryCache
from job_matching.core.config import Settings
from job_matching.core.seed import SeedData
from job_matching.pipeline.lifecycle import MatchLifecycle
from job_matching.pipeline.refresher import MatchRefresher
from job_matching.pipeline.scorer import CompatibilityScorer
from job_matching.pipeline.stats import StatsAggregator
from job_matching.stores.sqlite import (
    SqliteListingSource,
    SqliteMatchStore,
    SqlitePreferencesSource,
)

logger = logging.getLogger(__name__)


class MatchingEngine:
    """Holds one connection's stores and the components built on them.

    Usage::

        conn = init_db(settings.database.path)
        engine = MatchingEngine(settings, conn)
        engine.refresher.refresh("user-1")
        engine.stats.stats("user-1")
    """

    def __init__(
        self,
        settings: Settings,
        conn: sqlite3.Connection,
        cache: Cache | None = None,
    ) -> None:
        self.settings = settings
        self.cache = cache or MemoryCache(maxsize=settings.cache.maxsize)
        self.listings = SqliteListingSource(conn)
        self.preferences = SqlitePreferencesSource(conn)
        self.matches = SqliteMatchStore(conn)
        self.scorer = CompatibilityScorer(settings.scoring)
        self.refresher = MatchRefresher(
            self.listings,
            self.preferences,
            self.matches,
            self.scorer,
            self.cache,
            settings.matching,
        )
        self.lifecycle = MatchLifecycle(self.matches, self.cache)
        self.stats = StatsAggregator(
            self.matches,
            self.cache,
            settings.matching,
            ttl_seconds=settings.cache.stats_ttl_seconds,
        )

    def import_seed(self, seed: SeedData) -> tuple[int, int]:
        """Upsert seed listings and preferences. Returns (listings, preferences) counts."""
        for listing in seed.listings:
            self.listings.upsert(listing)
        for prefs in seed.preferences:
            self.preferences.upsert(prefs)
        logger.info(
            "Imported %d listings and %d preference profiles",
            len(seed.listings), len(seed.preferences),
        )
        return len(seed.listings), len(seed.preferences)
