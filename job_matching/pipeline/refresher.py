"""Refresh cycle: load, filter, score, and persist new matches for one user.

Data flow:
  1. Preferences (may be absent → neutral scoring)
  2. Active listings, newest first, capped at batch_size
  3. Filter chain (active, in-batch dedup, already matched)
  4. Scorer → matches at or above persist_threshold
  5. Insert-if-absent; a lost race counts as not new
  6. Invalidate the user's cached stats if anything was inserted
"""

import logging

from job_matching.core.cache import Cache
from job_matching.core.config import MatchingConfig
from job_matching.core.schemas import InsertResult, JobMatch, RefreshResult
from job_matching.pipeline.matcher import (
    ActiveListingFilter,
    AlreadyMatchedFilter,
    DeduplicationFilter,
    Filter,
    run_filter_chain,
)
from job_matching.pipeline.scorer import CompatibilityScorer
from job_matching.pipeline.stats import invalidate_user_stats
from job_matching.stores.base import ListingSource, MatchStore, PreferencesSource

logger = logging.getLogger(__name__)


class MatchRefresher:
    """Scores jobs a user has not been matched with yet and stores qualifying matches."""

    def __init__(
        self,
        listings: ListingSource,
        preferences: PreferencesSource,
        matches: MatchStore,
        scorer: CompatibilityScorer,
        cache: Cache,
        config: MatchingConfig | None = None,
    ) -> None:
        self._listings = listings
        self._preferences = preferences
        self._matches = matches
        self._scorer = scorer
        self._cache = cache
        self._config = config or MatchingConfig()

    def refresh(self, user_id: str) -> RefreshResult:
        """Run one refresh cycle for ``user_id``.

        Store errors propagate to the caller; nothing is retried.
        """
        prefs = self._preferences.find_by_user(user_id)
        if prefs is None:
            logger.debug("No preferences for '%s' - scoring with neutral defaults", user_id)

        jobs = self._listings.list_active(self._config.batch_size, newest_first=True)
        if not jobs:
            logger.info("No active listings - nothing to refresh for '%s'", user_id)
            return RefreshResult(
                new_matches=0,
                total_matches=self._matches.count_for_user(user_id),
            )

        existing = self._matches.find_existing_job_ids(user_id)
        candidates = run_filter_chain(jobs, self._build_filters(existing))

        new_count = 0
        below_threshold = 0
        for job in candidates:
            breakdown = self._scorer.score(job, prefs)
            if breakdown.overall < self._config.persist_threshold:
                below_threshold += 1
                continue
            match = JobMatch.from_breakdown(user_id, job.id, breakdown)
            if self._matches.insert_if_absent(match) is InsertResult.INSERTED:
                new_count += 1
            else:
                logger.debug("Match for '%s'/'%s' already exists - skipping", user_id, job.id)

        if new_count:
            invalidate_user_stats(self._cache, user_id)

        total = self._matches.count_for_user(user_id)
        logger.info(
            "Refresh '%s': %d listings, %d candidates, %d below threshold, %d new, %d total",
            user_id, len(jobs), len(candidates), below_threshold, new_count, total,
        )
        return RefreshResult(new_matches=new_count, total_matches=total)

    def _build_filters(self, existing_job_ids: set[str]) -> list[Filter]:
        return [
            ActiveListingFilter(),
            DeduplicationFilter(),
            AlreadyMatchedFilter(existing_job_ids),
        ]
