"""Per-user match statistics, memoized in the cache.

Cache reads and writes are best-effort: any cache error is logged and the
statistics are recomputed from the match store.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from job_matching.core.cache import Cache
from job_matching.core.config import MatchingConfig
from job_matching.core.schemas import MatchStats, MatchStatus, SkillGap
from job_matching.stores.base import MatchStore

logger = logging.getLogger(__name__)

_STATS_KEY_PREFIX = "match-stats"


def stats_cache_prefix(user_id: str) -> str:
    """Prefix shared by every cached stats entry of one user."""
    return f"{_STATS_KEY_PREFIX}:{user_id}:"


def invalidate_user_stats(cache: Cache, user_id: str) -> None:
    """Drop cached stats for a user. Failures are logged, never raised.

    A ``stats()`` call that computed before a concurrent write committed can
    still store its result after this runs; that entry lives until its TTL.
    """
    try:
        cache.delete_by_prefix(stats_cache_prefix(user_id))
    except Exception:
        logger.warning("Failed to invalidate cached stats for user '%s'", user_id, exc_info=True)


class StatsAggregator:
    """Computes counts by status, average score, high-match count, and skill gaps."""

    def __init__(
        self,
        store: MatchStore,
        cache: Cache,
        config: MatchingConfig | None = None,
        ttl_seconds: int = 300,
    ) -> None:
        self._store = store
        self._cache = cache
        self._config = config or MatchingConfig()
        self._ttl_seconds = ttl_seconds

    def stats(self, user_id: str, limit: int | None = None) -> MatchStats:
        """Return statistics for a user, served from cache when possible.

        Raises ValueError if ``limit`` is less than 1.
        """
        limit = limit if limit is not None else self._config.top_skill_gaps
        if limit < 1:
            msg = f"limit must be at least 1, got {limit}"
            raise ValueError(msg)
        key = f"{stats_cache_prefix(user_id)}{limit}"

        cached = self._cache_get(key)
        if cached is not None:
            logger.debug("Stats cache hit for '%s'", key)
            return MatchStats.model_validate(cached)

        result = self.compute(user_id, limit)
        self._cache_set(key, result.model_dump())
        return result

    def compute(self, user_id: str, limit: int) -> MatchStats:
        """Compute statistics directly from the store, bypassing the cache."""
        counts = self._store.counts_by_status(user_id)
        average = self._store.average_score(user_id)
        high = self._store.count_at_least(user_id, self._config.high_match_threshold)
        gaps = self._store.missing_skill_frequencies(user_id)
        gaps = sorted(gaps, key=lambda g: (-g[1], g[0]))[:limit]

        return MatchStats(
            total=sum(counts.values()),
            new=counts.get(MatchStatus.NEW.value, 0),
            saved=counts.get(MatchStatus.SAVED.value, 0),
            applied=counts.get(MatchStatus.APPLIED.value, 0),
            average_score=_round_cents(average),
            high_match_count=high,
            top_skill_gaps=[SkillGap(skill=s, count=n) for s, n in gaps],
        )

    def _cache_get(self, key: str) -> dict | None:
        try:
            return self._cache.get(key)
        except Exception:
            logger.warning("Cache read failed for '%s' - recomputing", key, exc_info=True)
            return None

    def _cache_set(self, key: str, value: dict) -> None:
        try:
            self._cache.set(key, value, self._ttl_seconds)
        except Exception:
            logger.warning("Cache write failed for '%s'", key, exc_info=True)


def _round_cents(value: float) -> float:
    """Round half up to two decimals, from the shortest decimal repr of ``value``."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))
