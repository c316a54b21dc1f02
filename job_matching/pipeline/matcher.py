"""Filter chain for refresh candidates.

Filter order:
  1. ActiveListingFilter: drop listings flagged inactive
  2. DeduplicationFilter: in-memory within the batch, by job id
  3. AlreadyMatchedFilter: drop jobs the user already has a match for

The first two are no-ops behind SqliteListingSource, which already selects
active rows keyed by id. They guard ListingSource implementations that make
neither promise.
"""

import logging
from collections.abc import Callable, Iterable

from job_matching.core.schemas import JobListing

logger = logging.getLogger(__name__)

# A filter is a callable that takes listings and returns a subset.
Filter = Callable[[list[JobListing]], list[JobListing]]


class ActiveListingFilter:
    """Remove listings that are no longer active."""

    def __call__(self, listings: list[JobListing]) -> list[JobListing]:
        result = [j for j in listings if j.is_active]
        removed = len(listings) - len(result)
        if removed:
            logger.debug("ActiveListingFilter: removed %d inactive listings", removed)
        return result


class DeduplicationFilter:
    """Remove repeated job ids.

    Stateful: tracks seen ids across calls within the same filter instance.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def __call__(self, listings: list[JobListing]) -> list[JobListing]:
        result: list[JobListing] = []
        for j in listings:
            if j.id not in self._seen:
                self._seen.add(j.id)
                result.append(j)
        deduped = len(listings) - len(result)
        if deduped:
            logger.debug("DeduplicationFilter: removed %d duplicates", deduped)
        return result


class AlreadyMatchedFilter:
    """Remove jobs that already have a match for the user.

    Existing matches are never re-scored, even if preferences changed.
    """

    def __init__(self, matched_job_ids: Iterable[str]) -> None:
        self._matched = frozenset(matched_job_ids)

    def __call__(self, listings: list[JobListing]) -> list[JobListing]:
        result = [j for j in listings if j.id not in self._matched]
        skipped = len(listings) - len(result)
        if skipped:
            logger.debug("AlreadyMatchedFilter: skipped %d already-matched jobs", skipped)
        return result


def run_filter_chain(
    listings: list[JobListing],
    filters: list[Filter],
) -> list[JobListing]:
    """Apply filters in order, returning the surviving listings."""
    result = listings
    for f in filters:
        result = f(result)
    return result
