"""Match review lifecycle: validated status transitions.

Any known status may follow any other; there is no forward-only ordering.
Each status timestamp is stamped only the first time that status is reached.
"""

import logging

from job_matching.core.cache import Cache
from job_matching.core.errors import InvalidStatusError
from job_matching.core.schemas import JobMatch, MatchStatus
from job_matching.pipeline.stats import invalidate_user_stats
from job_matching.stores.base import MatchStore

logger = logging.getLogger(__name__)

VALID_STATUSES = tuple(s.value for s in MatchStatus)


def parse_status(value: MatchStatus | str) -> MatchStatus:
    """Coerce a raw value into a MatchStatus, raising InvalidStatusError if unknown."""
    if isinstance(value, MatchStatus):
        return value
    try:
        return MatchStatus(str(value).strip().lower())
    except ValueError:
        msg = f"status must be one of {list(VALID_STATUSES)}, got '{value}'"
        raise InvalidStatusError(msg) from None


class MatchLifecycle:
    """Applies status changes to persisted matches."""

    def __init__(self, store: MatchStore, cache: Cache) -> None:
        self._store = store
        self._cache = cache

    def transition(self, match_id: str, status: MatchStatus | str) -> JobMatch | None:
        """Move a match to ``status``.

        Returns the updated match, or None if no match has that id.
        Raises InvalidStatusError before touching the store if ``status`` is unknown.
        """
        target = parse_status(status)
        updated = self._store.update_status(match_id, target, target.timestamp_field)
        if updated is None:
            logger.info("Match '%s' not found", match_id)
            return None

        invalidate_user_stats(self._cache, updated.user_id)
        logger.debug("Match '%s' -> %s", match_id, target.value)
        return updated
