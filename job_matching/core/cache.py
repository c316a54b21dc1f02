"""Key-value cache with per-key TTL.

The engine only relies on the ``Cache`` interface; ``MemoryCache`` is the
in-process implementation backed by ``cachetools.TLRUCache``.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, NamedTuple

from cachetools import TLRUCache

logger = logging.getLogger(__name__)


class Cache(ABC):
    """Base class for cache backends."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store a value that expires after ``ttl_seconds``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove a single key (no-op if absent)."""

    @abstractmethod
    def delete_by_prefix(self, prefix: str) -> int:
        """Remove every key starting with ``prefix``. Returns the number removed."""


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class MemoryCache(Cache):
    """Thread-safe in-process cache with a TTL per key.

    Usage::

        cache = MemoryCache(maxsize=1024)
        cache.set("match-stats:u1:5", payload, ttl_seconds=300)
        cache.delete_by_prefix("match-stats:u1:")
    """

    def __init__(
        self,
        maxsize: int = 1024,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_time_to_use, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._cache.get(key)
        return None if entry is None else entry.value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            msg = f"ttl_seconds must be positive, got {ttl_seconds}"
            raise ValueError(msg)
        with self._lock:
            self._cache[key] = _Entry(value, float(ttl_seconds))

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def delete_by_prefix(self, prefix: str) -> int:
        with self._lock:
            keys = [k for k in list(self._cache.keys()) if k.startswith(prefix)]
            for k in keys:
                self._cache.pop(k, None)
        if keys:
            logger.debug("Evicted %d cache keys with prefix '%s'", len(keys), prefix)
        return len(keys)

    def __len__(self) -> int:
        with self._lock:
            self._cache.expire()
            return len(self._cache)
