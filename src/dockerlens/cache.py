"""
Running-container cache for container filtering.

Filtering by status ("running" / "exited") runs on every keystroke and every
refresh, so the set of running container ids is cached.

Cache Contract:
- The cache is keyed on the *identity* of the source collection, not on its
  contents. Passing the same list object again within the TTL reuses the
  cached set even if a container's status was mutated in place.
- Callers either pass a new collection whenever status data changes (a
  refresh does this) or call clear() after mutating items in place.
- The TTL is checked lazily on each ensure() call; there is no background timer.

The clock is injectable so TTL expiry can be tested without sleeping.
"""

import logging
import time
from typing import Any, Callable, Dict, FrozenSet, Optional, Sequence

from .model import ContainerInfo, is_container_running

logger = logging.getLogger(__name__)

RUNNING_SET_TTL = 3.0  # seconds


class RunningSetCache:
    """Identity + TTL cache of running container ids."""

    def __init__(self, ttl: float = RUNNING_SET_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._running_ids: FrozenSet[str] = frozenset()
        self._source: Optional[Sequence[ContainerInfo]] = None
        self._computed_at = 0.0
        self._stats = {
            'hits': 0,
            'misses': 0,
            'clears': 0,
        }

    def ensure(self, items: Sequence[ContainerInfo]) -> FrozenSet[str]:
        """Return the running ids for `items`, recomputing only when needed."""
        now = self._clock()
        if self._source is not None and self._source is items and now - self._computed_at < self.ttl:
            self._stats['hits'] += 1
            return self._running_ids

        self._stats['misses'] += 1
        running_ids = frozenset(item.id for item in items if is_container_running(item.status))
        # Swap all three together so a reader never sees a half-updated cache
        self._running_ids, self._source, self._computed_at = running_ids, items, now
        logger.debug(f"Running set recomputed: {len(running_ids)}/{len(items)} running")
        return running_ids

    def is_running(self, item_id: str) -> bool:
        return item_id in self._running_ids

    @property
    def running_ids(self) -> FrozenSet[str]:
        return self._running_ids

    def clear(self) -> None:
        """Drop the cached set; the next ensure() always recomputes."""
        self._running_ids = frozenset()
        self._source = None
        self._computed_at = 0.0
        self._stats['clears'] += 1
        logger.debug("Running set cache cleared")

    def get_stats(self) -> Dict[str, Any]:
        """Get cache performance statistics."""
        total_requests = self._stats['hits'] + self._stats['misses']
        hit_rate = (self._stats['hits'] / total_requests * 100) if total_requests > 0 else 0
        return {
            **self._stats,
            'cached_ids': len(self._running_ids),
            'hit_rate_percent': round(hit_rate, 2),
            'total_requests': total_requests,
        }

    def reset_stats(self) -> None:
        self._stats = {
            'hits': 0,
            'misses': 0,
            'clears': 0,
        }
