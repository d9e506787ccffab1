"""Cache – count-bounded garbage collector."""
from __future__ import annotations

from typing import Callable

from shopcache.cache.store import EntryStore
from shopcache.kernel.time import Clock
from shopcache.observability.logging import get_logger

__all__ = ["GarbageCollector"]

logger = get_logger(__name__)


class GarbageCollector:
    """Evicts expired entries, then the oldest ones while over ``max_size``.

    ``remove`` is the cache's own invalidation path so evictions keep the tag
    index and in-flight markers consistent. ``max_size`` bounds the entry
    count, not bytes.
    """

    def __init__(
        self,
        store: EntryStore,
        remove: Callable[[str], bool],
        clock: Clock,
        max_size: int,
    ) -> None:
        self._store = store
        self._remove = remove
        self._clock = clock
        self.max_size = max_size
        self.runs = 0
        self.collected = 0

    def collect(self) -> list[str]:
        now = self._clock.timestamp()
        doomed = self._store.expired_keys(now)
        expired = len(doomed)

        excess = len(self._store) - expired - self.max_size
        if excess > 0:
            doomed.extend(self._store.oldest(excess, exclude=doomed))

        for key in doomed:
            self._remove(key)

        self.runs += 1
        self.collected += len(doomed)
        if doomed:
            logger.info(
                "cache.gc.collected",
                removed=len(doomed),
                expired=expired,
                evicted=len(doomed) - expired,
                remaining=len(self._store),
            )
        return doomed
