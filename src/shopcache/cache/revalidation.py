"""Cache – revalidation scheduler.

Decides *when* scheduled keys are due for a refresh; the refresh itself is a
callback supplied by the cache facade, dispatched as a one-shot timer after
the strategy's priority delay.
"""
from __future__ import annotations

import functools
from typing import Awaitable, Callable

from shopcache.cache.entry import RevalidationStrategy
from shopcache.cache.store import EntryStore
from shopcache.kernel.time import Clock
from shopcache.observability.logging import get_logger
from shopcache.scheduling import Scheduler

__all__ = ["RevalidationScheduler"]

logger = get_logger(__name__)

Refresh = Callable[[str, RevalidationStrategy], Awaitable[None]]


class RevalidationScheduler:
    def __init__(
        self,
        store: EntryStore,
        timers: Scheduler,
        refresh: Refresh,
        is_in_flight: Callable[[str], bool],
        clock: Clock,
    ) -> None:
        self._store = store
        self._timers = timers
        self._refresh = refresh
        self._is_in_flight = is_in_flight
        self._clock = clock
        self._strategies: dict[str, RevalidationStrategy] = {}
        self._queued: set[str] = set()

    def schedule(self, key: str, strategy: RevalidationStrategy) -> None:
        self._strategies[key] = strategy

    def remove(self, key: str) -> None:
        """Stop future decisions for *key*; an already dispatched refresh still runs."""
        self._strategies.pop(key, None)

    def get(self, key: str) -> RevalidationStrategy | None:
        return self._strategies.get(key)

    def is_queued(self, key: str) -> bool:
        return key in self._queued

    def clear(self) -> None:
        self._strategies.clear()
        self._queued.clear()

    def forget_queued(self, key: str | None = None) -> None:
        """Forget dispatched-but-unfired refreshes, for *key* or for every key.

        Called when the entry was invalidated or the timers were stopped; the
        refresh callback itself checks the entry still exists when it fires.
        """
        if key is None:
            self._queued.clear()
        else:
            self._queued.discard(key)

    def tick(self) -> list[str]:
        """Dispatch a refresh for every due key; returns the dispatched keys."""
        now = self._clock.timestamp()
        dispatched: list[str] = []

        for key, strategy in list(self._strategies.items()):
            entry = self._store.get(key)
            if entry is None:
                del self._strategies[key]
                logger.debug("cache.revalidation.dropped", key=key)
                continue
            if key in self._queued or self._is_in_flight(key):
                continue
            if entry.age(now) <= strategy.interval:
                continue
            try:
                due = strategy.should_run()
            except Exception as exc:  # noqa: BLE001
                logger.warning("cache.revalidation.condition_failed", key=key, error=repr(exc))
                continue
            if not due:
                continue

            self._queued.add(key)
            self._timers.call_later(
                strategy.priority.delay,
                functools.partial(self._run, key, strategy),
                name=f"revalidate:{key}",
            )
            dispatched.append(key)

        if dispatched:
            logger.debug("cache.revalidation.dispatched", keys=dispatched)
        return dispatched

    async def _run(self, key: str, strategy: RevalidationStrategy) -> None:
        self._queued.discard(key)
        await self._refresh(key, strategy)

    def __contains__(self, key: object) -> bool:
        return key in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)
