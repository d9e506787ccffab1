"""Cache – AdvancedCache facade.

Tag-indexed TTL cache with stale-while-revalidate reads, scheduled background
refresh and count-bounded garbage collection. Single event loop, no threads:
every store/tag-index mutation runs without an ``await`` in between, and the
only suspension points are the caller's fetcher and deferred timer callbacks.

Usage::

    cache = AdvancedCache.from_settings()
    async with cache:                       # starts the revalidation/GC ticks
        product = await cache.get("product:1", load_product, CacheConfigs.PRODUCTS)
        cache.invalidate_by_tags(["products"])
"""
from __future__ import annotations

import asyncio
import functools
from typing import Any, Iterable

from shopcache.cache.entry import CacheEntry, CacheOptions, Fetcher, RevalidationStrategy
from shopcache.cache.gc import GarbageCollector
from shopcache.cache.revalidation import RevalidationScheduler
from shopcache.cache.stats import CacheStats, HitCounter, estimate_memory_usage
from shopcache.cache.store import EntryStore
from shopcache.config import CacheSettings, EnvSettingsLoader, SettingsLoader
from shopcache.kernel.errors import CacheError, FetchError
from shopcache.kernel.time import Clock, SystemClock
from shopcache.observability.logging import get_logger
from shopcache.scheduling import AsyncioScheduler, Job, Scheduler

__all__ = ["AdvancedCache"]

logger = get_logger(__name__)

REVALIDATION_JOB_ID = "cache.revalidation"
GC_JOB_ID = "cache.gc"


def _fail(marker: asyncio.Future[Any], exc: BaseException) -> None:
    if marker.done():
        return
    marker.set_exception(exc)
    # joiners still see the error; a refresh nobody joined must not warn
    marker.exception()


class AdvancedCache:
    """In-process application cache.

    Constructing the cache has no side effects; the owner calls ``start`` /
    ``stop`` (or uses ``async with``) to run the periodic revalidation and
    garbage-collection ticks.
    """

    def __init__(
        self,
        settings: CacheSettings | None = None,
        *,
        clock: Clock | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._settings = settings or CacheSettings()
        self._clock = clock or SystemClock()
        self._timers: Scheduler = scheduler or AsyncioScheduler()
        self._store = EntryStore()
        self._inflight: dict[str, asyncio.Future[Any]] = {}
        self._fetchers: dict[str, tuple[Fetcher, CacheOptions]] = {}
        self._counter = HitCounter()
        self._revalidator = RevalidationScheduler(
            self._store,
            self._timers,
            self._revalidate_scheduled,
            self.is_revalidating,
            self._clock,
        )
        self._gc = GarbageCollector(self._store, self.invalidate, self._clock, self._settings.max_size)

    @classmethod
    def from_settings(
        cls,
        loader: SettingsLoader | None = None,
        **kwargs: Any,
    ) -> AdvancedCache:
        """Build a cache from ``CACHE_*`` environment variables (or *loader*)."""
        settings = (loader or EnvSettingsLoader()).load(CacheSettings)
        return cls(settings, **kwargs)

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        self._timers.add_job(
            Job(
                id=REVALIDATION_JOB_ID,
                name="Cache revalidation tick",
                handler=self._revalidation_tick,
                interval_seconds=self._settings.revalidation_tick,
            )
        )
        self._timers.add_job(
            Job(
                id=GC_JOB_ID,
                name="Cache garbage collection",
                handler=self._gc_tick,
                interval_seconds=self._settings.gc_tick,
            )
        )
        await self._timers.start()
        logger.info("cache.started", max_size=self._settings.max_size)

    async def stop(self) -> None:
        await self._timers.stop()
        self._timers.remove_job(REVALIDATION_JOB_ID)
        self._timers.remove_job(GC_JOB_ID)
        self._revalidator.forget_queued()
        for key, marker in list(self._inflight.items()):
            _fail(marker, CacheError(f"Cache stopped while refreshing '{key}'"))
        self._inflight.clear()
        logger.info("cache.stopped")

    async def __aenter__(self) -> AdvancedCache:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # ------------------------------------------------------------------
    # reads and writes
    # ------------------------------------------------------------------

    async def get(self, key: str, fetcher: Fetcher, options: CacheOptions | None = None) -> Any:
        """Return the cached value for *key*, fetching it on a miss.

        A fresh entry is returned as is; with ``revalidate_on_stale`` an entry
        in its last ``stale_ratio`` of life also queues one background refresh.
        On a miss or hard expiry *fetcher* is awaited and its result stored.
        If that fetch fails, a stale entry is served instead; with nothing to
        serve, :class:`FetchError` is raised.
        """
        opts = options or CacheOptions()
        now = self._clock.timestamp()
        entry = self._store.get(key)

        if entry is not None and not entry.is_expired(now):
            self._counter.record_hit()
            self._fetchers[key] = (fetcher, opts)
            if opts.revalidate_on_stale and self._is_approaching_expiry(entry, now):
                self._schedule_background_refresh(key, fetcher, opts)
            return entry.data

        self._counter.record_miss()
        data = await self._fetch_through(key, fetcher, opts)
        # only keys that are actually stored keep a fetcher; invalidate/GC drop it
        if self._store.get(key) is not None:
            self._fetchers[key] = (fetcher, opts)
        return data

    def set(self, key: str, data: Any, options: CacheOptions | None = None) -> None:
        opts = options or CacheOptions()
        ttl = opts.ttl if opts.ttl is not None else self._settings.default_ttl
        now = self._clock.timestamp()
        previous = self._store.get(key)
        self._store.put(
            CacheEntry(
                key=key,
                data=data,
                timestamp=now,
                expires_at=now + ttl,
                tags=frozenset(opts.tags),
                version=previous.version + 1 if previous is not None else 1,
            )
        )
        if len(self._store) > self._settings.gc_trigger_size:
            self._gc.collect()

    def peek(self, key: str) -> CacheEntry[Any] | None:
        """The stored entry, expired or not, without touching hit statistics."""
        return self._store.get(key)

    def has(self, key: str) -> bool:
        entry = self._store.get(key)
        return entry is not None and not entry.is_expired(self._clock.timestamp())

    # ------------------------------------------------------------------
    # invalidation
    # ------------------------------------------------------------------

    def invalidate(self, key: str) -> bool:
        removed = self._store.remove(key) is not None
        self._inflight.pop(key, None)
        self._fetchers.pop(key, None)
        self._revalidator.forget_queued(key)
        return removed

    def invalidate_by_tags(self, tags: Iterable[str]) -> int:
        if isinstance(tags, str):
            tags = [tags]
        removed = 0
        for tag in tags:
            for key in self._store.tag_index.keys_for(tag):
                if self.invalidate(key):
                    removed += 1
            self._store.tag_index.pop(tag)
        if removed:
            logger.debug("cache.invalidated_by_tags", removed=removed)
        return removed

    def clear(self) -> None:
        self._store.clear()
        self._inflight.clear()
        self._fetchers.clear()
        self._revalidator.forget_queued()

    # ------------------------------------------------------------------
    # revalidation & stats
    # ------------------------------------------------------------------

    def schedule_revalidation(self, key: str, strategy: RevalidationStrategy) -> None:
        self._revalidator.schedule(key, strategy)

    def remove_revalidation(self, key: str) -> None:
        self._revalidator.remove(key)

    def is_revalidating(self, key: str) -> bool:
        return key in self._inflight

    def has_fetcher(self, key: str) -> bool:
        """Whether a scheduled revalidation of *key* can fall back to a ``get`` fetcher."""
        return key in self._fetchers

    def collect_garbage(self) -> list[str]:
        return self._gc.collect()

    def get_stats(self) -> CacheStats:
        now = self._clock.timestamp()
        entries = self._store.entries()
        expired = sum(1 for entry in entries if entry.is_expired(now))
        return CacheStats(
            total_entries=len(entries),
            valid_entries=len(entries) - expired,
            expired_entries=expired,
            tagged_entries=sum(1 for entry in entries if entry.tags),
            tags=len(self._store.tag_index),
            revalidation_queue=len(self._revalidator),
            active_revalidations=len(self._inflight),
            hits=self._counter.hits,
            misses=self._counter.misses,
            hit_rate=self._counter.hit_rate,
            memory_usage=estimate_memory_usage(entries),
        )

    @property
    def settings(self) -> CacheSettings:
        return self._settings

    @property
    def store(self) -> EntryStore:
        return self._store

    def __len__(self) -> int:
        return len(self._store)

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------

    def _is_approaching_expiry(self, entry: CacheEntry[Any], now: float) -> bool:
        return entry.remaining(now) < entry.ttl * self._settings.stale_ratio

    def _acquire(self, key: str) -> asyncio.Future[Any]:
        marker: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._inflight[key] = marker
        return marker

    def _release(self, key: str, marker: asyncio.Future[Any]) -> None:
        if self._inflight.get(key) is marker:
            del self._inflight[key]

    async def _fetch_through(self, key: str, fetcher: Fetcher, opts: CacheOptions) -> Any:
        pending = self._inflight.get(key)
        try:
            if pending is not None:
                return await asyncio.shield(pending)
            return await self._refresh(key, fetcher, opts, self._acquire(key))
        except Exception as exc:
            stale = self._store.get(key)
            if stale is None:
                raise FetchError(key, exc) from exc
            logger.warning("cache.stale_fallback", key=key, error=repr(exc))
            return stale.data

    async def _refresh(
        self,
        key: str,
        fetcher: Fetcher,
        opts: CacheOptions,
        marker: asyncio.Future[Any],
    ) -> Any:
        """Fetch and store *key* while holding its in-flight *marker*.

        The result is only written back if the marker is still the current
        one; an ``invalidate`` or ``clear`` in the meantime discards it.
        """
        try:
            data = await fetcher()
        except asyncio.CancelledError:
            _fail(marker, CacheError(f"Refresh of '{key}' was cancelled"))
            raise
        except Exception as exc:
            _fail(marker, exc)
            raise
        else:
            if self._inflight.get(key) is marker:
                self.set(key, data, opts)
            if not marker.done():
                marker.set_result(data)
            return data
        finally:
            self._release(key, marker)

    def _schedule_background_refresh(self, key: str, fetcher: Fetcher, opts: CacheOptions) -> None:
        if key in self._inflight:
            return
        marker = self._acquire(key)
        self._timers.call_later(
            0,
            functools.partial(self._background_refresh, key, fetcher, opts, marker),
            name=f"refresh:{key}",
        )

    async def _background_refresh(
        self,
        key: str,
        fetcher: Fetcher,
        opts: CacheOptions,
        marker: asyncio.Future[Any],
    ) -> None:
        try:
            await self._refresh(key, fetcher, opts, marker)
        except Exception as exc:  # noqa: BLE001
            logger.warning("cache.refresh.failed", key=key, error=repr(exc))

    async def _revalidate_scheduled(self, key: str, strategy: RevalidationStrategy) -> None:
        entry = self._store.get(key)
        if entry is None:
            # invalidated between the tick and the delayed dispatch
            logger.debug("cache.revalidation.entry_gone", key=key)
            return
        if key in self._inflight:
            return
        fetcher, opts = strategy.fetcher, strategy.options
        if fetcher is None:
            registered = self._fetchers.get(key)
            if registered is None:
                logger.debug("cache.revalidation.no_fetcher", key=key)
                return
            fetcher, last_opts = registered
            opts = opts or last_opts
        if opts is None:
            opts = CacheOptions(ttl=entry.ttl, tags=tuple(entry.tags))
        await self._background_refresh(key, fetcher, opts, self._acquire(key))

    async def _revalidation_tick(self) -> None:
        self._revalidator.tick()

    async def _gc_tick(self) -> None:
        self._gc.collect()
