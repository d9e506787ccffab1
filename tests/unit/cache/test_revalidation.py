"""Unit tests for scheduled revalidation."""
import asyncio

import pytest
from structlog.testing import capture_logs

from shopcache.cache import (
    CacheEntry,
    CacheOptions,
    EntryStore,
    Priority,
    RevalidationScheduler,
    RevalidationStrategy,
)
from shopcache.cache.facade import GC_JOB_ID, REVALIDATION_JOB_ID
from shopcache.scheduling import InMemoryScheduler
from shopcache.testing.fakes import FakeClock


def _build(in_flight=()):
    clock = FakeClock()
    store = EntryStore()
    timers = InMemoryScheduler()
    refreshed = []

    async def refresh(key, strategy):
        refreshed.append((key, strategy.priority))

    scheduler = RevalidationScheduler(store, timers, refresh, lambda key: key in in_flight, clock)
    return scheduler, store, timers, clock, refreshed


def _put(store, clock, key):
    now = clock.timestamp()
    store.put(CacheEntry(key=key, data=key, timestamp=now, expires_at=now + 300))


# ---------------------------------------------------------------------------
# RevalidationStrategy / Priority
# ---------------------------------------------------------------------------

class TestStrategy:
    def test_priority_delays(self):
        assert Priority.HIGH.delay == 0
        assert Priority.MEDIUM.delay == 1
        assert Priority.LOW.delay == 5

    def test_priority_coerced_from_string(self):
        strategy = RevalidationStrategy(interval=10, priority="low")
        assert strategy.priority is Priority.LOW

    def test_condition_absent_means_eligible(self):
        assert RevalidationStrategy(interval=1).should_run() is True
        assert RevalidationStrategy(interval=1, condition=lambda: False).should_run() is False

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            RevalidationStrategy(interval=-1)


# ---------------------------------------------------------------------------
# RevalidationScheduler.tick
# ---------------------------------------------------------------------------

class TestTick:
    def test_not_due_before_interval(self):
        scheduler, store, timers, clock, _ = _build()
        _put(store, clock, "k")
        scheduler.schedule("k", RevalidationStrategy(interval=30))
        clock.advance(seconds=30)
        assert scheduler.tick() == []
        assert timers.pending == []

    def test_due_key_dispatched_with_priority_delay(self):
        scheduler, store, timers, clock, refreshed = _build()
        for key, priority in [("h", Priority.HIGH), ("m", Priority.MEDIUM), ("l", Priority.LOW)]:
            _put(store, clock, key)
            scheduler.schedule(key, RevalidationStrategy(interval=30, priority=priority))
        clock.advance(seconds=31)
        assert sorted(scheduler.tick()) == ["h", "l", "m"]
        assert sorted(job.delay_seconds for job in timers.pending) == [0.0, 1.0, 5.0]
        asyncio.run(timers.run_pending())
        assert [key for key, _ in refreshed] == ["h", "m", "l"]

    def test_condition_gates_dispatch(self):
        scheduler, store, timers, clock, _ = _build()
        allowed = []
        _put(store, clock, "k")
        scheduler.schedule("k", RevalidationStrategy(interval=1, condition=lambda: bool(allowed)))
        clock.advance(seconds=2)
        assert scheduler.tick() == []
        allowed.append(True)
        assert scheduler.tick() == ["k"]

    def test_raising_condition_skips_only_that_key(self):
        scheduler, store, _, clock, _ = _build()

        def broken():
            raise RuntimeError("flag service down")

        _put(store, clock, "bad")
        _put(store, clock, "good")
        scheduler.schedule("bad", RevalidationStrategy(interval=1, condition=broken))
        scheduler.schedule("good", RevalidationStrategy(interval=1))
        clock.advance(seconds=2)
        with capture_logs() as logs:
            assert scheduler.tick() == ["good"]
        assert any(log["event"] == "cache.revalidation.condition_failed" for log in logs)

    def test_in_flight_key_skipped(self):
        scheduler, store, _, clock, _ = _build(in_flight={"k"})
        _put(store, clock, "k")
        scheduler.schedule("k", RevalidationStrategy(interval=1))
        clock.advance(seconds=2)
        assert scheduler.tick() == []

    def test_queued_key_not_dispatched_twice(self):
        scheduler, store, timers, clock, _ = _build()
        _put(store, clock, "k")
        scheduler.schedule("k", RevalidationStrategy(interval=1, priority=Priority.LOW))
        clock.advance(seconds=2)
        assert scheduler.tick() == ["k"]
        assert scheduler.is_queued("k")
        assert scheduler.tick() == []
        assert len(timers.pending) == 1

    def test_missing_entry_drops_strategy(self):
        scheduler, _, _, _, _ = _build()
        scheduler.schedule("gone", RevalidationStrategy(interval=1))
        assert "gone" in scheduler
        assert scheduler.tick() == []
        assert "gone" not in scheduler
        assert len(scheduler) == 0

    def test_forget_queued_for_one_key(self):
        scheduler, store, _, clock, _ = _build()
        for key in ("a", "b"):
            _put(store, clock, key)
            scheduler.schedule(key, RevalidationStrategy(interval=1, priority=Priority.LOW))
        clock.advance(seconds=2)
        scheduler.tick()
        scheduler.forget_queued("a")
        assert not scheduler.is_queued("a")
        assert scheduler.is_queued("b")

    def test_remove_does_not_abort_dispatched_refresh(self):
        scheduler, store, timers, clock, refreshed = _build()
        _put(store, clock, "k")
        scheduler.schedule("k", RevalidationStrategy(interval=1))
        clock.advance(seconds=2)
        scheduler.tick()
        scheduler.remove("k")
        asyncio.run(timers.run_pending())
        assert [key for key, _ in refreshed] == ["k"]
        assert scheduler.tick() == []


# ---------------------------------------------------------------------------
# Through the cache facade
# ---------------------------------------------------------------------------

class TestCacheRevalidation:
    def test_start_registers_ticks(self, cache, manual_scheduler):
        asyncio.run(cache.start())
        assert {job.id for job in manual_scheduler.list_jobs()} == {REVALIDATION_JOB_ID, GC_JOB_ID}
        assert manual_scheduler.is_running
        asyncio.run(cache.stop())
        assert manual_scheduler.list_jobs() == []

    def test_scheduled_key_refreshed_with_last_fetcher(self, cache, fake_clock, manual_scheduler):
        values = iter(["v1", "v2"])

        async def fetch():
            return next(values)

        async def scenario():
            await cache.start()
            await cache.get("cat:1", fetch, CacheOptions(ttl=300, tags=("categories",)))
            cache.schedule_revalidation("cat:1", RevalidationStrategy(interval=30, priority=Priority.LOW))
            assert cache.get_stats().revalidation_queue == 1
            fake_clock.advance(seconds=31)
            await manual_scheduler.trigger(REVALIDATION_JOB_ID)
            assert [job.delay_seconds for job in manual_scheduler.pending] == [5.0]
            await manual_scheduler.run_pending()

        asyncio.run(scenario())
        entry = cache.peek("cat:1")
        assert entry.data == "v2"
        assert entry.version == 2
        assert entry.tags == {"categories"}

    def test_strategy_fetcher_keeps_entry_ttl_and_tags(self, cache, fake_clock, manual_scheduler):
        async def fetch():
            return "fresh"

        async def scenario():
            await cache.start()
            cache.set("menu", "stale", CacheOptions(ttl=120, tags=("menu", "navigation")))
            cache.schedule_revalidation(
                "menu", RevalidationStrategy(interval=10, priority=Priority.HIGH, fetcher=fetch)
            )
            fake_clock.advance(seconds=11)
            await manual_scheduler.trigger(REVALIDATION_JOB_ID)
            await manual_scheduler.run_pending()

        asyncio.run(scenario())
        entry = cache.peek("menu")
        assert entry.data == "fresh"
        assert entry.ttl == pytest.approx(120)
        assert entry.tags == {"menu", "navigation"}

    def test_no_fetcher_known_skips_refresh(self, cache, fake_clock, manual_scheduler):
        async def scenario():
            await cache.start()
            cache.set("k", "v")
            cache.schedule_revalidation("k", RevalidationStrategy(interval=1, priority=Priority.HIGH))
            fake_clock.advance(seconds=2)
            await manual_scheduler.trigger(REVALIDATION_JOB_ID)
            with capture_logs() as logs:
                await manual_scheduler.run_pending()
            return logs

        logs = asyncio.run(scenario())
        assert any(log["event"] == "cache.revalidation.no_fetcher" for log in logs)
        assert cache.peek("k").version == 1
        assert not cache.is_revalidating("k")

    def test_invalidated_key_dropped_on_next_tick(self, cache, manual_scheduler):
        async def scenario():
            await cache.start()
            cache.set("k", "v")
            cache.schedule_revalidation("k", RevalidationStrategy(interval=1))
            cache.invalidate("k")
            await manual_scheduler.trigger(REVALIDATION_JOB_ID)

        asyncio.run(scenario())
        assert cache.get_stats().revalidation_queue == 0

    def test_invalidate_after_dispatch_keeps_key_gone(self, cache, fake_clock, manual_scheduler):
        async def fetch():
            return "resurrected"

        async def scenario():
            await cache.start()
            cache.set("menu", "stale", CacheOptions(ttl=120, tags=("menu",)))
            cache.schedule_revalidation(
                "menu", RevalidationStrategy(interval=10, priority=Priority.LOW, fetcher=fetch)
            )
            fake_clock.advance(seconds=11)
            await manual_scheduler.trigger(REVALIDATION_JOB_ID)
            assert len(manual_scheduler.pending) == 1
            assert cache.invalidate("menu") is True
            with capture_logs() as logs:
                await manual_scheduler.run_pending()
            return logs

        logs = asyncio.run(scenario())
        assert cache.peek("menu") is None
        assert cache.store.tag_index.snapshot() == {}
        assert any(log["event"] == "cache.revalidation.entry_gone" for log in logs)

    def test_clear_after_dispatch_keeps_cache_empty(self, cache, fake_clock, manual_scheduler):
        async def fetch():
            return "resurrected"

        async def scenario():
            await cache.start()
            cache.set("k", "v")
            cache.schedule_revalidation("k", RevalidationStrategy(interval=1, fetcher=fetch))
            fake_clock.advance(seconds=2)
            await manual_scheduler.trigger(REVALIDATION_JOB_ID)
            cache.clear()
            await manual_scheduler.run_pending()

        asyncio.run(scenario())
        assert len(cache) == 0

    def test_remove_revalidation(self, cache):
        cache.set("k", "v")
        cache.schedule_revalidation("k", RevalidationStrategy(interval=1))
        cache.remove_revalidation("k")
        assert cache.get_stats().revalidation_queue == 0
