"""Cache – tag-indexed TTL cache with stale-while-revalidate and GC."""
from shopcache.cache.entry import (
    CacheEntry,
    CacheOptions,
    Fetcher,
    Priority,
    RevalidationStrategy,
)
from shopcache.cache.store import EntryStore, TagIndex
from shopcache.cache.stats import CacheStats, HitCounter, estimate_memory_usage
from shopcache.cache.gc import GarbageCollector
from shopcache.cache.revalidation import RevalidationScheduler
from shopcache.cache.facade import AdvancedCache
from shopcache.cache.presets import CacheConfigs, CacheUtils
from shopcache.cache.keys import CacheKey
from shopcache.cache.decorators import cached

__all__ = [
    "AdvancedCache",
    "CacheConfigs",
    "CacheEntry",
    "CacheKey",
    "CacheOptions",
    "CacheStats",
    "CacheUtils",
    "EntryStore",
    "Fetcher",
    "GarbageCollector",
    "HitCounter",
    "Priority",
    "RevalidationScheduler",
    "RevalidationStrategy",
    "TagIndex",
    "cached",
    "estimate_memory_usage",
]
