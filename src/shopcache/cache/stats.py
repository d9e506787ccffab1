"""Cache – statistics snapshot, hit counter and memory estimate."""
from __future__ import annotations

import dataclasses
import json
from typing import Any, Iterable

from shopcache.cache.entry import CacheEntry

__all__ = ["CacheStats", "HitCounter", "estimate_memory_usage"]


@dataclasses.dataclass(frozen=True)
class CacheStats:
    """Point-in-time view of the cache. ``memory_usage`` is a rough estimate."""

    total_entries: int
    valid_entries: int
    expired_entries: int
    tagged_entries: int
    tags: int
    revalidation_queue: int
    active_revalidations: int
    hits: int
    misses: int
    hit_rate: float
    memory_usage: int

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


class HitCounter:
    def __init__(self) -> None:
        self.hits = 0
        self.misses = 0

    def record_hit(self) -> None:
        self.hits += 1

    def record_miss(self) -> None:
        self.misses += 1

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0


def estimate_memory_usage(entries: Iterable[CacheEntry[Any]]) -> int:
    """Approximate bytes held by *entries*.

    Two bytes per character of each entry's JSON form, falling back to
    ``repr`` for values json cannot encode. Not an exact accounting.
    """
    size = 0
    for entry in entries:
        try:
            encoded = json.dumps(
                {
                    "key": entry.key,
                    "data": entry.data,
                    "timestamp": entry.timestamp,
                    "expires_at": entry.expires_at,
                    "tags": sorted(entry.tags),
                    "version": entry.version,
                },
                default=str,
            )
        except (TypeError, ValueError):
            encoded = repr(entry)
        size += len(encoded) * 2
    return size
