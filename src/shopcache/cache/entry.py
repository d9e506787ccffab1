"""Cache – entry, per-call options and revalidation strategy."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any, Awaitable, Callable, Generic, TypeVar

__all__ = [
    "CacheEntry",
    "CacheOptions",
    "Fetcher",
    "Priority",
    "RevalidationStrategy",
]

T = TypeVar("T")

Fetcher = Callable[[], Awaitable[Any]]


class Priority(StrEnum):
    """Staggers scheduled refreshes; the delay is in seconds."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def delay(self) -> float:
        return _PRIORITY_DELAYS[self]


_PRIORITY_DELAYS: dict[Priority, float] = {
    Priority.HIGH: 0.0,
    Priority.MEDIUM: 1.0,
    Priority.LOW: 5.0,
}


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """One cached value. Replaced wholesale on every ``set``, never mutated."""

    key: str
    data: T
    timestamp: float
    expires_at: float
    tags: frozenset[str] = frozenset()
    version: int = 1

    @property
    def ttl(self) -> float:
        return self.expires_at - self.timestamp

    def age(self, now: float) -> float:
        return now - self.timestamp

    def remaining(self, now: float) -> float:
        return self.expires_at - now

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class CacheOptions:
    """Per-call cache configuration.

    ``ttl=None`` means the cache's configured default. ``background`` is
    informational only.
    """

    ttl: float | None = None
    tags: tuple[str, ...] = ()
    revalidate_on_stale: bool = False
    background: bool = False

    def __post_init__(self) -> None:
        if self.ttl is not None and self.ttl <= 0:
            raise ValueError("CacheOptions 'ttl' must be positive")
        if isinstance(self.tags, str):
            object.__setattr__(self, "tags", (self.tags,))
        elif not isinstance(self.tags, tuple):
            object.__setattr__(self, "tags", tuple(self.tags))

    def with_tags(self, *tags: str) -> CacheOptions:
        """Return a copy carrying *tags* in addition to the current ones."""
        merged = tuple(dict.fromkeys((*self.tags, *tags)))
        return replace(self, tags=merged)

    def replace(self, **changes: Any) -> CacheOptions:
        return replace(self, **changes)


@dataclass(frozen=True)
class RevalidationStrategy:
    """Schedule for proactively refreshing one key.

    When ``fetcher`` is omitted the refresh reuses the fetcher last passed to
    ``AdvancedCache.get`` for the key.
    """

    interval: float
    condition: Callable[[], bool] | None = None
    priority: Priority = Priority.MEDIUM
    fetcher: Fetcher | None = field(default=None, compare=False)
    options: CacheOptions | None = None

    def __post_init__(self) -> None:
        if self.interval < 0:
            raise ValueError("RevalidationStrategy 'interval' cannot be negative")
        if not isinstance(self.priority, Priority):
            object.__setattr__(self, "priority", Priority(self.priority))

    def should_run(self) -> bool:
        return self.condition is None or bool(self.condition())
