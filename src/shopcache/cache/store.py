"""Cache – entry store and tag index.

The two mappings are only ever mutated together, from synchronous code, so no
other task on the loop can observe an entry without its tag buckets or a
bucket pointing at a missing entry.
"""
from __future__ import annotations

from typing import Any, Iterable, Iterator

from shopcache.cache.entry import CacheEntry

__all__ = ["EntryStore", "TagIndex"]


class TagIndex:
    """tag -> {keys}. Empty buckets are dropped."""

    def __init__(self) -> None:
        self._buckets: dict[str, set[str]] = {}

    def add(self, key: str, tags: Iterable[str]) -> None:
        for tag in tags:
            self._buckets.setdefault(tag, set()).add(key)

    def discard(self, key: str, tags: Iterable[str]) -> None:
        for tag in tags:
            bucket = self._buckets.get(tag)
            if bucket is None:
                continue
            bucket.discard(key)
            if not bucket:
                del self._buckets[tag]

    def keys_for(self, tag: str) -> frozenset[str]:
        return frozenset(self._buckets.get(tag, ()))

    def pop(self, tag: str) -> set[str]:
        return self._buckets.pop(tag, set())

    def tags(self) -> list[str]:
        return list(self._buckets)

    def snapshot(self) -> dict[str, frozenset[str]]:
        return {tag: frozenset(keys) for tag, keys in self._buckets.items()}

    def clear(self) -> None:
        self._buckets.clear()

    def __contains__(self, tag: object) -> bool:
        return tag in self._buckets

    def __len__(self) -> int:
        return len(self._buckets)


class EntryStore:
    """key -> :class:`CacheEntry`, kept in lockstep with a :class:`TagIndex`."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry[Any]] = {}
        self.tag_index = TagIndex()

    def get(self, key: str) -> CacheEntry[Any] | None:
        return self._entries.get(key)

    def put(self, entry: CacheEntry[Any]) -> CacheEntry[Any] | None:
        """Store *entry*, moving the key out of its old tag buckets first."""
        previous = self._entries.get(entry.key)
        if previous is not None:
            self.tag_index.discard(entry.key, previous.tags)
        self._entries[entry.key] = entry
        self.tag_index.add(entry.key, entry.tags)
        return previous

    def remove(self, key: str) -> CacheEntry[Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        # tags are read off the live entry, so unindex before deleting it
        self.tag_index.discard(key, entry.tags)
        del self._entries[key]
        return entry

    def clear(self) -> None:
        self._entries.clear()
        self.tag_index.clear()

    def keys(self) -> list[str]:
        return list(self._entries)

    def entries(self) -> list[CacheEntry[Any]]:
        return list(self._entries.values())

    def expired_keys(self, now: float) -> list[str]:
        return [key for key, entry in self._entries.items() if entry.is_expired(now)]

    def oldest(self, count: int, exclude: Iterable[str] = ()) -> list[str]:
        """The *count* least recently written keys not in *exclude*."""
        if count <= 0:
            return []
        skip = set(exclude)
        candidates = sorted(
            (entry for key, entry in self._entries.items() if key not in skip),
            key=lambda e: e.timestamp,
        )
        return [entry.key for entry in candidates[:count]]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
