"""Cache errors – raised only where a caller has nothing usable to fall back on."""

from __future__ import annotations

from typing import Any

from shopcache.kernel.errors.base import BaseError


class CacheError(BaseError):
    """Root of cache-layer failures."""

    default_code = "cache_error"


class FetchError(CacheError):
    """The fetcher failed on a miss and no entry (not even a stale one) existed."""

    default_code = "cache_fetch_failed"

    def __init__(self, key: str, cause: BaseException, **kwargs: Any) -> None:
        super().__init__(
            f"Fetch for cache key '{key}' failed and no cached value is available",
            detail={"key": key},
            cause=cause,
            **kwargs,
        )
        self.key = key


__all__ = ["CacheError", "FetchError"]
