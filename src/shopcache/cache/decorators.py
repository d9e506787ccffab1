"""Cache – @cached read-through decorator."""
from __future__ import annotations

import functools
from typing import Any, Awaitable, Callable

from shopcache.cache.entry import CacheOptions
from shopcache.cache.facade import AdvancedCache

__all__ = ["cached"]


def cached(
    cache: AdvancedCache,
    options: CacheOptions | None = None,
    key_fn: Callable[..., str] | None = None,
):
    """Decorator: read an async function's result through *cache*.

    *key_fn* receives the same args/kwargs as the wrapped function; without
    it the key is built from the function's qualified name and arguments.
    """

    def decorator(fn: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            key = key_fn(*args, **kwargs) if key_fn else f"{fn.__qualname__}:{args}:{sorted(kwargs.items())}"
            return await cache.get(key, lambda: fn(*args, **kwargs), options)

        wrapper._cache = cache  # type: ignore[attr-defined]
        return wrapper

    return decorator
