"""Cache – preset options for storefront entity groups and helper wrappers."""
from __future__ import annotations

from typing import Any

from shopcache.cache.entry import CacheOptions, Fetcher
from shopcache.cache.facade import AdvancedCache
from shopcache.cache.stats import CacheStats

__all__ = ["CacheConfigs", "CacheUtils"]

_MINUTE = 60.0


class CacheConfigs:
    """Named :class:`CacheOptions` per entity group (TTL in seconds)."""

    PRODUCTS = CacheOptions(ttl=10 * _MINUTE, tags=("products",), revalidate_on_stale=True)
    CATEGORIES = CacheOptions(ttl=30 * _MINUTE, tags=("categories",), revalidate_on_stale=True)
    MENU_ITEMS = CacheOptions(ttl=60 * _MINUTE, tags=("menu", "navigation"), revalidate_on_stale=True)
    # settings only change through the back office, which invalidates explicitly
    SETTINGS = CacheOptions(ttl=60 * _MINUTE, tags=("settings",), revalidate_on_stale=False)
    USER_DATA = CacheOptions(ttl=5 * _MINUTE, tags=("user",), revalidate_on_stale=True)
    ORDERS = CacheOptions(ttl=2 * _MINUTE, tags=("orders",), revalidate_on_stale=True)

    @classmethod
    def all(cls) -> dict[str, CacheOptions]:
        return {
            name: value
            for name, value in vars(cls).items()
            if isinstance(value, CacheOptions)
        }


class CacheUtils:
    """Read-through and invalidation shortcuts bound to one cache."""

    def __init__(self, cache: AdvancedCache) -> None:
        self._cache = cache

    async def cache_products(self, key: str, fetcher: Fetcher) -> Any:
        return await self._cache.get(key, fetcher, CacheConfigs.PRODUCTS)

    async def cache_categories(self, key: str, fetcher: Fetcher) -> Any:
        return await self._cache.get(key, fetcher, CacheConfigs.CATEGORIES)

    async def cache_menu_items(self, key: str, fetcher: Fetcher) -> Any:
        return await self._cache.get(key, fetcher, CacheConfigs.MENU_ITEMS)

    async def cache_settings(self, key: str, fetcher: Fetcher) -> Any:
        return await self._cache.get(key, fetcher, CacheConfigs.SETTINGS)

    async def cache_user_data(self, key: str, fetcher: Fetcher) -> Any:
        return await self._cache.get(key, fetcher, CacheConfigs.USER_DATA)

    async def cache_orders(self, key: str, fetcher: Fetcher) -> Any:
        return await self._cache.get(key, fetcher, CacheConfigs.ORDERS)

    def invalidate_products(self) -> int:
        return self._cache.invalidate_by_tags(["products"])

    def invalidate_categories(self) -> int:
        return self._cache.invalidate_by_tags(["categories"])

    def invalidate_navigation(self) -> int:
        return self._cache.invalidate_by_tags(["menu", "navigation"])

    def invalidate_orders(self) -> int:
        return self._cache.invalidate_by_tags(["orders"])

    def invalidate_all(self) -> None:
        self._cache.clear()

    def get_stats(self) -> CacheStats:
        return self._cache.get_stats()
