"""
shopcache – in-process storefront cache.

Import path convention::

    from shopcache.cache import AdvancedCache, CacheOptions, CacheConfigs
    from shopcache.config import CacheSettings, EnvSettingsLoader
    from shopcache.scheduling import AsyncioScheduler, InMemoryScheduler
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
