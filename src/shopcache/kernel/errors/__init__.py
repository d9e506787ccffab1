"""Kernel error hierarchy – public re-export surface.

Hierarchy::

    BaseError
    ├── CacheError           (cache.py)
    │   └── FetchError
    └── ConfigError          (config.py)
        ├── MissingRequiredSettingError
        └── InvalidSettingValueError
"""

from shopcache.kernel.errors.base import BaseError
from shopcache.kernel.errors.cache import CacheError, FetchError
from shopcache.kernel.errors.config import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

__all__ = [
    "BaseError",
    "CacheError",
    "ConfigError",
    "FetchError",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
]
