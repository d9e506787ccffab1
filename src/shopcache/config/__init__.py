"""Config – 12-factor settings and loaders."""

from shopcache.config.settings import (
    CacheSettings,
    DotenvSettingsLoader,
    EnvSettingsLoader,
    SettingsLoader,
)
from shopcache.kernel.errors import (
    ConfigError,
    InvalidSettingValueError,
    MissingRequiredSettingError,
)

__all__ = [
    "CacheSettings",
    "ConfigError",
    "DotenvSettingsLoader",
    "EnvSettingsLoader",
    "InvalidSettingValueError",
    "MissingRequiredSettingError",
    "SettingsLoader",
]
