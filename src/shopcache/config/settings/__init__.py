"""Config settings – 12-factor env-based configuration."""
from shopcache.config.settings.cache import CacheSettings
from shopcache.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = ["CacheSettings", "DotenvSettingsLoader", "EnvSettingsLoader", "SettingsLoader"]
