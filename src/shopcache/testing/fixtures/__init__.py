"""Testing fixtures – import into a conftest to make them available."""
from shopcache.testing.fixtures.cache import cache, fake_clock, manual_scheduler

__all__ = ["cache", "fake_clock", "manual_scheduler"]
