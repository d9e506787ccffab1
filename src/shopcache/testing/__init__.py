"""Testing – fakes and pytest fixtures for code that uses the cache."""
from shopcache.testing.fakes import FakeClock

__all__ = ["FakeClock"]
