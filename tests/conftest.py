"""Shared fixtures: fake clock, manual scheduler and a cache wired to both."""
from shopcache.testing.fixtures import cache, fake_clock, manual_scheduler  # noqa: F401
