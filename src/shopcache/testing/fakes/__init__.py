"""Testing fakes – deterministic doubles for kernel ports."""
from shopcache.testing.fakes.clock import FakeClock
from shopcache.kernel.time import FrozenClock
from shopcache.scheduling import InMemoryScheduler

__all__ = ["FakeClock", "FrozenClock", "InMemoryScheduler"]
