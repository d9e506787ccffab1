"""Config settings – CacheSettings.

Every field maps to a ``CACHE_<FIELD>`` environment variable, e.g.
``CACHE_MAX_SIZE=5000`` or ``CACHE_GC_THRESHOLD=0.9``. Durations are seconds.
"""
from __future__ import annotations

import dataclasses
from typing import ClassVar

from shopcache.kernel.errors import InvalidSettingValueError


@dataclasses.dataclass
class CacheSettings:
    """Tuning knobs for :class:`~shopcache.cache.AdvancedCache`.

    Values are checked on construction, so a loader never hands back an
    unusable instance.
    """

    _prefix: ClassVar[str] = "CACHE"

    max_size: int = 1000
    gc_threshold: float = 0.8
    default_ttl: float = 300.0
    stale_ratio: float = 0.2
    revalidation_tick: float = 30.0
    gc_tick: float = 60.0

    def __post_init__(self) -> None:
        if self.max_size < 1:
            raise InvalidSettingValueError("max_size", self.max_size, "must be at least 1")
        if not 0 < self.gc_threshold <= 1:
            raise InvalidSettingValueError("gc_threshold", self.gc_threshold, "must be in (0, 1]")
        if self.default_ttl <= 0:
            raise InvalidSettingValueError("default_ttl", self.default_ttl, "must be positive")
        if not 0 <= self.stale_ratio < 1:
            raise InvalidSettingValueError("stale_ratio", self.stale_ratio, "must be in [0, 1)")
        for name in ("revalidation_tick", "gc_tick"):
            value = getattr(self, name)
            if value <= 0:
                raise InvalidSettingValueError(name, value, "must be positive")

    @property
    def gc_trigger_size(self) -> float:
        """Store size above which ``set`` runs a collection inline."""
        return self.max_size * self.gc_threshold


__all__ = ["CacheSettings"]
