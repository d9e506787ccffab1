"""Cache – CacheKey builder."""
from __future__ import annotations

import hashlib
import json

__all__ = ["CacheKey"]


class CacheKey:
    """Deterministic key strings, e.g. ``product:42`` or ``products:list:<digest>``."""

    @staticmethod
    def for_resource(resource_type: str, resource_id: str | int) -> str:
        return f"{resource_type}:{resource_id}"

    @staticmethod
    def for_collection(resource_type: str, **filters: object) -> str:
        """Key for a list view; unfiltered lists get a stable ``:all`` suffix."""
        if not filters:
            return f"{resource_type}:list:all"
        return f"{resource_type}:list:{CacheKey._digest(filters)}"

    @staticmethod
    def for_query(query_type: str, **kwargs: object) -> str:
        return f"query:{query_type}:{CacheKey._digest(kwargs)}"

    @staticmethod
    def _digest(params: dict[str, object]) -> str:
        # sorted JSON so keyword order never changes the key
        canonical = json.dumps(params, sort_keys=True, default=str)
        return hashlib.sha256(canonical.encode()).hexdigest()[:16]
