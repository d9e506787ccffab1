"""Scheduling – Job dataclass."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable

__all__ = ["Job"]


@dataclass
class Job:
    """Describes a timer-driven unit of work.

    A job with ``interval_seconds`` recurs for as long as its scheduler runs;
    a job without one is a one-shot that fires once after ``delay_seconds``.
    """

    id: str
    name: str
    handler: Callable[[], Awaitable[None]]
    interval_seconds: float | None = None
    delay_seconds: float = 0.0
    enabled: bool = True

    def __post_init__(self) -> None:
        if self.interval_seconds is not None and self.interval_seconds <= 0:
            raise ValueError("Job 'interval_seconds' must be positive")
        if self.delay_seconds < 0:
            raise ValueError("Job 'delay_seconds' cannot be negative")

    @property
    def recurring(self) -> bool:
        return self.interval_seconds is not None
