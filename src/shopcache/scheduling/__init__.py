"""Scheduling – recurring and one-shot timers behind a small port."""
from shopcache.scheduling.job import Job
from shopcache.scheduling.scheduler import (
    JobExecutedEvent,
    JobExecutionContext,
    Scheduler,
)
from shopcache.scheduling.asyncio_scheduler import AsyncioScheduler
from shopcache.scheduling.in_memory import InMemoryScheduler

__all__ = [
    "AsyncioScheduler",
    "InMemoryScheduler",
    "Job",
    "JobExecutedEvent",
    "JobExecutionContext",
    "Scheduler",
]
