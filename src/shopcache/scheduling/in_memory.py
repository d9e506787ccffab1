"""Scheduling – InMemoryScheduler for unit tests."""
from __future__ import annotations

import itertools
from typing import Awaitable, Callable

from shopcache.scheduling.job import Job
from shopcache.scheduling.scheduler import JobExecutedEvent, JobExecutionContext

__all__ = ["InMemoryScheduler"]


class InMemoryScheduler:
    """Scheduler that never fires on its own.

    ``trigger`` fires a recurring job manually; ``run_pending`` drains the
    deferred calls queued through ``call_later``.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}
        self._pending: list[Job] = []
        self._seq = itertools.count(1)
        self._running: bool = False
        self.execution_log: list[JobExecutedEvent] = []

    def add_job(self, job: Job) -> None:
        self._jobs[job.id] = job

    def remove_job(self, job_id: str) -> None:
        self._jobs.pop(job_id, None)

    def call_later(
        self, delay: float, handler: Callable[[], Awaitable[None]], *, name: str = "deferred"
    ) -> Job:
        job = Job(id=f"{name}#{next(self._seq)}", name=name, handler=handler, delay_seconds=delay)
        self._pending.append(job)
        return job

    async def start(self) -> None:
        self._running = True

    async def stop(self) -> None:
        self._running = False
        self._pending.clear()

    def list_jobs(self) -> list[Job]:
        return list(self._jobs.values())

    @property
    def pending(self) -> list[Job]:
        return list(self._pending)

    async def trigger(self, job_id: str) -> JobExecutedEvent:
        """Manually fire a job's handler and record the result."""
        job = self._jobs[job_id]
        event = await JobExecutionContext(job=job).run()
        self.execution_log.append(event)
        return event

    async def run_pending(self) -> list[JobExecutedEvent]:
        """Fire queued deferred calls, shortest delay first, until none remain."""
        events: list[JobExecutedEvent] = []
        while self._pending:
            self._pending.sort(key=lambda j: j.delay_seconds)
            job = self._pending.pop(0)
            event = await JobExecutionContext(job=job).run()
            self.execution_log.append(event)
            events.append(event)
        return events

    @property
    def is_running(self) -> bool:
        return self._running
