"""Scheduling – AsyncioScheduler backed by event-loop tasks."""
from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Awaitable, Callable

from shopcache.scheduling.job import Job
from shopcache.scheduling.scheduler import JobExecutionContext

__all__ = ["AsyncioScheduler"]

logger = logging.getLogger(__name__)


class AsyncioScheduler:
    """Scheduler that runs jobs as tasks on the running event loop.

    Recurring jobs only tick between ``start`` and ``stop``. Deferred calls
    are accepted whenever a loop is running; ``stop`` cancels any that have
    not fired yet.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, Job] = {}
        self._job_tasks: dict[str, asyncio.Task[None]] = {}
        self._deferred: set[asyncio.Task[None]] = set()
        self._seq = itertools.count(1)
        self._running = False

    def add_job(self, job: Job) -> None:
        self.remove_job(job.id)
        self._jobs[job.id] = job
        if self._running:
            self._spawn(job)

    def remove_job(self, job_id: str) -> None:
        self._jobs.pop(job_id, None)
        task = self._job_tasks.pop(job_id, None)
        if task is not None:
            task.cancel()

    def call_later(
        self, delay: float, handler: Callable[[], Awaitable[None]], *, name: str = "deferred"
    ) -> Job:
        job = Job(id=f"{name}#{next(self._seq)}", name=name, handler=handler, delay_seconds=delay)
        task = asyncio.get_running_loop().create_task(self._run_once(job), name=job.id)
        self._deferred.add(task)
        task.add_done_callback(self._deferred.discard)
        return job

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        for job in self._jobs.values():
            self._spawn(job)
        logger.debug("scheduler.started jobs=%d", len(self._jobs))

    async def stop(self) -> None:
        self._running = False
        tasks = [*self._job_tasks.values(), *self._deferred]
        self._job_tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.debug("scheduler.stopped cancelled=%d", len(tasks))

    def list_jobs(self) -> list[Job]:
        return list(self._jobs.values())

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def pending_calls(self) -> int:
        return len(self._deferred)

    def _spawn(self, job: Job) -> None:
        if job.interval_seconds is not None:
            runner = self._run_recurring(job, job.interval_seconds)
        else:
            runner = self._run_once(job)
        self._job_tasks[job.id] = asyncio.get_running_loop().create_task(runner, name=job.id)

    async def _run_once(self, job: Job) -> None:
        if job.delay_seconds:
            await asyncio.sleep(job.delay_seconds)
        if job.enabled:
            await JobExecutionContext(job=job).run()

    async def _run_recurring(self, job: Job, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            if job.enabled:
                await JobExecutionContext(job=job).run()
