"""Fire-and-forget queue for async side effects of the synchronous path.

WHY: segment() must never block, yet a cold video should trigger cache
hydration and an AI-refined line should be persisted. Those are async
operations whose results are only observed on a later call. Running
them from synchronous code needs an explicit owner so failures are
logged, nothing is silently dropped, and tests can wait for completion.

HOW: submit() takes a zero-argument callable returning an awaitable.
If an event loop is running in the calling thread, the work becomes an
asyncio task immediately. Otherwise it is parked. Parked jobs run when
the host awaits drain(), or when run_parked() is called from a later
synchronous call: with no running loop they are run to completion on a
private loop, inside a running loop they are turned into tasks. Every
job is wrapped so its exceptions are logged, never raised.

RULES:
- submit() never blocks and never raises
- Jobs are not cancellable; they complete or fail on their own
- A parked job runs on the next run_parked() or drain(), whichever
  comes first
- A warning is logged each time the parked backlog grows by
  PARKED_WARNING_THRESHOLD jobs
- drain() awaits parked jobs (in submission order) and in-flight tasks,
  including jobs submitted while draining
- Job failures are logged at WARNING with the job description
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Deque, List, Set, Tuple

logger = logging.getLogger(__name__)

PARKED_WARNING_THRESHOLD = 1000

JobFactory = Callable[[], Awaitable[object]]


class TaskQueue:
    """Background job queue bridging sync callers and async work."""

    def __init__(self) -> None:
        self._parked: Deque[Tuple[JobFactory, str]] = deque()
        self._inflight: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of parked plus in-flight jobs."""
        return len(self._parked) + len(self._inflight)

    def submit(self, factory: JobFactory, description: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._parked.append((factory, description))
            if len(self._parked) % PARKED_WARNING_THRESHOLD == 0:
                logger.warning(
                    "%d background jobs parked with no event loop; call run_parked() or drain()",
                    len(self._parked),
                )
            return
        self._start(loop, factory, description)

    def run_parked(self) -> int:
        """Run parked jobs from synchronous code; return how many were started.

        RULES:
        - No running loop: jobs run to completion before returning
        - Running loop: jobs become tasks and complete in the background
        """
        if not self._parked:
            return 0
        jobs = list(self._parked)
        self._parked.clear()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is None:
            asyncio.run(self._run_all(jobs))
        else:
            for factory, description in jobs:
                self._start(loop, factory, description)
        return len(jobs)

    def _start(self, loop: asyncio.AbstractEventLoop, factory: JobFactory, description: str) -> None:
        task = loop.create_task(self._run(factory, description))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _run_all(self, jobs: List[Tuple[JobFactory, str]]) -> None:
        # Tasks spawned by these jobs live on this private loop; finish them here
        before = set(self._inflight)
        for factory, description in jobs:
            await self._run(factory, description)
        while True:
            spawned = [t for t in self._inflight if t not in before]
            if not spawned:
                break
            await asyncio.gather(*spawned)

    async def drain(self) -> None:
        while self._parked or self._inflight:
            while self._parked:
                factory, description = self._parked.popleft()
                await self._run(factory, description)
            if self._inflight:
                await asyncio.gather(*list(self._inflight))

    @staticmethod
    async def _run(factory: JobFactory, description: str) -> None:
        try:
            await factory()
        except Exception:
            logger.warning("Background task failed: %s", description, exc_info=True)
