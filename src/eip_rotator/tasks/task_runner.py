# src/eip_rotator/tasks/task_runner.py

from __future__ import annotations

"""
Task runner.

One asyncio worker per live task that:
- invokes the job body immediately on start,
- then once per interval until cancelled,
- logs start/end of every tick with duration and outcome.

Cancellation is cooperative: it is observed only between ticks, an in-flight
job body call always runs to completion. The job body runs on a single-thread
executor owned by the runner, so two invocations of one task never overlap.
"""

import asyncio
import functools
import logging
import time
from concurrent.futures import ThreadPoolExecutor

from ..core.ports import JobBody
from .task_identity import short_identity, task_identity
from .task_models import JobOutcome, TaskDescriptor, normalize_interval

logger = logging.getLogger(__name__)


def invoke_job(job_body: JobBody, task: TaskDescriptor, *, key: str = "-") -> JobOutcome:
    """
    Call the job body once, turning exceptions into a failed outcome.

    Blocking; runs on a worker thread under the scheduler, directly in run mode.
    """
    try:
        outcome = job_body(task)
    except Exception as e:
        logger.exception("job body raised key=%s", key)
        return JobOutcome.failure(f"{type(e).__name__}: {e}")

    if not isinstance(outcome, JobOutcome):
        return JobOutcome.failure(f"job body returned {type(outcome).__name__}, expected JobOutcome")
    return outcome


class TaskRunner:
    def __init__(
            self,
            task: TaskDescriptor,
            job_body: JobBody,
            *,
            identity: str | None = None,
            job_timeout_seconds: float = 300.0,
    ) -> None:
        self.task = task
        self.identity = identity or task_identity(task)
        self.key = short_identity(self.identity)
        self.interval_seconds = normalize_interval(task.interval_seconds)

        self._job_body = job_body
        self._job_timeout = max(0.001, float(job_timeout_seconds))
        self._cancel = asyncio.Event()
        self._worker: asyncio.Task[None] | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._inflight: asyncio.Future[JobOutcome] | None = None

        self.ticks = 0
        self.last_outcome: JobOutcome | None = None

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def start(self) -> None:
        if self._worker is not None:
            raise RuntimeError(f"runner key={self.key} already started")
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"task-{self.key}")
        self._worker = asyncio.create_task(self._run(), name=f"task-runner-{self.key}")

    async def stop(self) -> None:
        """Signal cancellation and wait until the worker exits (after any in-flight tick)."""
        self._cancel.set()
        worker = self._worker
        if worker is not None and not worker.done():
            # Shielded: cancelling the caller must not preempt a running tick.
            await asyncio.shield(worker)
        if self._executor is not None:
            self._executor.shutdown(wait=False)

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while not self._cancel.is_set():
            tick_started = loop.time()
            await self._tick(loop)

            remaining = self.interval_seconds - (loop.time() - tick_started)
            if await self._wait_cancel(max(0.0, remaining)):
                break
        logger.debug("task runner exited key=%s ticks=%d", self.key, self.ticks)

    async def _wait_cancel(self, timeout: float) -> bool:
        try:
            await asyncio.wait_for(self._cancel.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def _tick(self, loop: asyncio.AbstractEventLoop) -> None:
        task = self.task

        if self._inflight is not None and not self._inflight.done():
            logger.warning(
                "task run skipped: key=%s previous invocation still running",
                self.key,
            )
            return

        self.ticks += 1
        logger.info(
            "task run start: key=%s region=%s interval=%gs projects=%s",
            self.key,
            task.region or "*",
            self.interval_seconds,
            ",".join(task.project_ids),
        )
        started = time.monotonic()
        outcome = await self._invoke(loop)
        took = time.monotonic() - started
        self.last_outcome = outcome

        if outcome.ok:
            logger.info(
                "task run end: key=%s region=%s took=%.2fs ok",
                self.key,
                task.region or "*",
                took,
            )
        else:
            logger.warning(
                "task run end: key=%s region=%s took=%.2fs error=%s",
                self.key,
                task.region or "*",
                took,
                outcome.reason,
            )

    async def _invoke(self, loop: asyncio.AbstractEventLoop) -> JobOutcome:
        call = functools.partial(invoke_job, self._job_body, self.task, key=self.key)
        fut = loop.run_in_executor(self._executor, call)
        self._inflight = fut
        try:
            return await asyncio.wait_for(asyncio.shield(fut), timeout=self._job_timeout)
        except asyncio.TimeoutError:
            fut.add_done_callback(self._log_late_outcome)
            return JobOutcome.failure(
                f"job exceeded {self._job_timeout:g}s ceiling, still running in background"
            )

    def _log_late_outcome(self, fut: asyncio.Future[JobOutcome]) -> None:
        if fut.cancelled():
            return
        outcome = fut.result()
        logger.info(
            "late job outcome: key=%s ok=%s reason=%s",
            self.key,
            outcome.ok,
            outcome.reason,
        )
