# src/eip_rotator/tasks/task_scheduler.py

from __future__ import annotations

"""
Task scheduler (supervisor entry point).

A small polling loop that:
- loads the task list once (fatal on failure),
- starts one runner per task,
- every poll_interval_seconds checks the config source for changes,
- reconciles live runners when a new snapshot was loaded,
- stops every runner on shutdown.
"""

import asyncio
import logging

from ..core.ports import ConfigSource, JobBody
from .config_watcher import ConfigWatcher, PollKind
from .reconciler import Reconciler

logger = logging.getLogger(__name__)


async def run_task_scheduler(
        source: ConfigSource,
        job_body: JobBody | None = None,
        *,
        poll_interval_seconds: float = 5.0,
        job_timeout_seconds: float = 300.0,
        stop_event: asyncio.Event | None = None,
        reconciler: Reconciler | None = None,
) -> None:
    """
    Run the supervisor until stop_event is set or the coroutine is cancelled.

    Raises ConfigError if the initial load fails; nothing is started in that case.
    """
    sleep_s = max(0.01, float(poll_interval_seconds))
    stop = stop_event if stop_event is not None else asyncio.Event()

    watcher = ConfigWatcher(source)
    snapshot = watcher.initial_load()

    if reconciler is None:
        reconciler = Reconciler(job_body, job_timeout_seconds=job_timeout_seconds)

    try:
        await reconciler.reconcile(snapshot.tasks)

        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=sleep_s)
                break
            except asyncio.TimeoutError:
                pass

            try:
                result = watcher.poll()
                if result.kind is not PollKind.SNAPSHOT or result.snapshot is None:
                    continue
                report = await reconciler.reconcile(result.snapshot.tasks)
            except Exception:
                logger.exception("config poll/reconcile failed")
                continue

            logger.log(
                logging.INFO if report.changed else logging.DEBUG,
                "reconciled started=%d updated=%d stopped=%d unchanged=%d",
                len(report.started),
                len(report.updated),
                len(report.stopped),
                len(report.unchanged),
            )
    finally:
        await reconciler.stop_all()
        logger.info("scheduler stopped")
