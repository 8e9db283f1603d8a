# src/eip_rotator/tasks/reconciler.py

from __future__ import annotations

"""
Reconciler: keeps the live runner set equal to the desired snapshot.

The live map is owned by one Reconciler instance and written only from
reconcile()/stop_all(), which the scheduler loop calls one at a time.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Protocol

from ..core.ports import JobBody
from .task_identity import short_identity, task_identity
from .task_models import TaskDescriptor
from .task_runner import TaskRunner

logger = logging.getLogger(__name__)


class LiveRunner(Protocol):
    task: TaskDescriptor
    identity: str

    def start(self) -> None: ...
    async def stop(self) -> None: ...


RunnerFactory = Callable[[TaskDescriptor, str], LiveRunner]


@dataclass(slots=True, frozen=True)
class ReconcileReport:
    started: tuple[str, ...] = ()
    updated: tuple[str, ...] = ()
    stopped: tuple[str, ...] = ()
    unchanged: tuple[str, ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.started or self.updated or self.stopped)


class Reconciler:
    def __init__(
            self,
            job_body: JobBody | None = None,
            *,
            runner_factory: RunnerFactory | None = None,
            job_timeout_seconds: float = 300.0,
    ) -> None:
        if runner_factory is None:
            if job_body is None:
                raise ValueError("either job_body or runner_factory is required")

            body = job_body

            def _default_factory(task: TaskDescriptor, identity: str) -> LiveRunner:
                return TaskRunner(
                    task,
                    body,
                    identity=identity,
                    job_timeout_seconds=job_timeout_seconds,
                )

            runner_factory = _default_factory

        self._runner_factory = runner_factory
        self._live: dict[str, LiveRunner] = {}

    @property
    def live(self) -> Mapping[str, LiveRunner]:
        return MappingProxyType(self._live)

    def _start(self, task: TaskDescriptor, identity: str) -> LiveRunner:
        runner = self._runner_factory(task, identity)
        runner.start()
        self._live[identity] = runner
        return runner

    async def reconcile(self, tasks: Iterable[TaskDescriptor]) -> ReconcileReport:
        """
        Diff desired tasks against live runners and apply start/update/stop.

        - new identity            -> start
        - region/interval changed -> stop old (awaited), start replacement under same key
        - identity gone           -> stop and remove
        Same snapshot twice is a no-op.
        """
        desired: dict[str, TaskDescriptor] = {}
        for task in tasks:
            identity = task_identity(task)
            if identity in desired:
                logger.warning(
                    "duplicate task key=%s in config; last entry wins",
                    short_identity(identity),
                )
            desired[identity] = task

        started: list[str] = []
        updated: list[str] = []
        unchanged: list[str] = []

        for identity, task in desired.items():
            key = short_identity(identity)
            current = self._live.get(identity)

            if current is None:
                self._start(task, identity)
                started.append(identity)
                logger.info(
                    "task started key=%s region=%s interval=%gs",
                    key,
                    task.region or "*",
                    task.interval_seconds,
                )
                continue

            if current.task.schedule_params() == task.schedule_params():
                unchanged.append(identity)
                continue

            # Old worker must be fully gone before the replacement ticks.
            await current.stop()
            self._start(task, identity)
            updated.append(identity)
            logger.info(
                "task updated key=%s region=%s->%s interval=%gs->%gs",
                key,
                current.task.region or "*",
                task.region or "*",
                current.task.interval_seconds,
                task.interval_seconds,
            )

        gone = [identity for identity in self._live if identity not in desired]
        if gone:
            runners = [self._live.pop(identity) for identity in gone]
            await asyncio.gather(*(r.stop() for r in runners))
            for identity in gone:
                logger.info("task stopped key=%s", short_identity(identity))

        return ReconcileReport(
            started=tuple(started),
            updated=tuple(updated),
            stopped=tuple(gone),
            unchanged=tuple(unchanged),
        )

    async def stop_all(self) -> None:
        if not self._live:
            return
        runners = list(self._live.items())
        self._live.clear()
        await asyncio.gather(*(r.stop() for _, r in runners))
        for identity, _ in runners:
            logger.info("task stopped key=%s", short_identity(identity))
