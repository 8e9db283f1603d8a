# src/eip_rotator/tasks/config_watcher.py

from __future__ import annotations

"""
Config watcher.

Loads desired state from a ConfigSource and, on every poll, re-reads it only
when the source's modification marker has advanced.

- Startup load failures raise ConfigError (fatal for the process).
- Reload failures are logged once per marker value; the previous snapshot stays current
  and the source is re-read on every poll until a load succeeds.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ..core.ports import ConfigSource
from .task_models import ConfigError, Snapshot, TaskDescriptor, parse_tasks

logger = logging.getLogger(__name__)


class JsonFileSource:
    """Task list stored as a JSON array in a local file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def modified_marker(self) -> int | None:
        try:
            return self.path.stat().st_mtime_ns
        except OSError:
            return None

    def load(self) -> tuple[TaskDescriptor, ...]:
        try:
            raw = self.path.read_bytes()
        except OSError as e:
            raise ConfigError(f"read config {self.path}: {e}") from e
        try:
            # json.loads decodes bytes itself; bad encodings surface as ValueError.
            payload = json.loads(raw)
        except ValueError as e:
            raise ConfigError(f"parse config {self.path}: {e}") from e
        return parse_tasks(payload)


class PollKind(str, Enum):
    SNAPSHOT = "snapshot"
    UNCHANGED = "unchanged"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class PollResult:
    kind: PollKind
    snapshot: Snapshot | None = None
    error: ConfigError | None = None


_UNCHANGED = PollResult(kind=PollKind.UNCHANGED)


class ConfigWatcher:
    def __init__(self, source: ConfigSource) -> None:
        self._source = source
        self._current: Snapshot | None = None
        # Marker of the last successful load.
        self._last_marker: int | None = None
        # Marker whose load failure was already logged.
        self._failed_marker: int | None = None

    @property
    def current(self) -> Snapshot | None:
        return self._current

    def initial_load(self) -> Snapshot:
        # Marker is read before the payload so a write racing the load is seen on the next poll.
        marker = self._source.modified_marker()
        tasks = self._source.load()
        self._current = Snapshot(tasks=tasks, marker=marker)
        self._last_marker = marker
        logger.info("loaded config tasks=%d", len(tasks))
        return self._current

    def poll(self) -> PollResult:
        if self._current is None:
            raise RuntimeError("initial_load() must succeed before poll()")

        marker = self._source.modified_marker()
        if marker is None:
            return _UNCHANGED
        if self._last_marker is not None and marker <= self._last_marker:
            return _UNCHANGED

        # A write can land within the mtime granularity of a failed one, so a
        # failing marker is re-read every poll but logged only the first time.
        retry = marker == self._failed_marker
        if not retry:
            logger.info("detected config update, reloading")
        try:
            tasks = self._source.load()
        except ConfigError as e:
            if not retry:
                logger.error(
                    "config reload failed, keeping previous %d task(s): %s",
                    len(self._current.tasks),
                    e,
                )
            self._failed_marker = marker
            return PollResult(kind=PollKind.ERROR, error=e)

        self._last_marker = marker
        self._failed_marker = None
        self._current = Snapshot(tasks=tasks, marker=marker)
        logger.info("reloaded config tasks=%d", len(tasks))
        return PollResult(kind=PollKind.SNAPSHOT, snapshot=self._current)
