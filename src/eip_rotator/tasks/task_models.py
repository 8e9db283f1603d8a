# src/eip_rotator/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..config import DEFAULT_INTERVAL_SECONDS


class ConfigError(ValueError):
    """Configuration could not be read, parsed or validated."""


def normalize_interval(raw: Any) -> float:
    """Non-positive, missing or garbage intervals fall back to the default."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return float(DEFAULT_INTERVAL_SECONDS)
    if value != value or value <= 0:  # NaN or non-positive
        return float(DEFAULT_INTERVAL_SECONDS)
    return value


@dataclass(slots=True, frozen=True)
class TaskDescriptor:
    """
    Desired state of one rotation job.

    Identity-bearing: public_key, private_key, project_ids (ordered).
    Mutable scheduling parameters: region ("" means every accessible region)
    and interval_seconds.
    """

    public_key: str
    private_key: str = field(repr=False)
    project_ids: tuple[str, ...]
    region: str = ""
    interval_seconds: float = float(DEFAULT_INTERVAL_SECONDS)

    def schedule_params(self) -> tuple[str, float]:
        return (self.region, self.interval_seconds)

    def validate(self) -> None:
        missing = []
        if not self.public_key:
            missing.append("public_key")
        if not self.private_key:
            missing.append("private_key")
        if not self.project_ids:
            missing.append("project_ids")
        if missing:
            raise ConfigError(f"invalid task (missing {', '.join(missing)}): {self!r}")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> TaskDescriptor:
        """
        Build a descriptor from one JSON task object.

        Keys: public_key, private_key, project_ids (list or comma string),
        region, interval_sec.
        """
        if not isinstance(raw, Mapping):
            raise ConfigError(f"task entry must be an object, got {type(raw).__name__}")

        projects_any = raw.get("project_ids") or []
        if isinstance(projects_any, str):
            projects_any = projects_any.split(",")
        if not isinstance(projects_any, (list, tuple)):
            raise ConfigError("project_ids must be a list of strings")
        projects = tuple(str(p).strip() for p in projects_any if str(p).strip())

        return cls(
            public_key=str(raw.get("public_key") or "").strip(),
            private_key=str(raw.get("private_key") or "").strip(),
            project_ids=projects,
            region=str(raw.get("region") or "").strip(),
            interval_seconds=normalize_interval(raw.get("interval_sec")),
        )


@dataclass(slots=True, frozen=True)
class JobOutcome:
    ok: bool
    reason: str | None = None

    @classmethod
    def success(cls) -> JobOutcome:
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> JobOutcome:
        return cls(ok=False, reason=reason or "unknown error")


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Desired state as read from the source at one point in time."""

    tasks: tuple[TaskDescriptor, ...]
    marker: int | None = None


def parse_tasks(payload: Any) -> tuple[TaskDescriptor, ...]:
    """
    Validate a decoded JSON payload into descriptors.

    Raises ConfigError if the payload is not a non-empty list or any entry is invalid.
    """
    if not isinstance(payload, list):
        raise ConfigError("config must be a JSON array of task objects")
    if not payload:
        raise ConfigError("empty tasks in config")

    tasks = []
    for i, entry in enumerate(payload):
        try:
            task = TaskDescriptor.from_mapping(entry)
            task.validate()
        except ConfigError as e:
            raise ConfigError(f"task #{i}: {e}") from e
        tasks.append(task)
    return tuple(tasks)
