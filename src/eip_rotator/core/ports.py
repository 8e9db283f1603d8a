# src/eip_rotator/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the supervisor.

The supervisor depends on Protocols instead of concrete implementations.
This keeps the job body, the config source and the cloud API swappable
and makes testing easier.
"""

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import JobOutcome, TaskDescriptor


class JobBody(Protocol):
    """
    The unit of work a task runner invokes on every tick.

    Called from a worker thread; may block on network I/O.
    Must return an outcome; exceptions are treated as failures by the runner.
    """

    def __call__(self, descriptor: TaskDescriptor) -> JobOutcome: ...


class ConfigSource(Protocol):
    """Where desired state comes from (a JSON file in production)."""

    def modified_marker(self) -> int | None:
        """Monotonic change marker, or None when the source cannot be inspected."""
        ...

    def load(self) -> tuple[TaskDescriptor, ...]:
        """Read and validate the full task list. Raises ConfigError."""
        ...


class EipApi(Protocol):
    """
    Cloud calls needed by the EIP rotation sequence, bound to one region.

    Payloads are plain dicts in the vendor's response shape (EIPSet, Resource, ...).
    """

    def describe_eips(self, project_id: str) -> list[dict[str, Any]]: ...

    def allocate_eip(
            self,
            *,
            project_id: str,
            operator_name: str,
            bandwidth: int,
            pay_mode: str,
            charge_type: str,
            quantity: int | None = None,
    ) -> list[dict[str, Any]]: ...

    def unbind_eip(self, *, project_id: str, eip_id: str, resource_id: str) -> None: ...
    def bind_eip(self, *, project_id: str, eip_id: str, resource_id: str) -> None: ...
    def release_eip(self, *, project_id: str, eip_id: str) -> None: ...


class RegionDirectory(Protocol):
    """Account-wide region lookup used when a task has no explicit region."""

    def list_regions(self) -> list[str]: ...
