# tests/conftest.py

from __future__ import annotations

import pytest

from eip_rotator.tasks.task_models import TaskDescriptor


def make_task(
    public_key: str = "pub-a",
    private_key: str = "priv-a",
    projects: tuple[str, ...] = ("org-1",),
    *,
    region: str = "cn-bj2",
    interval: float = 300.0,
) -> TaskDescriptor:
    return TaskDescriptor(
        public_key=public_key,
        private_key=private_key,
        project_ids=projects,
        region=region,
        interval_seconds=interval,
    )


@pytest.fixture()
def three_tasks() -> tuple[TaskDescriptor, ...]:
    """Three distinct tasks (different credentials), default schedule."""
    return (
        make_task("pub-a", "priv-a", ("org-1",), region="cn-bj2", interval=60),
        make_task("pub-b", "priv-b", ("org-2",), region="cn-sh2", interval=120),
        make_task("pub-c", "priv-c", ("org-3", "org-4"), region="", interval=300),
    )
