# src/eip_rotator/tasks/task_identity.py

from __future__ import annotations

import hashlib

from .task_models import TaskDescriptor


def task_identity(task: TaskDescriptor) -> str:
    """
    Stable identity of a task: sha1 over "<public>|<private>|<p1,p2,...>".

    Only identity-bearing fields participate, so region/interval edits
    map to the same identity. Project order is significant.
    """
    key = "|".join(
        (
            task.public_key.strip(),
            task.private_key.strip(),
            ",".join(task.project_ids),
        )
    )
    return hashlib.sha1(key.encode("utf-8")).hexdigest()


def short_identity(identity: str) -> str:
    return identity[:12]
