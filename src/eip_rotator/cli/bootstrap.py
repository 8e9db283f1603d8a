# src/eip_rotator/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- builds the job body from settings (UCloud-backed EIP rotator),
- builds the single task described by flags/env for one-shot runs.
"""

from __future__ import annotations

import logging

from ..config import Settings
from ..rotation.rotator import EipRotator
from ..rotation.ucloud_api import UCloudEipApi, UCloudRegionDirectory
from ..tasks.task_models import TaskDescriptor, normalize_interval

logger = logging.getLogger(__name__)


def create_job_body(settings: Settings) -> EipRotator:
    """Wire the rotator to the real cloud API using the client tuning from settings."""
    timeout = settings.api_timeout_seconds
    retries = settings.api_max_retries

    def api_factory(task: TaskDescriptor, region: str) -> UCloudEipApi:
        return UCloudEipApi(task, region, timeout=timeout, max_retries=retries)

    def directory_factory(task: TaskDescriptor) -> UCloudRegionDirectory:
        return UCloudRegionDirectory(task, timeout=timeout, max_retries=retries)

    return EipRotator(api_factory, directory_factory)


def task_from_settings(settings: Settings) -> TaskDescriptor:
    """
    Single task from flags/env (run mode without a config file).

    Raises ConfigError when keys or project ids are missing.
    """
    task = TaskDescriptor(
        public_key=settings.public_key.strip(),
        private_key=settings.private_key.strip(),
        project_ids=tuple(p.strip() for p in settings.project_ids if p.strip()),
        region=settings.region.strip(),
        interval_seconds=normalize_interval(settings.interval_seconds),
    )
    task.validate()
    return task
