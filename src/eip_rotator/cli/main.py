# src/eip_rotator/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the job body, then either:
- run:      rotates once (single task from flags/env, or every task of --config),
- schedule: supervises the tasks of --config with hot reload until SIGINT/SIGTERM.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import signal
from pathlib import Path
from typing import Sequence

from ..config import Settings, get_settings
from ..core.ports import JobBody
from ..logging_setup import setup_logging
from ..tasks.config_watcher import JsonFileSource
from ..tasks.task_identity import short_identity, task_identity
from ..tasks.task_models import ConfigError
from ..tasks.task_runner import invoke_job
from ..tasks.task_scheduler import run_task_scheduler
from .bootstrap import create_job_body, task_from_settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="eip-rotator", description="Rotate UCloud EIPs bound to uhosts.")
    p.add_argument("--mode", choices=("run", "schedule"), help="run once or schedule tasks from --config")
    p.add_argument("--config", help="JSON config file with the task list")
    p.add_argument("--public-key", help="UCloud public key")
    p.add_argument("--private-key", help="UCloud private key")
    p.add_argument("--project-ids", help="comma-separated project ids")
    p.add_argument("--region", help="region, e.g. cn-bj2 (empty: all accessible regions)")
    p.add_argument("--interval", type=int, help="interval seconds between rotations")
    return p.parse_args(argv)


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Flags win over environment."""
    changes: dict[str, object] = {}
    if args.mode:
        changes["mode"] = args.mode
    if args.config:
        changes["config_path"] = Path(args.config).expanduser()
    if args.public_key:
        changes["public_key"] = args.public_key.strip()
    if args.private_key:
        changes["private_key"] = args.private_key.strip()
    if args.project_ids:
        changes["project_ids"] = [p.strip() for p in args.project_ids.split(",") if p.strip()]
    if args.region is not None:
        changes["region"] = args.region.strip()
    if args.interval is not None:
        changes["interval_seconds"] = args.interval
    return dataclasses.replace(settings, **changes) if changes else settings


def run_once(settings: Settings, job_body: JobBody) -> int:
    if settings.config_path is not None:
        tasks = JsonFileSource(settings.config_path).load()
        for task in tasks:
            key = short_identity(task_identity(task))
            outcome = invoke_job(job_body, task, key=key)
            if not outcome.ok:
                logger.error(
                    "task failed (key=%s region=%s projects=%s): %s",
                    key,
                    task.region or "*",
                    ",".join(task.project_ids),
                    outcome.reason,
                )
        return EXIT_OK

    task = task_from_settings(settings)
    outcome = invoke_job(job_body, task, key=short_identity(task_identity(task)))
    if not outcome.ok:
        logger.error("rotate failed: %s", outcome.reason)
        return EXIT_FAILED
    return EXIT_OK


async def _serve(config_path: Path, settings: Settings, job_body: JobBody) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    def _handle_signal(signum: int) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _handle_signal, sig)
        except (NotImplementedError, RuntimeError):
            # Some platforms (Windows) have no loop signal handlers; Ctrl+C still cancels asyncio.run.
            pass

    await run_task_scheduler(
        JsonFileSource(config_path),
        job_body,
        poll_interval_seconds=settings.poll_interval_seconds,
        job_timeout_seconds=settings.job_timeout_seconds,
        stop_event=stop,
    )


def run_schedule(settings: Settings, job_body: JobBody) -> int:
    config_path = settings.config_path
    if config_path is None:
        raise ConfigError("--config is required in schedule mode (supports multi-task)")
    asyncio.run(_serve(config_path, settings, job_body))
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = apply_overrides(get_settings(), args)

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s mode=%s...", settings.app_name, settings.mode)

    job_body = create_job_body(settings)

    try:
        if settings.mode == "schedule":
            return run_schedule(settings, job_body)
        if settings.mode == "run":
            return run_once(settings, job_body)
        logger.error("unknown mode: %s", settings.mode)
        return EXIT_CONFIG
    except ConfigError as e:
        logger.error("fatal config error: %s", e)
        return EXIT_CONFIG
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        return EXIT_OK
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    raise SystemExit(main())
