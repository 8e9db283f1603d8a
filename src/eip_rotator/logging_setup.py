# src/eip_rotator/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILE_NAME = "eip-rotator.log"

# The SDK logs every request and response at DEBUG.
_LIBRARY_LEVELS = {
    "ucloud": logging.INFO,
    "urllib3": logging.WARNING,
}


def _is_app_logger(name: str) -> bool:
    return name == "eip_rotator" or name.startswith("eip_rotator.")


class _ConsoleNoiseFilter(logging.Filter):
    """Console shows every eip_rotator record; warnings and libraries only at ERROR+."""

    def filter(self, record: logging.LogRecord) -> bool:
        if _is_app_logger(record.name):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/eip-rotator",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> Path:
    """
    Route all records to stdout (filtered) and to a size-rotated file under log_dir.

    Replaces handlers already on the root logger. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    # Unattended process: cap the file so it cannot fill the disk.
    file_handler = RotatingFileHandler(
        str(log_file),
        maxBytes=max(0, int(max_bytes)),
        backupCount=max(0, int(backup_count)),
        encoding="utf-8",
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)

    for name, level in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(level)

    return log_file
