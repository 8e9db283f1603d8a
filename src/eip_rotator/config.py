# src/eip_rotator/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- UCLOUD_* variables are accepted as fallbacks for the credential fields.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "EIPR"

DEFAULT_INTERVAL_SECONDS = 300


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(*names: str) -> List[str]:
    raw = _first_env(*names)
    if raw is None:
        return []
    return [p.strip() for p in raw.split(",") if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Mode ----
    mode: str
    config_path: Optional[Path]

    # ---- Single-task credentials (run mode without a config file) ----
    public_key: str
    private_key: str
    project_ids: List[str]
    region: str
    interval_seconds: int

    # ---- Supervisor tuning ----
    poll_interval_seconds: float
    job_timeout_seconds: float

    # ---- Cloud API client ----
    api_timeout_seconds: float
    api_max_retries: int

    def __repr__(self) -> str:
        # Never leak the private key through logs or tracebacks.
        return (
            f"Settings(app_name={self.app_name!r}, mode={self.mode!r}, "
            f"config_path={self.config_path!r}, region={self.region!r}, "
            f"project_ids={self.project_ids!r})"
        )

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "eip-rotator")
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/eip-rotator"))

        mode = _env(_k("MODE"), "run").strip().lower() or "run"
        raw_config = (_first_env(_k("CONFIG_PATH"), "CONFIG_PATH", default="") or "").strip()
        config_path = Path(raw_config).expanduser() if raw_config else None

        public_key = (_first_env(_k("PUBLIC_KEY"), "UCLOUD_PUBLIC_KEY", default="") or "").strip()
        private_key = (_first_env(_k("PRIVATE_KEY"), "UCLOUD_PRIVATE_KEY", default="") or "").strip()
        project_ids = _env_list(_k("PROJECT_IDS"), "UCLOUD_PROJECT_IDS")
        region = (_first_env(_k("REGION"), "UCLOUD_REGION", default="") or "").strip()
        interval_seconds = _env_int(_k("INTERVAL_SECONDS"), DEFAULT_INTERVAL_SECONDS)

        poll_interval_seconds = _env_float(_k("POLL_INTERVAL_SECONDS"), 5.0)
        job_timeout_seconds = _env_float(_k("JOB_TIMEOUT_SECONDS"), 300.0)

        api_timeout_seconds = _env_float(_k("API_TIMEOUT_SECONDS"), 30.0)
        api_max_retries = _env_int(_k("API_MAX_RETRIES"), 0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            mode=mode,
            config_path=config_path,
            public_key=public_key,
            private_key=private_key,
            project_ids=project_ids,
            region=region,
            interval_seconds=interval_seconds,
            poll_interval_seconds=max(0.1, poll_interval_seconds),
            job_timeout_seconds=max(1.0, job_timeout_seconds),
            api_timeout_seconds=max(1.0, api_timeout_seconds),
            api_max_retries=max(0, api_max_retries),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Load .env locally without overriding the real environment.
    load_dotenv(override=False)
    return Settings.from_env()
