# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real keys. Task lists for schedule mode live in a JSON file,
see configs/tasks.example.json.

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "EIPR_APP_NAME": "App display name (default: eip-rotator).",
    "EIPR_LOG_LEVEL": "Console logging level (default: INFO).",
    "EIPR_DATA_DIR": "Local directory for eip-rotator.log (default: .local/eip-rotator).",
    # Mode
    "EIPR_MODE": "run (rotate once) or schedule (supervise --config) (default: run).",
    "EIPR_CONFIG_PATH": "JSON task list; required in schedule mode.",
    # Single task (run mode without a config file)
    "EIPR_PUBLIC_KEY": "UCloud public key (fallback: UCLOUD_PUBLIC_KEY).",
    "EIPR_PRIVATE_KEY": "UCloud private key (fallback: UCLOUD_PRIVATE_KEY).",
    "EIPR_PROJECT_IDS": "Comma separated project ids (fallback: UCLOUD_PROJECT_IDS).",
    "EIPR_REGION": "Region, e.g. cn-bj2; empty => all accessible regions (fallback: UCLOUD_REGION).",
    "EIPR_INTERVAL_SECONDS": "Rotation interval for the single task (default: 300).",
    # Supervisor tuning
    "EIPR_POLL_INTERVAL_SECONDS": "How often the config file is checked for changes (default: 5).",
    "EIPR_JOB_TIMEOUT_SECONDS": "Per-tick ceiling before a rotation is reported as failed (default: 300).",
    # Cloud API client
    "EIPR_API_TIMEOUT_SECONDS": "HTTP timeout per UCloud API call (default: 30).",
    "EIPR_API_MAX_RETRIES": "SDK-level retries per API call (default: 0).",
}
