from __future__ import annotations

import os
from pathlib import Path

# ---------------------------------------------------------------------
# Project root
# ---------------------------------------------------------------------

# This file lives in src/bucketarr/env/, so the project root is three directories above env/
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"


# ---------------------------------------------------------------------
# Base directories (override-friendly)
# ---------------------------------------------------------------------


def _resolve_dir(env_var: str, default: Path) -> Path:
    """
    Resolve a directory path from an environment variable or default.
    Ensures the directory exists.
    """
    raw = os.environ.get(env_var)
    path = Path(raw).expanduser().resolve() if raw else default
    path.mkdir(parents=True, exist_ok=True)
    return path


def logs_dir() -> Path:
    return _resolve_dir("BUCKETARR_LOGS_DIR", PROJECT_ROOT / "logs")


def env_file() -> Path:
    raw = os.environ.get("BUCKETARR_ENV_FILE")
    return Path(raw).expanduser().resolve() if raw else CONFIG_DIR / ".env"


# ---------------------------------------------------------------------
# Log layout helpers
# ---------------------------------------------------------------------


def module_logs_dir(module: str) -> Path:
    """
    Base log directory for a CLI command (e.g. archive, cleanup).
    """
    path = logs_dir() / module
    path.mkdir(parents=True, exist_ok=True)
    return path
