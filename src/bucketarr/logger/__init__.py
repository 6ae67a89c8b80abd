from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

from bucketarr.env import get_logging_env, module_logs_dir
from bucketarr.logger.console import build_console_handler
from bucketarr.logger.file import build_file_handler, retarget_file_handler
from bucketarr.logger.retention import enforce_retention
from bucketarr.logger.state import STATE

# Chatty transport libraries stay at WARNING unless something breaks.
_NOISY = ("urllib3", "minio")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _level_to_int(level: str | int) -> int:
    if isinstance(level, int):
        return level
    lvl = logging.getLevelName(str(level).upper())
    return lvl if isinstance(lvl, int) else logging.INFO


def _ensure_run_id() -> str:
    run_id = os.environ.get("BUCKETARR_RUN_ID")
    if not run_id:
        run_id = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        os.environ["BUCKETARR_RUN_ID"] = run_id
    return run_id


def init_logging() -> None:
    """
    Initialize logging for the entire process.

    - Handlers are attached ONLY to the root logger.
    - Named loggers inherit via propagation.
    - One file per run: logs/<command>/<command>-<run_id>.log
    - Safe to call multiple times; the file handler is retargeted, not stacked.
    """
    env = get_logging_env()
    for name in _NOISY:
        logging.getLogger(name).setLevel(logging.WARNING)

    command = os.environ.get("BUCKETARR_COMMAND") or "bootstrap"
    run_id = _ensure_run_id()
    logfile = module_logs_dir(command) / f"{command}-{run_id}.log"

    # verbose forces DEBUG regardless of LOG_LEVEL
    root_level = logging.DEBUG if env.verbose else _level_to_int(env.log_level)

    root = logging.getLogger()
    if STATE.initialized and STATE.log_file == logfile:
        root.setLevel(root_level)
        return

    enforce_retention(logfile.parent, int(env.log_retention), prefix=f"{command}-")

    existing = next(
        (h for h in root.handlers if isinstance(h, logging.FileHandler)), None
    )

    root.handlers.clear()
    root.setLevel(root_level)

    if existing is not None:
        retarget_file_handler(existing, logfile, run_id)
        root.addHandler(existing)
    else:
        root.addHandler(build_file_handler(logfile, run_id))

    if not env.quiet:
        root.addHandler(build_console_handler(root_level))

    STATE.initialized = True
    STATE.run_id = run_id
    STATE.command = command
    STATE.log_file = logfile


def log_file_path() -> Path | None:
    return STATE.log_file
