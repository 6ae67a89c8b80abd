"""bootstrap.py

Process bootstrap for Bucketarr.

Rules:
1) Only bootstrap (and the CLI handlers stamping their flags) mutate
   os.environ for shared run context.
2) Call bootstrap_base_env() once at the true entrypoint.
3) Call bootstrap_run_context() after argparse parsing, before init_logging().

Everything else treats environment variables as the source of truth.
"""
from __future__ import annotations

import os
from datetime import datetime

from bucketarr.env import _load_dotenv, env_file, reset_env_caches

_BOOTSTRAPPED = False


def bootstrap_base_env() -> None:
    global _BOOTSTRAPPED
    if _BOOTSTRAPPED:
        return

    # Optional: shell / CI variables are enough on their own.
    _load_dotenv(env_file())

    os.environ.setdefault(
        "BUCKETARR_RUN_ID",
        datetime.now().strftime("%Y-%m-%d_%H-%M-%S"),
    )

    reset_env_caches()
    _BOOTSTRAPPED = True


def bootstrap_run_context(
    *,
    command: str,
    verbose: bool | None = None,
    quiet: bool | None = None,
) -> None:
    """Establish run-scoped context used by logging + the pipeline."""

    os.environ["BUCKETARR_COMMAND"] = command

    if verbose:
        os.environ["BUCKETARR_VERBOSE"] = "1"
    if quiet:
        os.environ["BUCKETARR_QUIET"] = "1"

    # Context changes must invalidate cached env views.
    reset_env_caches()
