from __future__ import annotations

import argparse

from bucketarr.cli.common import add_store_arguments, exit_code_for, stamp_env, store_env_values
from bucketarr.errors import BucketMissing, ConfigurationError, StoreUnavailable
from bucketarr.logger import get_logger
from bucketarr.pipeline.run_state import RunStatus


def build_cleanup_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "cleanup",
        help="Delete every object version whose extension is not the one to keep",
    )
    add_store_arguments(p)
    p.add_argument(
        "--keep-extension",
        required=True,
        help="File extension to keep (e.g. mp4, .webm)",
    )
    p.add_argument("--dry-run", action="store_true", help="List without deleting")
    p.add_argument("--verbose", action="store_true")
    p.add_argument("--quiet", action="store_true")


def handle_cleanup(args: argparse.Namespace) -> int:
    stamp_env(store_env_values(args))

    from bucketarr.cleanup import run_cleanup
    from bucketarr.env import get_store_env
    from bucketarr.store.client import build_store

    log = get_logger("bucketarr.cleanup")

    try:
        store = build_store(get_store_env())
        result = run_cleanup(store, args.keep_extension, dry_run=bool(args.dry_run))
    except (ConfigurationError, ValueError) as e:
        log.error(f"Configuration error: {e}")
        log.info(f"RUN_STATUS={RunStatus.CONFIG_ERROR.value}")
        return exit_code_for(RunStatus.CONFIG_ERROR)
    except (StoreUnavailable, BucketMissing) as e:
        log.error(str(e))
        log.info(f"RUN_STATUS={RunStatus.STORE_UNAVAILABLE.value}")
        return exit_code_for(RunStatus.STORE_UNAVAILABLE)

    status = RunStatus.COMPLETED if result.ok else RunStatus.FAILED
    log.info(f"RUN_STATUS={status.value}")
    if result.ok:
        log.info("All done.")
    return exit_code_for(status)
