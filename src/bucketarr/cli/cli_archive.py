from __future__ import annotations

import argparse

from bucketarr.branding import BUCKETARR_BANNER, BUCKETARR_HEADER
from bucketarr.cli.common import (
    add_store_arguments,
    exit_code_for,
    stamp_env,
    store_env_values,
)
from bucketarr.env import DEFAULT_FORMAT
from bucketarr.errors import ConfigurationError, StoreUnavailable
from bucketarr.logger import get_logger

# ------------------------------------------------------------
# Parser
# ------------------------------------------------------------


def build_archive_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "archive", help="Stream a video or playlist into an S3 bucket"
    )

    p.add_argument("-u", "--url", help="Video or playlist URL (BUCKETARR_URL)")
    add_store_arguments(p)
    p.add_argument(
        "--create-bucket",
        action="store_true",
        default=None,
        help="Create the bucket if it does not exist",
    )
    p.add_argument("--ytdlp-path", help="Path to the yt-dlp executable")
    p.add_argument(
        "-f", "--format", dest="format_selector", help=f"yt-dlp format (default: {DEFAULT_FORMAT})"
    )
    p.add_argument(
        "--reupload-on-size-diff",
        action="store_true",
        default=None,
        help="Re-upload when the stored size differs from the probed size",
    )
    p.add_argument(
        "--check-full-key",
        action="store_true",
        default=None,
        help="Match '{title} [{id}].{ext}' exactly instead of by prefix",
    )
    p.add_argument(
        "--failure-policy",
        choices=["fail-fast", "keep-going"],
        help="What an item failure does to the batch (default: fail-fast)",
    )
    p.add_argument("--part-size", type=int, help="Multipart part size in bytes")
    p.add_argument("--dry-run", action="store_true", default=None)
    p.add_argument("--verbose", action="store_true")
    p.add_argument("--quiet", action="store_true")


# ------------------------------------------------------------
# Handler
# ------------------------------------------------------------


def handle_archive(args: argparse.Namespace) -> int:
    # Environment is the configuration boundary for the pipeline
    stamp_env(
        {
            "BUCKETARR_URL": args.url,
            **store_env_values(args),
            "BUCKETARR_CREATE_BUCKET": args.create_bucket,
            "BUCKETARR_YTDLP_PATH": args.ytdlp_path,
            "BUCKETARR_FORMAT": args.format_selector,
            "BUCKETARR_REUPLOAD_ON_SIZE_DIFF": args.reupload_on_size_diff,
            "BUCKETARR_CHECK_FULL_KEY": args.check_full_key,
            "BUCKETARR_FAILURE_POLICY": args.failure_policy,
            "BUCKETARR_PART_SIZE": args.part_size,
            "BUCKETARR_DRY_RUN": args.dry_run,
        }
    )

    from bucketarr.env import get_env
    from bucketarr.extractor.ytdlp import YtDlp
    from bucketarr.pipeline.driver import ArchiveOptions, BatchDriver
    from bucketarr.pipeline.policy import get_policy
    from bucketarr.pipeline.reconcile import MatchOptions
    from bucketarr.pipeline.run_state import CancellationToken, RunStatus, ShutdownHandler
    from bucketarr.pipeline.transfer import StreamingTransfer
    from bucketarr.store.client import build_store
    from bucketarr.ui.progress import NullProgress, RichTransferProgress
    from bucketarr.ui.summary import print_summary

    log = get_logger("bucketarr")

    try:
        env = get_env()
        store = build_store(env.store)
    except ConfigurationError as e:
        log.error(f"Configuration error: {e}")
        log.info(f"RUN_STATUS={RunStatus.CONFIG_ERROR.value}")
        return exit_code_for(RunStatus.CONFIG_ERROR)
    except StoreUnavailable as e:
        log.error(str(e))
        log.info(f"RUN_STATUS={RunStatus.STORE_UNAVAILABLE.value}")
        return exit_code_for(RunStatus.STORE_UNAVAILABLE)

    if not env.quiet:
        log.info(BUCKETARR_BANNER)
    log.info(BUCKETARR_HEADER("Archive"))
    log.info(f"Source: {env.source_url}")
    log.info(f"Bucket: {env.store.bucket} @ {env.store.endpoint}")
    log.info(
        "Matching: "
        + ("full key" if env.check_full_key else "prefix")
        + (", re-upload on size difference" if env.reupload_on_size_diff else "")
    )
    if env.dry_run:
        log.info("Dry run: nothing will be uploaded")

    tool = YtDlp(path=env.ytdlp_path)
    token = CancellationToken()
    progress = RichTransferProgress() if env.interactive else NullProgress()
    transfer = StreamingTransfer(tool, store, part_size=env.part_size, progress=progress)

    ShutdownHandler(token, on_force_exit=transfer.abort).install()

    driver = BatchDriver(
        tool=tool,
        store=store,
        transfer=transfer,
        options=ArchiveOptions(
            source_url=env.source_url,
            format_selector=env.format_selector,
            create_bucket=env.create_bucket,
            match=MatchOptions(
                reupload_on_size_diff=env.reupload_on_size_diff,
                check_full_key=env.check_full_key,
            ),
            dry_run=env.dry_run,
        ),
        token=token,
        policy=get_policy(env.failure_policy),
    )

    outcome = driver.run()

    # --------------------------------------------------
    # Run summary (explicit, non-interactive safe)
    # --------------------------------------------------

    if not env.quiet and outcome.results:
        print_summary(outcome, driver.state)

    counts = outcome.counts()
    log.info(
        "Counts: "
        + ", ".join(f"{o.value}={n}" for o, n in counts.items() if n)
        if outcome.results
        else "Counts: no items"
    )
    log.info(f"RUN_STATUS={outcome.status.value}")

    if outcome.status == RunStatus.COMPLETED:
        log.info("All done.")
    elif outcome.status == RunStatus.DRAINED:
        log.warning(f"Stopped after shutdown request ({len(outcome.drained)} skipped)")
    else:
        log.error(f"Done: {outcome.status.value} ({outcome.reason})")

    return exit_code_for(outcome.status)
