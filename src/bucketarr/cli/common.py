from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Iterable, Mapping

from bucketarr.env import logs_dir, reset_env_caches
from bucketarr.pipeline.run_state import RunStatus

# ----------------------------
# Exit codes
# ----------------------------

EXIT_CODES: dict[RunStatus, int] = {
    RunStatus.COMPLETED: 0,
    RunStatus.DRAINED: 0,
    RunStatus.CONFIG_ERROR: 10,
    RunStatus.STORE_UNAVAILABLE: 11,
    RunStatus.ENUMERATION_FAILED: 12,
    RunStatus.FAILED: 20,
}


def exit_code_for(status: RunStatus) -> int:
    return EXIT_CODES.get(status, 1)


# ----------------------------
# Flags -> environment
# ----------------------------


def stamp_env(values: Mapping[str, object]) -> None:
    """
    Write explicitly given flags into os.environ. None means "not given",
    so values from the shell or .env survive.
    """
    for name, value in values.items():
        if value is None:
            continue
        if isinstance(value, bool):
            os.environ[name] = "1" if value else "0"
        else:
            os.environ[name] = str(value)
    reset_env_caches()


def add_store_arguments(p: argparse.ArgumentParser) -> None:
    p.add_argument("-b", "--bucket", help="S3 bucket name (S3_BUCKET)")
    p.add_argument("--endpoint", help="S3 endpoint, host[:port] or URL (S3_ENDPOINT)")
    p.add_argument("--access-key", help="S3 access key (S3_ACCESS_KEY)")
    p.add_argument("--secret-key", help="S3 secret key (S3_SECRET_KEY)")
    p.add_argument("--region", help="S3 region (S3_REGION)")
    p.add_argument(
        "--ssl",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Use TLS for the S3 connection (default: on)",
    )


def store_env_values(args: argparse.Namespace) -> dict[str, object]:
    return {
        "S3_BUCKET": args.bucket,
        "S3_ENDPOINT": args.endpoint,
        "S3_ACCESS_KEY": args.access_key,
        "S3_SECRET_KEY": args.secret_key,
        "S3_REGION": args.region,
        "S3_SSL": args.ssl,
    }


# ----------------------------
# Help dispatch (subparser-local)
# ----------------------------


def dispatch_subparser_help(
    parser: argparse.ArgumentParser, path: list[str] | None
) -> int:
    """
    Implements consistent `X help [subcmd ...]` behavior for a subtree parser.
    """
    if not path:
        parser.print_help()
        return 0

    try:
        parser.parse_args(path + ["--help"])
    except SystemExit:
        pass
    return 0


# ----------------------------
# Logs / runs filesystem helpers
# ----------------------------


def resolve_log_dir(*, command: str, explicit: str | None) -> Path:
    if explicit:
        return Path(explicit).expanduser().resolve()
    return (logs_dir() / command).resolve()


def iter_log_files(log_dir: Path) -> Iterable[Path]:
    if not log_dir.exists():
        return []
    return (p for p in log_dir.iterdir() if p.is_file() and p.suffix == ".log")


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


def tail_file(path: Path, lines: int) -> None:
    try:
        data = read_text(path).splitlines()
    except OSError as e:
        print(f"[error reading log] {e}")
        return

    tail = data[-lines:] if lines > 0 else data
    for line in tail:
        print(line)


# ----------------------------
# Run status inference (log-driven)
# ----------------------------


def infer_run_status(path: Path) -> str:
    """
    Primary signal: the last RUN_STATUS=<value> marker in the log.
    """
    try:
        text = read_text(path)
    except OSError:
        return "unknown"

    status = "unknown"
    for line in text.splitlines():
        _, marker, value = line.partition("RUN_STATUS=")
        if marker:
            status = value.strip() or status

    if status == "unknown" and "Graceful shutdown initiated" in text:
        return "interrupted"
    return status


# ----------------------------
# CLI output helpers
# ----------------------------


def print_table(headers: list[str], rows: list[list[str]]) -> None:
    """
    Simple fixed-width table printer for CLI output.
    """
    if not rows:
        print("(no results)")
        return

    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(str(cell)))

    fmt = "  ".join(f"{{:{w}}}" for w in widths)

    print(fmt.format(*headers))
    print(fmt.format(*("-" * w for w in widths)))

    for row in rows:
        print(fmt.format(*(str(c) for c in row)))
