#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys

from bucketarr.bootstrap import bootstrap_base_env, bootstrap_run_context


def _dispatch_help(parser: argparse.ArgumentParser, argv: list[str]) -> int:
    # Support:
    #   bucketarr help
    #   bucketarr help archive
    if argv and argv[0] == "help":
        argv = argv[1:]

    if not argv:
        parser.print_help()
        return 0

    try:
        build_parser().parse_args(argv + ["--help"])
    except SystemExit:
        pass
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="bucketarr")

    sub = p.add_subparsers(dest="command", required=True)

    help_cmd = sub.add_parser("help", help="Show help")
    help_cmd.add_argument("path", nargs="*", help="Command path to show help for")
    help_cmd.set_defaults(_help=True)

    # Keep imports inside builder to avoid early side effects.
    from bucketarr.cli.cli_archive import build_archive_parser
    from bucketarr.cli.cli_cleanup import build_cleanup_parser
    from bucketarr.cli.cli_env import build_env_parser
    from bucketarr.cli.cli_runs import build_runs_parser

    build_archive_parser(sub)
    build_cleanup_parser(sub)
    build_env_parser(sub)
    build_runs_parser(sub)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    # Load .env and base environment early
    bootstrap_base_env()

    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "_help", False):
        return _dispatch_help(parser, argv)

    # Stamp run context early, before logging picks its file
    bootstrap_run_context(
        command=args.command,
        verbose=bool(getattr(args, "verbose", False)),
        quiet=bool(getattr(args, "quiet", False)),
    )

    # Initialize logging AFTER run-context env stamping
    from bucketarr.logger import get_logger, init_logging

    init_logging()

    log = get_logger(__name__)
    log.debug(f"Command: {args.command}")

    # Dispatch
    if args.command == "archive":
        from bucketarr.cli.cli_archive import handle_archive

        return handle_archive(args)

    if args.command == "cleanup":
        from bucketarr.cli.cli_cleanup import handle_cleanup

        return handle_cleanup(args)

    if args.command == "env":
        from bucketarr.cli.cli_env import handle_env

        return handle_env(args)

    if args.command == "runs":
        from bucketarr.cli.cli_runs import handle_runs

        return handle_runs(args)

    raise RuntimeError(f"Unknown command: {args.command}")


if __name__ == "__main__":
    raise SystemExit(main())
