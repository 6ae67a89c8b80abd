from __future__ import annotations

import argparse
from datetime import datetime
from pathlib import Path
from typing import Optional

from bucketarr.cli.common import (
    infer_run_status,
    iter_log_files,
    print_table,
    resolve_log_dir,
    tail_file,
)


def _fmt_mtime(p: Path) -> str:
    return datetime.fromtimestamp(p.stat().st_mtime).strftime("%Y-%m-%d %H:%M:%S")


# ============================================================================
# CLI wiring
# ============================================================================


def build_runs_parser(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("runs", help="Inspect past runs (log-driven)")
    sp = p.add_subparsers(dest="runs_cmd", required=True)

    sp.add_parser("help", help="Show help for runs")

    for name, help_text in (("list", "List runs"), ("latest", "Show latest run")):
        q = sp.add_parser(name, help=help_text)
        q.add_argument(
            "--of", dest="log_command", default="archive", help="archive or cleanup"
        )
        q.add_argument("--dir", help="Explicit log directory")

    show_p = sp.add_parser("show", help="Show a specific run")
    show_p.add_argument("run_id", help="Run id (timestamp) or filename stem")
    show_p.add_argument(
        "--of", dest="log_command", default="archive", help="archive or cleanup"
    )
    show_p.add_argument("--dir", help="Explicit log directory")
    show_p.add_argument("--tail", type=int, default=40, help="Lines to show from end")


def handle_runs(args: argparse.Namespace) -> int:
    if args.runs_cmd == "help":
        print("Use: bucketarr runs [list|latest|show]")
        return 0

    log_dir = resolve_log_dir(command=args.log_command, explicit=args.dir)
    logs = sorted(iter_log_files(log_dir), reverse=True)

    if args.runs_cmd == "list":
        rows = [
            [p.stem, infer_run_status(p), _fmt_mtime(p), f"{p.stat().st_size} bytes"]
            for p in logs
        ]
        print_table(["run_id", "state", "time", "size"], rows)
        return 0

    if args.runs_cmd == "latest":
        if not logs:
            print("No runs found")
            return 1

        p = logs[0]
        print(f"{p.stem}  {infer_run_status(p)}  {_fmt_mtime(p)}  {p}")
        return 0

    if args.runs_cmd == "show":
        name = args.run_id
        match: Optional[Path] = None

        for p in logs:
            if p.stem == name or p.name == name or p.stem.endswith(f"-{name}"):
                match = p
                break

        if not match:
            print(f"Run not found: {name}")
            return 1

        print(f"Run:   {match.stem}")
        print(f"Path:  {match}")
        print(f"Time:  {_fmt_mtime(match)}")
        print(f"Size:  {match.stat().st_size} bytes")
        print(f"State: {infer_run_status(match)}")
        print()

        tail_file(match, args.tail)
        return 0

    return 1
