from __future__ import annotations

from pathlib import Path


def enforce_retention(log_dir: Path, keep: int, prefix: str = "") -> list[Path]:
    """
    Keep the newest `keep` run logs named `{prefix}*.log`, delete the rest.

    Run ids are timestamps, so name order is run order; mtime breaks ties
    for hand-named files. Returns what was removed.
    """
    if keep <= 0 or not log_dir.is_dir():
        return []

    logs = sorted(
        log_dir.glob(f"{prefix}*.log"),
        key=lambda p: (p.name, p.stat().st_mtime),
        reverse=True,
    )

    removed: list[Path] = []
    for old in logs[keep:]:
        try:
            old.unlink()
        except OSError:
            continue
        removed.append(old)
    return removed
