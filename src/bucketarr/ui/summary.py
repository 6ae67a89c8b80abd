from __future__ import annotations

from datetime import timedelta

from rich.console import Console
from rich.filesize import decimal
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from bucketarr.branding import SYMBOLS
from bucketarr.pipeline.driver import ArchiveOutcome
from bucketarr.pipeline.models import Outcome
from bucketarr.pipeline.run_state import RunState, RunStatus
from bucketarr.ui.console import UI_CONSOLE

_STATUS_STYLE = {
    RunStatus.COMPLETED: ("SUCCESS", "green", SYMBOLS.OK),
    RunStatus.DRAINED: ("STOPPED", "yellow", SYMBOLS.STOP),
}

_OUTCOME_STYLE = {
    Outcome.UPLOADED: (SYMBOLS.UPLOAD, "green"),
    Outcome.REUPLOADED: (SYMBOLS.REUPLOAD, "cyan"),
    Outcome.PLANNED: (SYMBOLS.PLAN, "cyan"),
    Outcome.SKIPPED: (SYMBOLS.SKIPPED, "dim"),
    Outcome.FAILED: (SYMBOLS.FAIL, "red"),
}


def build_summary(outcome: ArchiveOutcome, state: RunState) -> Panel:
    label, color, mark = _STATUS_STYLE.get(outcome.status, ("ERROR", "red", SYMBOLS.FAIL))
    duration = timedelta(seconds=int(state.runtime_seconds))

    header = Text.assemble(
        ("Bucketarr Run Summary\n", "bold"),
        ("Status: ", "dim"),
        (f"{mark} {label}", f"bold {color}"),
        ("\nDuration: ", "dim"),
        (str(duration), "bold"),
    )

    # ── Per-item table ──────────────────
    items = Table(show_header=True, header_style="bold", box=None, expand=True)
    items.add_column("#", justify="right", width=4)
    items.add_column("Key")
    items.add_column("Result", justify="center")
    items.add_column("Bytes", justify="right")

    for i, r in enumerate(outcome.results, start=1):
        icon, style = _OUTCOME_STYLE.get(r.outcome, ("", ""))
        result = f"{icon} {r.outcome.value}"
        if r.reason:
            result += f" ({r.reason})"
        items.add_row(
            str(i),
            Text(r.object_key or r.item.base_key),
            Text(result, style=style),
            decimal(r.bytes_sent) if r.bytes_sent else "-",
        )

    # ── Totals ──────────────────────────
    totals = Table.grid(padding=(0, 1))
    totals.add_column(justify="right", style="dim")
    totals.add_column(justify="left")
    for o, n in outcome.counts().items():
        if n:
            totals.add_row(f"{o.value.capitalize()}:", str(n))
    if outcome.reason:
        totals.add_row("Stop reason:", Text(outcome.reason, style="yellow"))

    layout = Table.grid(expand=True)
    layout.add_row(header)
    layout.add_row("")
    if outcome.results:
        layout.add_row(items)
        layout.add_row("")
    layout.add_row(totals)

    return Panel(layout, title="Run Summary", subtitle=label, border_style=color)


def print_summary(
    outcome: ArchiveOutcome, state: RunState, console: Console = UI_CONSOLE
) -> None:
    console.print(build_summary(outcome, state))
