from __future__ import annotations

from typing import Optional, Protocol

from rich.filesize import decimal
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TransferSpeedColumn,
)

from bucketarr.ui.console import UI_CONSOLE


def format_progress(downloaded: int, expected: int) -> str:
    """
    `42% (1.2 MB / 3.0 MB)` when the size is known, `1.2 MB` when it is not.

    The percentage is clamped to 100 because probed sizes are often
    approximate.
    """
    if expected <= 0:
        return decimal(downloaded)

    pct = min(100, round(downloaded * 100 / expected))
    return f"{pct}% ({decimal(downloaded)} / {decimal(expected)})"


class ProgressReporter(Protocol):
    def start(self, label: str, expected: int) -> None: ...

    def advance(self, nbytes: int) -> None: ...

    def finish(self, ok: bool) -> None: ...


class NullProgress:
    """Counts bytes without rendering anything."""

    def __init__(self) -> None:
        self.label = ""
        self.expected = 0
        self.downloaded = 0
        self.finished: Optional[bool] = None

    def start(self, label: str, expected: int) -> None:
        self.label = label
        self.expected = expected
        self.downloaded = 0
        self.finished = None

    def advance(self, nbytes: int) -> None:
        self.downloaded += nbytes

    def finish(self, ok: bool) -> None:
        self.finished = ok

    @property
    def text(self) -> str:
        return format_progress(self.downloaded, self.expected)


class RichTransferProgress:
    """
    Live progress bar for one transfer at a time.

    The bar is indeterminate when the expected size is unknown and the
    completed figure never exceeds a known total.
    """

    def __init__(self) -> None:
        self._progress: Optional[Progress] = None
        self._task: Optional[TaskID] = None
        self._expected = 0
        self._downloaded = 0

    def _build(self) -> Progress:
        return Progress(
            SpinnerColumn(),
            TextColumn("[bold cyan]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            TransferSpeedColumn(),
            console=UI_CONSOLE,
            transient=False,
        )

    def start(self, label: str, expected: int) -> None:
        self._expected = expected
        self._downloaded = 0
        self._progress = self._build()
        self._task = self._progress.add_task(label, total=expected or None)
        self._progress.start()

    def advance(self, nbytes: int) -> None:
        if self._progress is None or self._task is None:
            return
        self._downloaded += nbytes
        completed = self._downloaded
        if self._expected:
            completed = min(completed, self._expected)
        self._progress.update(self._task, completed=completed)

    def finish(self, ok: bool) -> None:
        if self._progress is None or self._task is None:
            return
        if ok:
            total = self._expected or self._downloaded
            self._progress.update(self._task, total=total, completed=total)
        self._progress.stop()
        self._progress = None
        self._task = None
