from __future__ import annotations

import logging

from rich.logging import RichHandler

from bucketarr.env import get_logging_env
from bucketarr.ui.console import UI_CONSOLE


class ConsoleGateFilter(logging.Filter):
    """
    Drop console output entirely in quiet mode (file log still receives it).
    """

    def filter(self, record: logging.LogRecord) -> bool:
        return not get_logging_env().quiet


def build_console_handler(level: int) -> logging.Handler:
    handler = RichHandler(
        console=UI_CONSOLE,
        level=level,
        show_level=True,
        show_time=False,
        show_path=False,
        markup=False,
    )

    # RichHandler renders the level column; the formatter must not repeat it.
    handler.setFormatter(logging.Formatter("%(message)s"))

    handler.addFilter(ConsoleGateFilter())
    return handler
