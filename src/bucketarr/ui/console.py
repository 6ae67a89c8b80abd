from __future__ import annotations

import sys

from rich.console import Console

# Shared by RichHandler, spinners and progress bars so live output
# and log lines interleave instead of tearing each other.
UI_CONSOLE = Console(
    file=sys.stdout,
    soft_wrap=True,
)
