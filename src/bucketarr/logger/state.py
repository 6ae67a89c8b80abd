from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class LoggingState:
    """Where the current process is logging to, once init_logging() ran."""

    initialized: bool = False
    run_id: Optional[str] = None
    command: Optional[str] = None
    log_file: Optional[Path] = None

    @property
    def log_dir(self) -> Optional[Path]:
        return self.log_file.parent if self.log_file else None


STATE = LoggingState()


def reset() -> None:
    """Forget the active log target; the next init_logging() starts fresh."""
    STATE.initialized = False
    STATE.run_id = None
    STATE.command = None
    STATE.log_file = None
