from __future__ import annotations

import os
import signal
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from bucketarr.logger import get_logger

log = get_logger(__name__)

FORCED_EXIT_CODE = 130


class CancellationToken:
    """
    Single-writer flag: only the signal handler sets it, the driver reads
    it at item boundaries.
    """

    def __init__(self) -> None:
        self._cancel = threading.Event()
        self._force = threading.Event()

    @property
    def cancellation_requested(self) -> bool:
        return self._cancel.is_set()

    @property
    def force_exit_requested(self) -> bool:
        return self._force.is_set()

    def request_cancel(self) -> None:
        self._cancel.set()

    def request_force_exit(self) -> None:
        self._cancel.set()
        self._force.set()


class ShutdownHandler:
    """
    First interrupt: drain after the current item.
    Any interrupt after that: kill in-flight work and exit immediately.
    """

    def __init__(
        self,
        token: CancellationToken,
        *,
        on_force_exit: Optional[Callable[[], None]] = None,
        exit_fn: Callable[[int], None] = os._exit,
    ):
        self.token = token
        self.on_force_exit = on_force_exit
        self.exit_fn = exit_fn

    def __call__(self, signum, frame) -> None:
        if self.token.cancellation_requested:
            self.token.request_force_exit()
            log.error("Second interrupt received. Exiting immediately.")
            if self.on_force_exit is not None:
                self.on_force_exit()
            self.exit_fn(FORCED_EXIT_CODE)
            return

        self.token.request_cancel()
        log.warning(
            "Graceful shutdown initiated. Waiting for the current video to finish..."
        )

    def install(self) -> None:
        signal.signal(signal.SIGINT, self)
        if hasattr(signal, "SIGTERM"):
            signal.signal(signal.SIGTERM, self)


# ------------------------------------------------------------------
# Run state
# ------------------------------------------------------------------


class RunStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    DRAINED = "drained"
    FAILED = "failed"
    CONFIG_ERROR = "config_error"
    STORE_UNAVAILABLE = "store_unavailable"
    ENUMERATION_FAILED = "enumeration_failed"


class RunStage(str, Enum):
    IDLE = "idle"
    ENUMERATING = "enumerating"
    RECONCILING = "reconciling"
    TRANSFERRING = "transferring"
    DRAINING = "draining"
    DONE = "done"
    FATAL_ABORT = "fatal_abort"


@dataclass
class RunProgress:
    current: int = 0
    total: int = 0

    def reset(self, total: int) -> None:
        self.current = 0
        self.total = total

    def advance(self, step: int = 1) -> None:
        self.current += step


@dataclass
class RunState:
    """
    Canonical runtime state for one archive run.

    Mutated by the batch driver only; the CLI and summary read it.
    """

    status: RunStatus = RunStatus.RUNNING
    stage: RunStage = RunStage.IDLE
    progress: RunProgress = field(default_factory=RunProgress)
    stop_reason: Optional[str] = None
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    def set_stage(self, stage: RunStage) -> None:
        self.stage = stage

    def finish(self, status: RunStatus, reason: Optional[str] = None) -> None:
        self.status = status
        self.stop_reason = reason
        self.stage = (
            RunStage.DONE
            if status in (RunStatus.COMPLETED, RunStatus.DRAINED, RunStatus.FAILED)
            else RunStage.FATAL_ABORT
        )
        self.finished_at = time.time()

    @property
    def runtime_seconds(self) -> float:
        end = self.finished_at or time.time()
        return round(end - self.started_at, 2)
