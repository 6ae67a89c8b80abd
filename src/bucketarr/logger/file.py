from __future__ import annotations

import logging
from pathlib import Path

FILE_FORMAT = "%(asctime)s | [%(levelname)s] | %(run_id)s | %(name)s | %(message)s"


class RunIdFilter(logging.Filter):
    """Stamps every record with the run id so interleaved logs can be split."""

    def __init__(self, run_id: str):
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.run_id
        return True


def build_file_handler(logfile: Path, run_id: str) -> logging.FileHandler:
    logfile.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(logfile, encoding="utf-8")
    handler.setLevel(logging.NOTSET)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.addFilter(RunIdFilter(run_id))
    return handler


def retarget_file_handler(
    handler: logging.FileHandler, logfile: Path, run_id: str
) -> None:
    """Point an existing handler at a new run's file without re-adding it."""
    logfile.parent.mkdir(parents=True, exist_ok=True)

    handler.acquire()
    try:
        handler.close()
        handler.baseFilename = str(logfile)
        handler.stream = handler._open()
        for f in handler.filters:
            if isinstance(f, RunIdFilter):
                f.run_id = run_id
    finally:
        handler.release()
