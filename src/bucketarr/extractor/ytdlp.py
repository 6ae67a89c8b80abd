from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass, replace
from typing import Sequence

from bucketarr.errors import ConfigurationError
from bucketarr.logger import get_logger

log = get_logger(__name__)

# Output filename without extension; the extension comes from the probe.
FILENAME_TEMPLATE = "%(title)s [%(id)s]"
PROBE_TEMPLATE = "%(ext)s,%(filesize,filesize_approx)s"
# Titles are JSON-encoded so an embedded newline stays on one line.
LISTING_FIELDS = ("%(webpage_url,url)s", "%(title)j", "filename")


class ToolFailed(Exception):
    def __init__(self, argv: Sequence[str], code: int | None, stderr: str):
        self.argv = list(argv)
        self.code = code
        self.stderr = stderr.strip()
        super().__init__(f"Command failed ({code}): {self.stderr or '<no output>'}")


def resolve_tool(path: str) -> str:
    resolved = shutil.which(path)
    if not resolved:
        raise ConfigurationError(f"yt-dlp not found at '{path}' or in PATH")
    return resolved


@dataclass(frozen=True)
class YtDlp:
    """argv builders for the three invocation modes, plus a capture runner."""

    path: str = "yt-dlp"

    def validate(self) -> "YtDlp":
        resolved = resolve_tool(self.path)
        log.info(f"yt-dlp found at: {resolved}")
        return replace(self, path=resolved)

    # ------------------------------------------------------------
    # argv
    # ------------------------------------------------------------

    def listing_argv(self, url: str) -> list[str]:
        argv = [self.path, "--flat-playlist", "--restrict-filenames"]
        for field_ in LISTING_FIELDS:
            argv += ["--print", field_]
        return argv + ["-o", FILENAME_TEMPLATE, url]

    def probe_argv(self, url: str, format_selector: str) -> list[str]:
        return [self.path, "-f", format_selector, "-O", PROBE_TEMPLATE, url]

    def stream_argv(self, url: str, format_selector: str) -> list[str]:
        return [
            self.path,
            "-f",
            format_selector,
            "-o",
            "-",
            "--no-progress",
            "--no-warnings",
            "--quiet",
            url,
        ]

    # ------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------

    def capture(self, argv: Sequence[str]) -> str:
        """
        Run to completion and return stdout; non-zero exit raises ToolFailed.

        Like the stream child, this one runs in its own session so a
        terminal interrupt meant for a graceful drain does not kill it.
        """
        log.debug(f"exec: {' '.join(argv)}")
        try:
            proc = subprocess.run(
                list(argv),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                start_new_session=(os.name == "posix"),
            )
        except OSError as e:
            raise ToolFailed(argv, None, str(e)) from e

        if proc.returncode != 0:
            raise ToolFailed(argv, proc.returncode, proc.stderr)
        return proc.stdout

    def spawn_stream(self, url: str, format_selector: str) -> subprocess.Popen:
        """
        Start a stream-mode child with raw bytes on stdout.

        The child gets its own session on POSIX so a terminal interrupt
        reaches only this process; shutdown is cooperative.
        """
        argv = self.stream_argv(url, format_selector)
        log.debug(f"exec: {' '.join(argv)}")
        return subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=(os.name == "posix"),
        )
