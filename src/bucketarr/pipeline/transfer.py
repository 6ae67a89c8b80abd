from __future__ import annotations

import mimetypes
import os
import signal
import subprocess
import threading
from collections import deque
from typing import IO, Optional

from bucketarr.errors import ExtractionFailed, StoreWriteFailed
from bucketarr.extractor.ytdlp import YtDlp
from bucketarr.logger import get_logger
from bucketarr.pipeline.models import WorkItem
from bucketarr.store.client import ObjectStore
from bucketarr.ui.progress import NullProgress, ProgressReporter

log = get_logger(__name__)

READ_CHUNK = 1024 * 1024
STDERR_TAIL = 40

# Not every platform mime table knows the containers yt-dlp produces.
_EXTRA_TYPES = {
    "webm": "video/webm",
    "mkv": "video/x-matroska",
    "m4a": "audio/mp4",
    "opus": "audio/ogg",
    "flv": "video/x-flv",
}


def _kill(proc: subprocess.Popen) -> None:
    # yt-dlp may have spawned ffmpeg; take the whole session down.
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
            return
        except (ProcessLookupError, PermissionError):
            pass
    proc.kill()


def content_type_for(extension: str) -> str:
    ext = extension.lower().lstrip(".")
    if ext in _EXTRA_TYPES:
        return _EXTRA_TYPES[ext]
    guessed, _ = mimetypes.guess_type(f"file.{ext}")
    return guessed or "application/octet-stream"


class _StderrDrain(threading.Thread):
    """Keeps the child's diagnostic pipe empty and remembers its tail."""

    def __init__(self, pipe: IO[bytes]):
        super().__init__(name="ytdlp-stderr", daemon=True)
        self._pipe = pipe
        self.tail: deque[str] = deque(maxlen=STDERR_TAIL)

    def run(self) -> None:
        try:
            for raw in iter(self._pipe.readline, b""):
                line = raw.decode("utf-8", errors="replace").rstrip()
                if line:
                    self.tail.append(line)
                    log.debug(f"yt-dlp: {line}")
        except (OSError, ValueError):
            # pipe closed under us after the child was reaped
            return

    def text(self) -> str:
        return "\n".join(self.tail)


class _ChildBody:
    """
    Upload body backed by the child's stdout.

    End of data is only reported once the child has exited 0. A non-zero
    exit surfaces as ExtractionFailed from read(), which makes the store
    abort the upload instead of committing a truncated object.
    """

    def __init__(self, proc: subprocess.Popen, drain: _StderrDrain, progress: ProgressReporter):
        assert proc.stdout is not None
        self._proc = proc
        self._stdout = proc.stdout
        self._drain = drain
        self._progress = progress
        self.bytes_read = 0
        self.eof = False

    def read(self, size: int = -1) -> bytes:
        if self.eof:
            return b""

        if size == 0:
            return b""

        want = READ_CHUNK if size is None or size < 0 else min(size, READ_CHUNK)
        chunk = self._stdout.read1(want)
        if chunk:
            self.bytes_read += len(chunk)
            self._progress.advance(len(chunk))
            return chunk

        code = self._proc.wait()
        self._drain.join(timeout=5)
        self.eof = True
        if code != 0:
            detail = self._drain.text() or "<no diagnostics>"
            raise ExtractionFailed(f"yt-dlp process exited with code {code}: {detail}")
        return b""


class StreamingTransfer:
    """
    One child process piped into one upload call.

    First failure wins: an extraction failure aborts the upload, an upload
    failure kills the child. Nothing partial is reported as success.
    """

    def __init__(
        self,
        tool: YtDlp,
        store: ObjectStore,
        *,
        part_size: int,
        progress: Optional[ProgressReporter] = None,
    ):
        self.tool = tool
        self.store = store
        self.part_size = part_size
        self.progress = progress or NullProgress()
        self._active: Optional[subprocess.Popen] = None

    def abort(self) -> None:
        """Kill the in-flight child, if any. Safe from a signal handler."""
        proc = self._active
        if proc is not None and proc.poll() is None:
            _kill(proc)

    def run(
        self,
        item: WorkItem,
        object_key: str,
        extension: str,
        expected_size: int,
        format_selector: str,
    ) -> int:
        content_type = content_type_for(extension)

        try:
            proc = self.tool.spawn_stream(item.source_url, format_selector)
        except OSError as e:
            raise ExtractionFailed(f"yt-dlp process error: {e}") from e

        assert proc.stderr is not None
        self._active = proc
        drain = _StderrDrain(proc.stderr)
        drain.start()
        body = _ChildBody(proc, drain, self.progress)

        ok = False
        self.progress.start("Streaming yt-dlp to S3", expected_size)
        try:
            log.info(f"Starting upload to S3 ({content_type})")
            self.store.put_stream(
                object_key,
                body,
                content_type=content_type,
                part_size=self.part_size,
            )
            if not body.eof:
                raise StoreWriteFailed(
                    f"Upload of '{object_key}' returned before the stream ended"
                )
            ok = True
            return body.bytes_read
        finally:
            self.progress.finish(ok)
            self._reap(proc, drain)

    def _reap(self, proc: subprocess.Popen, drain: _StderrDrain) -> None:
        if proc.poll() is None:
            log.warning("Terminating yt-dlp process")
            _kill(proc)
        proc.wait()
        drain.join(timeout=5)
        for pipe in (proc.stdout, proc.stderr):
            if pipe is not None:
                pipe.close()
        self._active = None
