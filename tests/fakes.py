"""In-memory collaborators shared by the pipeline tests."""
from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass, field
from typing import Iterable, Optional

from bucketarr.errors import BucketMissing, ExtractionFailed, StoreWriteFailed
from bucketarr.extractor.ytdlp import YtDlp
from bucketarr.pipeline.models import ItemMetadata, WorkItem
from bucketarr.store.client import StoredObject


def make_item(n: int) -> WorkItem:
    return WorkItem(
        source_url=f"https://www.youtube.com/watch?v=vid{n}",
        title=f"Video {n}",
        base_key=f"Video_{n}_[vid{n}]",
    )


class FakeStore:
    """
    Behaves like the real client for streamed bodies: reads until EOF,
    commits only then, and drops everything if reading raises.
    """

    def __init__(
        self,
        objects: Optional[dict[str, int]] = None,
        *,
        exists: bool = True,
        fail_after_bytes: Optional[int] = None,
        versions: Iterable[StoredObject] = (),
    ):
        self.bucket = "videos"
        self.exists = exists
        self.fail_after_bytes = fail_after_bytes
        self.sizes: dict[str, int] = dict(objects or {})
        self.versions = list(versions)
        self.bodies: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.aborted: list[str] = []
        self.calls: list[str] = []
        self.removed: list[StoredObject] = []
        self.remove_errors: list[str] = []

    def ensure_bucket(self, *, create: bool = False) -> None:
        self.calls.append("ensure_bucket")
        if self.exists:
            return
        if not create:
            raise BucketMissing(f"Bucket '{self.bucket}' does not exist")
        self.exists = True

    def list_objects(self, *, include_versions: bool = False):
        self.calls.append("list_objects")
        if include_versions and self.versions:
            yield from self.versions
            return
        for key, size in self.sizes.items():
            yield StoredObject(key=key, size=size)

    def put_stream(self, key, data, *, content_type, part_size):
        self.calls.append(f"put:{key}")
        parts: list[bytes] = []
        total = 0
        try:
            while True:
                chunk = data.read(part_size)
                if not chunk:
                    break
                parts.append(chunk)
                total += len(chunk)
                if self.fail_after_bytes is not None and total >= self.fail_after_bytes:
                    raise StoreWriteFailed(f"Upload of '{key}' failed: connection reset")
        except Exception:
            self.aborted.append(key)
            raise

        body = b"".join(parts)
        self.bodies[key] = body
        self.sizes[key] = len(body)
        self.content_types[key] = content_type

    def remove_versions(self, objects):
        objects = list(objects)
        self.removed.extend(objects)
        return list(self.remove_errors)


@dataclass(frozen=True)
class ScriptTool(YtDlp):
    """
    YtDlp whose three modes run small Python programs instead.

    Each script receives the URL as argv[1].
    """

    listing_src: str = ""
    probe_src: str = ""
    stream_src: str = ""
    spawned: list = field(default_factory=list, compare=False)

    def _argv(self, src: str, url: str) -> list[str]:
        return [sys.executable, "-c", src, url]

    def listing_argv(self, url: str) -> list[str]:
        return self._argv(self.listing_src, url)

    def probe_argv(self, url: str, format_selector: str) -> list[str]:
        return self._argv(self.probe_src, url)

    def stream_argv(self, url: str, format_selector: str) -> list[str]:
        return self._argv(self.stream_src, url)

    def spawn_stream(self, url: str, format_selector: str) -> subprocess.Popen:
        proc = super().spawn_stream(url, format_selector)
        self.spawned.append(proc)
        return proc


def write_bytes_script(n: int, code: int = 0, stderr: str = "") -> str:
    return (
        "import sys\n"
        f"sys.stdout.buffer.write(b'x' * {n})\n"
        "sys.stdout.buffer.flush()\n"
        f"sys.stderr.write({stderr!r})\n"
        f"sys.exit({code})\n"
    )


ENDLESS_SCRIPT = (
    "import sys\n"
    "while True:\n"
    "    sys.stdout.buffer.write(b'x' * 65536)\n"
)


class FakeTransfer:
    """Records transfer calls; optional hook runs mid-transfer."""

    def __init__(self, store: FakeStore, *, fail_keys=(), during=None, size: int = 1024):
        self.store = store
        self.fail_keys = set(fail_keys)
        self.during = during
        self.size = size
        self.started: list[str] = []

    def run(self, item, object_key, extension, expected_size, format_selector) -> int:
        self.started.append(object_key)
        if self.during is not None:
            self.during(item)
        if object_key in self.fail_keys:
            raise ExtractionFailed("yt-dlp process exited with code 1: ERROR: gone")
        self.store.sizes[object_key] = self.size
        return self.size


class CountingProbe:
    def __init__(self, meta: Optional[dict[str, ItemMetadata]] = None, default=None):
        self.meta = meta or {}
        self.default = default or ItemMetadata(extension="mp4", expected_size=1024)
        self.calls: list[str] = []

    def __call__(self, tool, item: WorkItem, fmt: str) -> ItemMetadata:
        self.calls.append(item.base_key)
        found = self.meta.get(item.base_key, self.default)
        if isinstance(found, Exception):
            raise found
        return found


def script_tool(**scripts: str) -> ScriptTool:
    # the interpreter itself stands in as a resolvable executable
    return ScriptTool(path=sys.executable, **scripts)
