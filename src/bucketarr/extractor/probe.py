from __future__ import annotations

from bucketarr.errors import ProbeFailed
from bucketarr.extractor.ytdlp import ToolFailed, YtDlp
from bucketarr.logger import get_logger
from bucketarr.pipeline.models import ItemMetadata, WorkItem

log = get_logger(__name__)


def _parse_size(raw: str) -> int:
    try:
        size = int(raw.strip())
    except ValueError:
        # "NA" for live streams and size-less formats
        return 0
    return size if size > 0 else 0


def parse_probe_output(output: str) -> ItemMetadata:
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if not lines:
        raise ProbeFailed("Metadata probe printed nothing")

    ext, sep, size = lines[-1].partition(",")
    ext = ext.strip()
    if not sep or not ext or ext == "NA":
        raise ProbeFailed(f"Unparsable metadata line: {lines[-1]!r}")

    return ItemMetadata(extension=ext, expected_size=_parse_size(size))


def probe(tool: YtDlp, item: WorkItem, format_selector: str) -> ItemMetadata:
    log.info("Fetching metadata (file size and extension)")
    try:
        output = tool.capture(tool.probe_argv(item.source_url, format_selector))
    except ToolFailed as e:
        raise ProbeFailed(str(e)) from e

    meta = parse_probe_output(output)
    log.debug(f"Probe: ext={meta.extension} size={meta.expected_size}")
    return meta
