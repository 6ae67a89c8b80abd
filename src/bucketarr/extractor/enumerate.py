from __future__ import annotations

import json

from bucketarr.errors import EnumerationFailed
from bucketarr.extractor.ytdlp import LISTING_FIELDS, ToolFailed, YtDlp
from bucketarr.logger import get_logger
from bucketarr.pipeline.models import WorkItem

log = get_logger(__name__)

FIELDS_PER_ITEM = len(LISTING_FIELDS)


def parse_listing(output: str) -> list[WorkItem]:
    """
    Group listing output into WorkItems: URL, JSON title, filename per entry.

    A line count that is not a whole number of entries means the layout
    was not what we asked for; refuse rather than pair the wrong lines.
    """
    lines = [line.rstrip("\r") for line in output.splitlines()]
    while lines and not lines[-1].strip():
        lines.pop()

    if len(lines) % FIELDS_PER_ITEM != 0:
        raise EnumerationFailed(
            f"Unexpected listing layout: {len(lines)} lines is not a multiple "
            f"of {FIELDS_PER_ITEM}"
        )

    items: list[WorkItem] = []
    for i in range(0, len(lines), FIELDS_PER_ITEM):
        url, raw_title, filename = (v.strip() for v in lines[i : i + FIELDS_PER_ITEM])
        if not url or url == "NA" or not filename:
            raise EnumerationFailed(f"Incomplete listing entry at line {i + 1}")
        title = _decode_title(raw_title)
        items.append(WorkItem(source_url=url, title=title or filename, base_key=filename))
    return items


def _decode_title(raw: str) -> str:
    # yt-dlp prints the title as a JSON string; null when it has none
    try:
        value = json.loads(raw)
    except ValueError:
        return raw
    return value if isinstance(value, str) else ""


def enumerate_items(tool: YtDlp, url: str) -> list[WorkItem]:
    log.info(f"Fetching playlist URLs from: {url}")
    try:
        output = tool.capture(tool.listing_argv(url))
    except ToolFailed as e:
        raise EnumerationFailed(str(e)) from e

    items = parse_listing(output)
    log.info(f"Found {len(items)} video(s) in the playlist")
    return items
