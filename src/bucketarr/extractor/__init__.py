"""
yt-dlp seam: tool resolution, listing, metadata probe and stream argv.

The extraction tool is an opaque child process; nothing here imports it.
"""
from bucketarr.extractor.ytdlp import YtDlp, resolve_tool
from bucketarr.extractor.enumerate import enumerate_items, parse_listing
from bucketarr.extractor.probe import parse_probe_output, probe

__all__ = [
    "YtDlp",
    "enumerate_items",
    "parse_listing",
    "parse_probe_output",
    "probe",
    "resolve_tool",
]
