"""
Bucketarr: archive remote videos into an S3-compatible bucket.

Media bytes are piped from the extraction tool straight into the object
store upload; nothing is staged on disk.
"""
from __future__ import annotations

__version__ = "0.1.0"
