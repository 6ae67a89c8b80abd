from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from bucketarr.pipeline.models import Decision
from bucketarr.store.client import StoredObject
from bucketarr.store.index import BucketSnapshot


@dataclass(frozen=True)
class MatchOptions:
    reupload_on_size_diff: bool = False
    check_full_key: bool = False


def find_match(
    snapshot: BucketSnapshot,
    base_key: str,
    extension: Optional[str],
    check_full_key: bool,
) -> Optional[StoredObject]:
    """
    Full-key mode: exact `{base_key}.{extension}` only.

    Prefix mode: any key starting with `base_key`. When the extension is
    known the exact key is preferred, so the size comparison is made
    against the object we would overwrite. Sibling artifacts sharing the
    stem (subtitles, thumbnails) also count as a match in this mode.
    """
    exact = snapshot.get(f"{base_key}.{extension}") if extension else None

    if check_full_key:
        return exact

    if exact is not None:
        return exact

    matches = snapshot.with_prefix(base_key)
    return matches[0] if matches else None


def needs_probe(snapshot: BucketSnapshot, base_key: str, opts: MatchOptions) -> bool:
    """
    A probe is skipped only when a prefix hit already decides Skip.
    """
    if opts.check_full_key or opts.reupload_on_size_diff:
        return True
    return not snapshot.with_prefix(base_key)


def decide(
    snapshot: BucketSnapshot,
    base_key: str,
    extension: Optional[str],
    expected_size: int,
    reupload_on_size_diff: bool,
    check_full_key: bool,
) -> Decision:
    if check_full_key and not extension:
        raise ValueError("Full-key matching requires a probed extension")

    match = find_match(snapshot, base_key, extension, check_full_key)
    if match is None:
        return Decision.UPLOAD

    if not reupload_on_size_diff:
        return Decision.SKIP

    # Unknown expected size is never a difference.
    if expected_size == 0 or match.size == expected_size:
        return Decision.SKIP

    return Decision.REUPLOAD
