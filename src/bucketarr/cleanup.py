from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from bucketarr.logger import get_logger
from bucketarr.store.client import ObjectStore, StoredObject
from bucketarr.store.index import snapshot

log = get_logger(__name__)


# ============================================================
# Helpers
# ============================================================


def normalize_extension(ext: str) -> str:
    return ext.strip().lstrip(".").lower()


def extension_of(key: str) -> str | None:
    basename = key.rsplit("/", 1)[-1]
    if "." not in basename:
        return None
    return basename.rsplit(".", 1)[1].lower()


def select_for_deletion(
    objects: Iterable[StoredObject], keep_extension: str
) -> list[StoredObject]:
    """
    Every version whose basename lacks `keep_extension`. Objects with no
    extension at all are selected too; delete markers are left alone.
    """
    keep = normalize_extension(keep_extension)
    doomed: list[StoredObject] = []
    for obj in objects:
        if not obj.key or obj.is_delete_marker:
            continue
        if extension_of(obj.key) != keep:
            doomed.append(obj)
    return doomed


def describe(obj: StoredObject) -> str:
    suffix = f" (Version ID: {obj.version_id})" if obj.version_id else " (current/unversioned)"
    return f"{obj.key}{suffix}"


# ============================================================
# Main
# ============================================================


@dataclass
class CleanupResult:
    selected: list[StoredObject] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return not self.errors


def run_cleanup(
    store: ObjectStore, keep_extension: str, *, dry_run: bool = False
) -> CleanupResult:
    keep = normalize_extension(keep_extension)
    if not keep:
        raise ValueError("keep_extension must not be empty")

    store.ensure_bucket(create=False)
    snap = snapshot(store, include_versions=True)

    doomed = select_for_deletion(snap.objects, keep)
    result = CleanupResult(selected=doomed, dry_run=dry_run)

    if not doomed:
        log.info(
            f"No object versions found to delete. All objects have the extension '.{keep}' "
            "or the bucket is empty."
        )
        return result

    log.info(
        f"{len(doomed)} object version(s) are not '.{keep}' or have no extension:"
    )
    for obj in doomed:
        log.info(f" - {describe(obj)}")

    if dry_run:
        log.info("DRY RUN - nothing deleted.")
        return result

    result.errors = store.remove_versions(doomed)
    for err in result.errors:
        log.error(f"Delete failed: {err}")

    if result.ok:
        log.info(f"Deleted {len(doomed)} object version(s).")
    return result
