from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Optional

from bucketarr.logger import get_logger
from bucketarr.store.client import ObjectStore, StoredObject

log = get_logger(__name__)


@dataclass(frozen=True)
class BucketSnapshot:
    """
    Materialized listing of a bucket, taken once per run.

    Never refreshed: writes made after the listing (by this run or anyone
    else) are not observed.
    """

    objects: tuple[StoredObject, ...] = ()
    _by_key: dict[str, StoredObject] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )
    _sorted_keys: tuple[str, ...] = field(init=False, repr=False, compare=False, default=())

    def __post_init__(self) -> None:
        by_key: dict[str, StoredObject] = {}
        for obj in self.objects:
            if obj.is_delete_marker or not obj.key:
                continue
            by_key.setdefault(obj.key, obj)
        object.__setattr__(self, "_by_key", by_key)
        object.__setattr__(self, "_sorted_keys", tuple(sorted(by_key)))

    @classmethod
    def from_sizes(cls, sizes: dict[str, int]) -> "BucketSnapshot":
        return cls(tuple(StoredObject(key=k, size=v) for k, v in sizes.items()))

    def __len__(self) -> int:
        return len(self._by_key)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def get(self, key: str) -> Optional[StoredObject]:
        return self._by_key.get(key)

    def with_prefix(self, prefix: str) -> list[StoredObject]:
        """All live objects whose key starts with `prefix`, in key order."""
        keys = self._sorted_keys
        out: list[StoredObject] = []
        i = bisect_left(keys, prefix)
        while i < len(keys) and keys[i].startswith(prefix):
            out.append(self._by_key[keys[i]])
            i += 1
        return out


def snapshot(store: ObjectStore, *, include_versions: bool = False) -> BucketSnapshot:
    objects = tuple(store.list_objects(include_versions=include_versions))
    snap = BucketSnapshot(objects)
    log.info(f"Found {len(snap)} existing objects in bucket {store.bucket}")
    return snap
