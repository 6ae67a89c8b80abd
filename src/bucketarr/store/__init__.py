from bucketarr.store.client import MinioStore, ObjectStore, StoredObject, build_store
from bucketarr.store.index import BucketSnapshot, snapshot

__all__ = [
    "BucketSnapshot",
    "MinioStore",
    "ObjectStore",
    "StoredObject",
    "build_store",
    "snapshot",
]
