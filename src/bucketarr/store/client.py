from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, Iterable, Iterator, Optional, Protocol

from minio import Minio
from minio.deleteobjects import DeleteObject
from minio.error import MinioException
from urllib3.exceptions import HTTPError

from bucketarr.env import StoreEnvironment
from bucketarr.errors import (
    BucketMissing,
    ItemError,
    StoreUnavailable,
    StoreWriteFailed,
)
from bucketarr.logger import get_logger

log = get_logger(__name__)

_STORE_ERRORS = (MinioException, HTTPError, OSError)


@dataclass(frozen=True)
class StoredObject:
    key: str
    size: int
    version_id: Optional[str] = None
    is_delete_marker: bool = False


class ObjectStore(Protocol):
    """
    The slice of an S3-compatible service the pipeline needs.

    - ensure_bucket() raises BucketMissing / StoreUnavailable
    - list_objects() yields every object (optionally every version)
    - put_stream() consumes `data` until EOF; an exception raised by
      data.read() must abort the upload and propagate unchanged
    """

    bucket: str

    def ensure_bucket(self, *, create: bool = False) -> None: ...

    def list_objects(self, *, include_versions: bool = False) -> Iterator[StoredObject]: ...

    def put_stream(
        self, key: str, data: BinaryIO, *, content_type: str, part_size: int
    ) -> None: ...

    def remove_versions(self, objects: Iterable[StoredObject]) -> list[str]: ...


class MinioStore:
    def __init__(self, client: Minio, bucket: str):
        self.client = client
        self.bucket = bucket

    def ensure_bucket(self, *, create: bool = False) -> None:
        try:
            exists = self.client.bucket_exists(bucket_name=self.bucket)
        except _STORE_ERRORS as e:
            raise StoreUnavailable(f"Cannot reach object store: {e}") from e

        if exists:
            return

        if not create:
            raise BucketMissing(
                f"Bucket '{self.bucket}' does not exist and --create-bucket is not set"
            )

        log.info(f"Creating bucket: {self.bucket}")
        try:
            self.client.make_bucket(bucket_name=self.bucket)
        except _STORE_ERRORS as e:
            raise StoreUnavailable(f"Cannot create bucket '{self.bucket}': {e}") from e

    def list_objects(self, *, include_versions: bool = False) -> Iterator[StoredObject]:
        try:
            for obj in self.client.list_objects(
                bucket_name=self.bucket,
                prefix="",
                recursive=True,
                include_version=include_versions,
            ):
                yield StoredObject(
                    key=obj.object_name or "",
                    size=int(obj.size or 0),
                    version_id=obj.version_id or None,
                    is_delete_marker=bool(obj.is_delete_marker),
                )
        except _STORE_ERRORS as e:
            raise StoreUnavailable(f"Cannot list bucket '{self.bucket}': {e}") from e

    def put_stream(
        self, key: str, data: BinaryIO, *, content_type: str, part_size: int
    ) -> None:
        try:
            self.client.put_object(
                bucket_name=self.bucket,
                object_name=key,
                data=data,
                length=-1,
                content_type=content_type,
                part_size=part_size,
                num_parallel_uploads=1,
            )
        except ItemError:
            # Raised by the body stream; the client already aborted the upload.
            raise
        except _STORE_ERRORS as e:
            raise StoreWriteFailed(f"Upload of '{key}' failed: {e}") from e

    def remove_versions(self, objects: Iterable[StoredObject]) -> list[str]:
        targets = [
            DeleteObject(o.key, o.version_id) if o.version_id else DeleteObject(o.key)
            for o in objects
        ]
        if not targets:
            return []

        try:
            errors = self.client.remove_objects(
                bucket_name=self.bucket, delete_object_list=targets
            )
            # remove_objects is lazy; iterating performs the deletion.
            return [f"{err.name}: {err.message}" for err in errors]
        except _STORE_ERRORS as e:
            raise StoreUnavailable(f"Delete request failed: {e}") from e


def build_store(env: StoreEnvironment) -> MinioStore:
    try:
        client = Minio(
            env.endpoint,
            access_key=env.access_key,
            secret_key=env.secret_key,
            secure=env.secure,
            region=env.region,
        )
    except ValueError as e:
        raise StoreUnavailable(f"Invalid object store endpoint '{env.endpoint}': {e}") from e
    return MinioStore(client, env.bucket)
