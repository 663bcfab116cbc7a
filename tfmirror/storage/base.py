"""Blob store protocol — the object-storage operations the mirror needs.

Keys are ``/``-separated and relative to a bucket. Implementations raise
:class:`BlobNotFoundError` for a missing bucket or object and
:class:`PreconditionFailedError` when a conditional write is rejected;
every other failure propagates as the implementation's own exception.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict


class BlobStoreError(RuntimeError):
    """Base class for blob store errors."""


class BlobNotFoundError(BlobStoreError):
    """The bucket or object does not exist."""

    def __init__(self, bucket: str, key: str | None = None) -> None:
        location = f"s3://{bucket}/{key}" if key is not None else f"s3://{bucket}"
        super().__init__(f"not found: {location}")
        self.bucket = bucket
        self.key = key


class PreconditionFailedError(BlobStoreError):
    """A conditional write found the object in an unexpected state."""

    def __init__(self, bucket: str, key: str) -> None:
        super().__init__(f"precondition failed writing s3://{bucket}/{key}")
        self.bucket = bucket
        self.key = key


class ObjectInfo(BaseModel):
    """Object metadata returned by ``head_object``."""

    model_config = ConfigDict(frozen=True)

    size: int
    etag: str = ""


@runtime_checkable
class BlobStore(Protocol):
    """Structural type for object storage backends."""

    def head_bucket(self, bucket: str) -> None:
        """Raise if *bucket* is missing or inaccessible."""
        ...

    def head_object(self, bucket: str, key: str) -> ObjectInfo:
        ...

    def get_object(self, bucket: str, key: str) -> bytes:
        ...

    def put_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str | None = None,
        *,
        if_match: str | None = None,
        if_none_match: str | None = None,
    ) -> str:
        """Write an object and return its new ETag.

        ``if_match`` requires the current ETag to equal the given one;
        ``if_none_match="*"`` requires the object not to exist.
        """
        ...

    def copy_object(
        self, dest_bucket: str, dest_key: str, source_bucket: str, source_key: str
    ) -> None:
        """Server-side copy of ``source_bucket/source_key`` to ``dest_bucket/dest_key``."""
        ...


def join_key(prefix: str, name: str) -> str:
    """Join a key prefix and a name with exactly one ``/``."""
    prefix = prefix.strip("/")
    return f"{prefix}/{name}" if prefix else name
