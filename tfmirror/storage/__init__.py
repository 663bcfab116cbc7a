"""Object storage backends for mirrors.

``S3BlobStore`` talks to S3 through boto3; ``LocalBlobStore`` maps buckets to
directories; ``DeadlineBlobStore`` bounds either by an overall time budget.
"""

from tfmirror.storage.base import (
    BlobNotFoundError,
    BlobStore,
    BlobStoreError,
    ObjectInfo,
    PreconditionFailedError,
    join_key,
)
from tfmirror.storage.deadline import Deadline, DeadlineBlobStore, DeadlineExceededError
from tfmirror.storage.local import LocalBlobStore
from tfmirror.storage.s3 import S3BlobStore

__all__ = [
    "BlobNotFoundError",
    "BlobStore",
    "BlobStoreError",
    "Deadline",
    "DeadlineBlobStore",
    "DeadlineExceededError",
    "LocalBlobStore",
    "ObjectInfo",
    "PreconditionFailedError",
    "S3BlobStore",
    "join_key",
]
