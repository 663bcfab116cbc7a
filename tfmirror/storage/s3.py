"""S3 blob store backed by a boto3 client.

Usage::

    store = S3BlobStore(region_name="us-east-1")
    store.head_bucket("enos-provider-mirror")

Not-found and precondition errors are translated to the blob store error
types; every other ``ClientError`` propagates as-is.
"""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from tfmirror.storage.base import BlobNotFoundError, ObjectInfo, PreconditionFailedError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound", "NoSuchBucket"})
_PRECONDITION_CODES = frozenset({"412", "PreconditionFailed", "ConditionalRequestConflict"})


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3BlobStore:
    """Blob store for S3 and S3-compatible services.

    Parameters
    ----------
    client:
        A ready boto3 S3 client. When omitted one is created from the
        default credential chain with the remaining arguments.
    endpoint_url:
        Alternate endpoint, e.g. a MinIO server.
    region_name:
        AWS region for the client.
    config:
        botocore ``Config``; used to bound connect/read timeouts.
    """

    def __init__(
        self,
        client: Any = None,
        *,
        endpoint_url: str | None = None,
        region_name: str | None = None,
        config: Config | None = None,
    ) -> None:
        if client is None:
            kwargs: dict[str, Any] = {}
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            if region_name:
                kwargs["region_name"] = region_name
            if config is not None:
                kwargs["config"] = config
            client = boto3.client("s3", **kwargs)
        self._client = client

    @property
    def client(self) -> Any:
        return self._client

    def head_bucket(self, bucket: str) -> None:
        try:
            self._client.head_bucket(Bucket=bucket)
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                raise BlobNotFoundError(bucket) from exc
            raise

    def head_object(self, bucket: str, key: str) -> ObjectInfo:
        try:
            resp = self._client.head_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                raise BlobNotFoundError(bucket, key) from exc
            raise
        return ObjectInfo(size=resp.get("ContentLength", 0), etag=resp.get("ETag", ""))

    def get_object(self, bucket: str, key: str) -> bytes:
        try:
            resp = self._client.get_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                raise BlobNotFoundError(bucket, key) from exc
            raise
        return resp["Body"].read()

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
        kwargs: dict[str, Any] = {"Bucket": bucket, "Key": key, "Body": data}
        if content_type:
            kwargs["ContentType"] = content_type
        if if_match is not None:
            kwargs["IfMatch"] = if_match
        if if_none_match is not None:
            kwargs["IfNoneMatch"] = if_none_match

        try:
            resp = self._client.put_object(**kwargs)
        except ClientError as exc:
            if _error_code(exc) in _PRECONDITION_CODES:
                raise PreconditionFailedError(bucket, key) from exc
            raise
        logger.debug("uploaded s3://%s/%s", bucket, key)
        return resp.get("ETag", "")

    def copy_object(
        self, dest_bucket: str, dest_key: str, source_bucket: str, source_key: str
    ) -> None:
        try:
            self._client.copy_object(
                Bucket=dest_bucket,
                Key=dest_key,
                CopySource={"Bucket": source_bucket, "Key": source_key},
            )
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                raise BlobNotFoundError(source_bucket, source_key) from exc
            raise
