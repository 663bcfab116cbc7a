"""Filesystem blob store — each bucket is a directory under a root.

Layout: ``{root}/{bucket}/{key}``. ETags are the quoted MD5 of the object
bytes, matching S3 for single-part uploads. Content types are accepted but
not stored.
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
import threading
from pathlib import Path, PurePosixPath

from tfmirror.storage.base import BlobNotFoundError, ObjectInfo, PreconditionFailedError

logger = logging.getLogger(__name__)


def _etag(data: bytes) -> str:
    return f'"{hashlib.md5(data, usedforsecurity=False).hexdigest()}"'


class LocalBlobStore:
    """Blob store backed by a local directory tree.

    Parameters
    ----------
    root:
        Directory holding one sub-directory per bucket. Buckets are not
        created implicitly; ``head_bucket`` fails until the directory exists.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)
        self._lock = threading.Lock()

    @property
    def root(self) -> Path:
        return self._root

    def create_bucket(self, bucket: str) -> Path:
        path = self._bucket_path(bucket)
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _bucket_path(self, bucket: str) -> Path:
        if not bucket or "/" in bucket or bucket in (".", ".."):
            raise ValueError(f"invalid bucket name: {bucket!r}")
        return self._root / bucket

    def _object_path(self, bucket: str, key: str) -> Path:
        parts = PurePosixPath(key).parts
        if not parts or ".." in parts or PurePosixPath(key).is_absolute():
            raise ValueError(f"invalid object key: {key!r}")
        return self._bucket_path(bucket).joinpath(*parts)

    def _require_bucket(self, bucket: str) -> None:
        if not self._bucket_path(bucket).is_dir():
            raise BlobNotFoundError(bucket)

    # ------------------------------------------------------------------
    # BlobStore
    # ------------------------------------------------------------------

    def head_bucket(self, bucket: str) -> None:
        self._require_bucket(bucket)

    def head_object(self, bucket: str, key: str) -> ObjectInfo:
        data = self.get_object(bucket, key)
        return ObjectInfo(size=len(data), etag=_etag(data))

    def get_object(self, bucket: str, key: str) -> bytes:
        self._require_bucket(bucket)
        path = self._object_path(bucket, key)
        if not path.is_file():
            raise BlobNotFoundError(bucket, key)
        return path.read_bytes()

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
        self._require_bucket(bucket)
        path = self._object_path(bucket, key)

        with self._lock:
            exists = path.is_file()
            if if_none_match == "*" and exists:
                raise PreconditionFailedError(bucket, key)
            if if_match is not None and (not exists or _etag(path.read_bytes()) != if_match):
                raise PreconditionFailedError(bucket, key)
            self._write(path, data)

        logger.debug("wrote %d bytes to %s/%s (%s)", len(data), bucket, key, content_type)
        return _etag(data)

    def copy_object(
        self, dest_bucket: str, dest_key: str, source_bucket: str, source_key: str
    ) -> None:
        data = self.get_object(source_bucket, source_key)
        self._require_bucket(dest_bucket)
        with self._lock:
            self._write(self._object_path(dest_bucket, dest_key), data)

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        """Write atomically: temp file in the same directory, then rename."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
