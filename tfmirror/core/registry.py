"""Artifact registry — one provider's mirror index, release manifests, and staging directory.

The registry is the only place the index and the release manifests change,
and :meth:`ArtifactRegistry.insert` is the only path that changes both, so
a version is in the index exactly when a manifest for it is staged (or, for
a promotion, was copied server-side before the index entry was added).

Staging layout, mirrored verbatim under the provider key prefix on publish::

    {staging}/
        index.json
        {version}.json
        {provider}_{version}_{platform}_{arch}.zip

All mutable state is guarded by a single lock. Concurrent callers get
mutual exclusion and nothing more.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import threading
from pathlib import Path
from types import TracebackType

from tfmirror.core.archiver import ArchiveBuilder
from tfmirror.core.discovery import discover_binaries
from tfmirror.core.errors import (
    IndexConflictError,
    InvalidVersionError,
    NoIndexLoadedError,
    ReleaseMetadataNotFoundError,
)
from tfmirror.models.mirror import Archive, MirrorIndex, Release
from tfmirror.storage.base import (
    BlobNotFoundError,
    BlobStore,
    PreconditionFailedError,
    join_key,
)

INDEX_FILE_NAME = "index.json"

CONTENT_TYPES = {
    ".zip": "application/zip",
    ".json": "application/json",
}


def release_file_name(version: str) -> str:
    return f"{version}.json"


def check_version(version: str) -> None:
    """Raise InvalidVersionError unless *version* is usable as a manifest file name."""
    if not version or version in (".", ".."):
        raise InvalidVersionError(version, "empty or a relative path")
    if "/" in version or "\\" in version:
        raise InvalidVersionError(version, "contains a path separator")
    if release_file_name(version) == INDEX_FILE_NAME:
        raise InvalidVersionError(version, f"its manifest would replace {INDEX_FILE_NAME}")


class ArtifactRegistry:
    """Provider-scoped mirror state.

    Use as a context manager so the staging directory is removed on every
    exit path::

        with ArtifactRegistry("terraform-provider-enos") as mirror:
            mirror.load_remote_index(store, bucket, "hashicorp.com/qti/enos")
            mirror.add_binaries_from(Path("dist"))
            mirror.write_metadata()
            mirror.publish_to_remote_bucket(store, bucket, "hashicorp.com/qti/enos")

    Parameters
    ----------
    provider_name:
        Provider binary name; used for archive names and discovery.
    logger:
        Logger for progress messages; defaults to this module's logger.
    """

    def __init__(self, provider_name: str, logger: logging.Logger | None = None) -> None:
        self._provider_name = provider_name
        self._log = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()

        self._index: MirrorIndex | None = None
        self._releases: dict[str, Release] = {}
        self._dir: Path | None = None

        # Remote index state for the conditional publish of index.json.
        # _index_remote is False until load_remote_index runs; _index_etag
        # is None when the remote index did not exist.
        self._index_remote = False
        self._index_etag: str | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> Path:
        """Create the staging directory (idempotent) and return it."""
        with self._lock:
            if self._dir is None:
                self._dir = Path(tempfile.mkdtemp(prefix="local-mirror"))
                self._log.debug("created staging directory %s", self._dir)
            return self._dir

    def close(self) -> None:
        """Remove the staging directory and everything in it."""
        with self._lock:
            if self._dir is not None and self._dir.exists():
                shutil.rmtree(self._dir)
            self._dir = None

    def __enter__(self) -> ArtifactRegistry:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def provider_name(self) -> str:
        return self._provider_name

    @property
    def staging_dir(self) -> Path:
        with self._lock:
            return self._require_dir()

    @property
    def index(self) -> MirrorIndex | None:
        """A copy of the in-memory index, or None before it is loaded."""
        with self._lock:
            return self._index.model_copy(deep=True) if self._index is not None else None

    def release(self, version: str) -> Release | None:
        """A copy of the in-memory manifest for *version*, if any."""
        with self._lock:
            release = self._releases.get(version)
            return release.model_copy(deep=True) if release is not None else None

    def release_versions(self) -> list[str]:
        with self._lock:
            return sorted(self._releases)

    # ------------------------------------------------------------------
    # Remote loading
    # ------------------------------------------------------------------

    def load_remote_index(self, store: BlobStore, bucket: str, key_prefix: str) -> None:
        """Replace the in-memory index with the remote ``index.json``.

        A missing index is not an error: it is the first run against this
        bucket and the registry starts from an empty index.
        """
        key = join_key(key_prefix, INDEX_FILE_NAME)
        with self._lock:
            self._log.debug("loading remote index s3://%s/%s", bucket, key)
            try:
                info = store.head_object(bucket, key)
            except BlobNotFoundError:
                self._log.warning(
                    "%s does not exist in %s, this could be the first run against this bucket",
                    key,
                    bucket,
                )
                self._index = MirrorIndex()
                self._index_remote = True
                self._index_etag = None
                return

            data = store.get_object(bucket, key)
            self._index = MirrorIndex.from_json(data)
            self._index_remote = True
            self._index_etag = info.etag or None
            self._log.info(
                "loaded remote index with %d version(s) from %s", len(self._index.versions), bucket
            )

    def load_release_metadata_for_version(
        self, store: BlobStore, bucket: str, key_prefix: str, version: str
    ) -> Release:
        """Fetch ``<version>.json`` from the remote mirror and keep it in memory.

        The manifest must exist; a missing one means the index and manifests
        have diverged.
        """
        key = join_key(key_prefix, release_file_name(version))
        with self._lock:
            self._log.debug("loading release metadata s3://%s/%s", bucket, key)
            try:
                data = store.get_object(bucket, key)
            except BlobNotFoundError as exc:
                raise ReleaseMetadataNotFoundError(bucket, key, version) from exc

            release = Release.from_json(data)
            self._releases[version] = release
            return release.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Index queries and mutation
    # ------------------------------------------------------------------

    def has_version(self, version: str) -> bool:
        with self._lock:
            self._log.debug("checking if version %s exists", version)
            if self._index is None:
                raise NoIndexLoadedError(self._provider_name)
            return self._index.has_version(version)

    def insert(self, version: str, platform: str, arch: str, archive: Archive) -> None:
        """Add *archive* to the version's manifest and mark the version in the index."""
        check_version(version)
        with self._lock:
            release = self._releases.setdefault(version, Release())
            release.add_archive(platform, arch, archive)
            self._ensure_index().add_version(version)

    def add_release_version_to_index(self, version: str) -> None:
        """Mark *version* present without staging a manifest for it.

        Only for promotion, after the manifest and archives were copied to
        the destination bucket.
        """
        check_version(version)
        with self._lock:
            self._ensure_index().add_version(version)

    def _ensure_index(self) -> MirrorIndex:
        # A registry that never loaded a remote index builds a local-only one.
        if self._index is None:
            self._index = MirrorIndex()
        return self._index

    # ------------------------------------------------------------------
    # Local build
    # ------------------------------------------------------------------

    def add_binary(self, version: str, platform: str, arch: str, binary_path: Path) -> Archive:
        """Zip, hash, and insert one binary."""
        check_version(version)
        with self._lock:
            staging = self._require_dir()
        builder = ArchiveBuilder(self._provider_name, staging, logger=self._log)
        archive = builder.build(version, platform, arch, binary_path)
        self.insert(version, platform, arch, archive)
        return archive

    def add_binaries_from(self, dist_dir: Path) -> list[Archive]:
        """Discover every provider binary under *dist_dir* and add it."""
        self._log.info("scanning %s for %s binaries", dist_dir, self._provider_name)
        archives = []
        for found in discover_binaries(dist_dir, self._provider_name):
            self._log.debug(
                "found %s %s/%s at %s", found.version, found.platform, found.arch, found.path
            )
            archives.append(self.add_binary(found.version, found.platform, found.arch, found.path))
        return archives

    def write_metadata(self) -> list[Path]:
        """Write ``index.json`` and each ``<version>.json`` to the staging directory."""
        with self._lock:
            if self._index is None:
                raise NoIndexLoadedError(self._provider_name)
            staging = self._require_dir()

            written = [staging / INDEX_FILE_NAME]
            written[0].write_text(self._index.as_json(), encoding="utf-8")
            for version, release in sorted(self._releases.items()):
                path = staging / release_file_name(version)
                path.write_text(release.as_json(), encoding="utf-8")
                written.append(path)
            return written

    def _require_dir(self) -> Path:
        if self._dir is None:
            raise RuntimeError("registry is not open")
        return self._dir

    # ------------------------------------------------------------------
    # Remote publishing
    # ------------------------------------------------------------------

    def publish_to_remote_bucket(self, store: BlobStore, bucket: str, key_prefix: str) -> list[str]:
        """Upload every staged file under *key_prefix* and return the keys.

        Archives and manifests go first and ``index.json`` last, so the remote
        index never lists a version before its files exist. When the index
        was loaded from remote, it is written conditionally on still being
        the object that was loaded.
        """
        with self._lock:
            staging = self._require_dir()
            self._log.info("publishing local mirror to %s", bucket)

            files = sorted(p for p in staging.iterdir() if p.is_file())
            files.sort(key=lambda p: p.name == INDEX_FILE_NAME)

            uploaded = []
            for path in files:
                key = join_key(key_prefix, path.name)
                content_type = CONTENT_TYPES.get(path.suffix)
                self._log.debug("uploading %s to s3://%s/%s", path.name, bucket, key)

                if path.name != INDEX_FILE_NAME:
                    store.put_object(bucket, key, path.read_bytes(), content_type)
                else:
                    self._put_index(store, bucket, key, path.read_bytes(), content_type)
                uploaded.append(key)
            return uploaded

    def _put_index(
        self, store: BlobStore, bucket: str, key: str, data: bytes, content_type: str | None
    ) -> None:
        conditions: dict[str, str] = {}
        if self._index_remote:
            if self._index_etag is None:
                conditions["if_none_match"] = "*"
            else:
                conditions["if_match"] = self._index_etag

        try:
            etag = store.put_object(bucket, key, data, content_type, **conditions)
        except PreconditionFailedError as exc:
            raise IndexConflictError(bucket, key) from exc

        if self._index_remote:
            self._index_etag = etag or None

    # ------------------------------------------------------------------
    # Cross-bucket copy
    # ------------------------------------------------------------------

    def copy_release_artifacts_between_remote_buckets(
        self,
        src_bucket: str,
        dest_store: BlobStore,
        dest_bucket: str,
        key_prefix: str,
        version: str,
        *,
        src_store: BlobStore | None = None,
        dest_key_prefix: str | None = None,
    ) -> list[str]:
        """Server-side copy of one version's manifest and archives.

        The manifest is read from *src_bucket* (through *src_store*, or
        *dest_store* when none is given) and every object it references is
        copied to the same relative key in *dest_bucket*. No index is
        touched. Returns the destination keys.
        """
        dest_key_prefix = key_prefix if dest_key_prefix is None else dest_key_prefix
        self._log.info(
            "copying release %s artifacts from %s to %s", version, src_bucket, dest_bucket
        )

        release = self.load_release_metadata_for_version(
            src_store or dest_store, src_bucket, key_prefix, version
        )

        names = [release_file_name(version)]
        names.extend(archive.url for _, archive in sorted(release.archives.items()))

        copied = []
        for name in names:
            src_key = join_key(key_prefix, name)
            dest_key = join_key(dest_key_prefix, name)
            self._log.debug(
                "copying s3://%s/%s to s3://%s/%s", src_bucket, src_key, dest_bucket, dest_key
            )
            dest_store.copy_object(dest_bucket, dest_key, src_bucket, src_key)
            copied.append(dest_key)
        return copied
