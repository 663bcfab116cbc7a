"""Populate — merge a local goreleaser build into a remote mirror and publish it."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from tfmirror.core.registry import ArtifactRegistry
from tfmirror.storage.base import BlobStore


class PopulateResult(BaseModel):
    """Outcome of a successful populate run."""

    model_config = ConfigDict(frozen=True)

    bucket: str
    provider_id: str
    versions: list[str]
    archives: list[str]
    published_keys: list[str]


def populate(
    dist_dir: Path,
    store: BlobStore,
    bucket: str,
    provider_name: str,
    provider_id: str,
    logger: logging.Logger | None = None,
) -> PopulateResult:
    """Add every binary in *dist_dir* to the mirror in *bucket* and publish it.

    The remote index is loaded before anything is inserted so versions
    already in the mirror are kept alongside the new build.
    """
    log = logger or logging.getLogger(__name__)

    store.head_bucket(bucket)

    with ArtifactRegistry(provider_name, logger=log) as mirror:
        mirror.load_remote_index(store, bucket, provider_id)

        archives = mirror.add_binaries_from(Path(dist_dir))
        if not archives:
            log.warning("no %s binaries found in %s", provider_name, dist_dir)

        mirror.write_metadata()
        published = mirror.publish_to_remote_bucket(store, bucket, provider_id)
        versions = mirror.release_versions()

    return PopulateResult(
        bucket=bucket,
        provider_id=provider_id,
        versions=versions,
        archives=[archive.url for archive in archives],
        published_keys=published,
    )
