"""Promotion — move one complete version from a source mirror to a destination mirror.

The sequence is linear and every failure aborts it:

1. both buckets must be reachable;
2. load the source index; the version must be there;
3. load the destination index; the version must not be there;
4. copy the version's manifest and archives source → destination;
5. add the version to the destination index only and publish it.

The destination index is written last and conditionally on being the
object loaded in step 3, so a version is promoted only if it was complete
at the source and absent at the destination, and a concurrent promoter
that published first wins. A failure in step 4 leaves orphan objects but
no index entry, so re-running the promotion is safe.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from tfmirror.config import DEFAULT_PROVIDER_ID, DEFAULT_PROVIDER_NAME
from tfmirror.core.errors import VersionAlreadyPromotedError, VersionNotFoundError
from tfmirror.core.registry import ArtifactRegistry
from tfmirror.storage.base import BlobStore


class PromoteRequest(BaseModel):
    """What to promote, and from where to where."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(min_length=1)
    src_bucket: str = Field(min_length=1)
    dest_bucket: str = Field(min_length=1)
    src_provider_name: str = DEFAULT_PROVIDER_NAME
    src_provider_id: str = DEFAULT_PROVIDER_ID
    dest_provider_name: str = DEFAULT_PROVIDER_NAME
    dest_provider_id: str = DEFAULT_PROVIDER_ID


class PromotionResult(BaseModel):
    """Outcome of a successful promotion."""

    model_config = ConfigDict(frozen=True)

    version: str
    dest_bucket: str
    dest_provider_id: str
    copied_keys: list[str]
    published_keys: list[str]


def promote(
    request: PromoteRequest,
    src_store: BlobStore,
    dest_store: BlobStore,
    logger: logging.Logger | None = None,
) -> PromotionResult:
    """Promote ``request.version`` from the source mirror to the destination mirror.

    Raises
    ------
    VersionNotFoundError
        The source mirror does not list the version.
    VersionAlreadyPromotedError
        The destination mirror already lists the version.
    IndexConflictError
        Another writer changed the destination index during the promotion.
    """
    log = logger or logging.getLogger(__name__)
    version = request.version

    src_store.head_bucket(request.src_bucket)
    dest_store.head_bucket(request.dest_bucket)

    with ArtifactRegistry(request.src_provider_name, logger=log) as src_mirror:
        src_mirror.load_remote_index(src_store, request.src_bucket, request.src_provider_id)
        if not src_mirror.has_version(version):
            raise VersionNotFoundError(version, request.src_bucket)

        with ArtifactRegistry(request.dest_provider_name, logger=log) as dest_mirror:
            dest_mirror.load_remote_index(dest_store, request.dest_bucket, request.dest_provider_id)
            if dest_mirror.has_version(version):
                raise VersionAlreadyPromotedError(version, request.dest_bucket)

            copied = src_mirror.copy_release_artifacts_between_remote_buckets(
                request.src_bucket,
                dest_store,
                request.dest_bucket,
                request.src_provider_id,
                version,
                src_store=src_store,
                dest_key_prefix=request.dest_provider_id,
            )

            dest_mirror.add_release_version_to_index(version)
            dest_mirror.write_metadata()
            published = dest_mirror.publish_to_remote_bucket(
                dest_store, request.dest_bucket, request.dest_provider_id
            )

    log.info("promoted %s from %s to %s", version, request.src_bucket, request.dest_bucket)
    return PromotionResult(
        version=version,
        dest_bucket=request.dest_bucket,
        dest_provider_id=request.dest_provider_id,
        copied_keys=copied,
        published_keys=published,
    )
